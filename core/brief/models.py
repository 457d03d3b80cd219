"""
core/brief/models.py

Brief data model and the small result types that travel with it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class Brief(BaseModel):
    """
    Structured work order captured from a briefing conversation.

    Every field is optional so the same model carries partial and
    complete briefs; completeness is decided by BriefSchema.validate,
    never by the model itself. `category` and `priority` are plain
    strings so that unknown values survive long enough to be reported
    by the validator.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    deadline: Optional[datetime] = None
    estimated_hours: Optional[float] = None
    key_requirements: List[str] = Field(default_factory=list)
    deliverables: List[str] = Field(default_factory=list)
    attributes: Dict[str, Any] = Field(default_factory=dict)
    confidence: Optional[float] = None

    @field_validator("deadline")
    @classmethod
    def _deadline_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @classmethod
    def from_loose(cls, data: Any) -> Optional["Brief"]:
        """
        Build a Brief from untrusted data (typically model JSON output).

        Unknown keys are dropped and wrongly typed values are discarded
        instead of raising, so the validator can report them as missing.
        Returns None when nothing usable was found.
        """
        if isinstance(data, Brief):
            return data
        if not isinstance(data, dict):
            return None

        values: Dict[str, Any] = {}

        for key in ("title", "description", "category", "priority"):
            text = _clean_str(data.get(key))
            if text is not None:
                values[key] = text.lower() if key in ("category", "priority") else text

        deadline = _parse_datetime(data.get("deadline"))
        if deadline is not None:
            values["deadline"] = deadline

        hours = _parse_number(data.get("estimated_hours"))
        if hours is not None:
            values["estimated_hours"] = hours

        for key in ("key_requirements", "deliverables"):
            items = _clean_str_list(data.get(key))
            if items:
                values[key] = items

        attributes = data.get("attributes")
        if isinstance(attributes, dict):
            cleaned = {
                str(k).strip(): v
                for k, v in attributes.items()
                if str(k).strip() and v is not None and v != ""
            }
            if cleaned:
                values["attributes"] = cleaned

        confidence = _parse_number(data.get("confidence"))
        if confidence is not None:
            values["confidence"] = min(max(confidence, 0.0), 1.0)

        if not values:
            return None
        return cls(**values)


@dataclass
class BriefValidation:
    """Outcome of BriefSchema.validate."""

    valid: bool
    missing_fields: List[str] = field(default_factory=list)


@dataclass
class ExtractionResult:
    """
    Output of one extraction pass over a conversation.

    Ephemeral: the session stores only `brief`; the completeness flag and
    missing fields are recomputed from scratch on every turn.
    """

    brief: Optional[Brief]
    is_complete: bool
    missing_fields: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a timestamp to an aware UTC datetime. Naive means UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _clean_str(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _clean_str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    items: List[str] = []
    for item in value:
        text = _clean_str(item)
        if text is not None:
            items.append(text)
    return items


def _parse_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    # nan and inf are not usable quantities.
    return number if math.isfinite(number) else None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    return as_utc(parsed)
