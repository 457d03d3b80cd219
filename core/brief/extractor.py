"""
core/brief/extractor.py

Conversation → Brief extraction.

The extractor is a pure function of the full message history:

    result = extractor.extract(session.messages)
    result.brief, result.is_complete, result.missing_fields

It never looks at a previously stored brief, so rerunning it on the same
history is always safe. Completeness comes only from BriefSchema.validate.

The model call itself sits behind an ExtractionBackend; failures there are
logged and turned into an empty, incomplete result so that the caller can
still persist the user's message.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from pydantic import BaseModel, ConfigDict

from core.api import openai_client
from configs.settings import settings
from exceptions.exceptions import ExtractionError
from .models import Brief, ExtractionResult
from .schema import BriefSchema, PRIORITY_LABELS


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Backend interface
# ---------------------------------------------------------------------------


class ExtractionBackend(Protocol):
    """
    Abstract backend interface for brief extraction.

    Implementations receive the transcript as a list of
    {"role": ..., "content": ...} dicts (oldest first) and return a
    JSON-like dict using Brief's field names. They should raise
    ExtractionError on failure (any exception is handled the same way).
    """

    def extract_brief(
        self,
        transcript: List[Dict[str, str]],
        schema: BriefSchema,
        now: datetime,
    ) -> Dict[str, Any]:
        ...


# ---------------------------------------------------------------------------
# BriefExtractor
# ---------------------------------------------------------------------------


def _to_transcript(messages: Sequence[Any]) -> List[Dict[str, str]]:
    """Normalize message objects or dicts into role/content dicts."""
    transcript: List[Dict[str, str]] = []
    for message in messages or []:
        if isinstance(message, dict):
            role = message.get("role")
            content = message.get("content")
        else:
            role = getattr(message, "role", None)
            content = getattr(message, "content", None)
        role = getattr(role, "value", role)
        if not isinstance(content, str) or not content.strip():
            continue
        transcript.append({"role": str(role or "user"), "content": content})
    return transcript


class BriefExtractor:
    """
    Runs extraction over a conversation and scores the result against the
    brief schema.

    Parameters
    ----------
    backend:
        Model-backed extraction capability. If None, every extraction
        returns an empty, incomplete result.
    schema:
        Required-field registry used to decide completeness.
    clock:
        Returns "now" for deadline checks (injectable for tests).
    """

    def __init__(
        self,
        backend: Optional[ExtractionBackend] = None,
        schema: Optional[BriefSchema] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.backend = backend
        self.schema = schema or BriefSchema()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def extract(self, messages: Sequence[Any]) -> ExtractionResult:
        transcript = _to_transcript(messages)
        if not any(entry["role"] == "user" for entry in transcript):
            return self.empty_result()

        if self.backend is None:
            logger.warning("[EXTRACT] No extraction backend configured")
            return self.empty_result()

        now = self._clock()
        try:
            raw = self.backend.extract_brief(transcript, self.schema, now)
        except Exception:
            logger.warning(
                "[EXTRACT] Extraction backend failed for %d messages",
                len(transcript),
                exc_info=True,
            )
            return self.empty_result()

        brief = Brief.from_loose(raw)
        validation = self.schema.validate(brief, now=now)
        return ExtractionResult(
            brief=brief,
            is_complete=validation.valid,
            missing_fields=validation.missing_fields,
        )

    def empty_result(self) -> ExtractionResult:
        return ExtractionResult(
            brief=None,
            is_complete=False,
            missing_fields=self.schema.required_fields(),
        )


# ---------------------------------------------------------------------------
# OpenAI-based backend
# ---------------------------------------------------------------------------


class ExtractedBriefModel(BaseModel):
    """Loose JSON shape returned by the model; coerced later by Brief.from_loose."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[Any] = None
    description: Optional[Any] = None
    category: Optional[Any] = None
    priority: Optional[Any] = None
    deadline: Optional[Any] = None
    estimated_hours: Optional[Any] = None
    key_requirements: Optional[Any] = None
    deliverables: Optional[Any] = None
    attributes: Optional[Any] = None
    confidence: Optional[Any] = None


class OpenAIExtractionBackend:
    """ExtractionBackend implementation using the project-local openai_client.

    This backend only knows how to formulate the prompt and parse the
    structured response. It knows nothing about sessions or storage.
    """

    def __init__(self, model: Optional[str] = None, temperature: float = 0.2) -> None:
        self.model = model or settings.extraction_model
        self.temperature = temperature

    def build_prompt(
        self,
        transcript: List[Dict[str, str]],
        schema: BriefSchema,
        now: datetime,
    ) -> str:
        lines: List[str] = []
        lines.append("Analyze this conversation and extract job brief information.")
        lines.append(f"Today is {now.date().isoformat()} (UTC).")
        lines.append("")
        lines.append("## Conversation")
        for entry in transcript:
            lines.append(f"{entry['role'].upper()}: {entry['content']}")
            lines.append("")
        lines.append("## Categories and their required attributes")
        for key in schema.category_keys:
            category = schema.get_category(key)
            names = ", ".join(spec.name for spec in category.attributes) or "none"
            lines.append(f"- {key} ({category.label}): {names}")
        lines.append("")
        lines.append("## Instructions")
        lines.append(
            "Extract only what the client actually said. Return ONE JSON object with:\n"
            '- "title": short descriptive title (max 100 chars) or null\n'
            '- "description": full description with all requirements or null\n'
            f'- "category": one of {", ".join(schema.category_keys)} or null\n'
            f'- "priority": one of {", ".join(PRIORITY_LABELS)}; "standard" unless urgency is mentioned\n'
            '- "deadline": ISO 8601 date-time if a deadline was given, else null\n'
            '- "estimated_hours": number or null\n'
            '- "key_requirements": list of strings\n'
            '- "deliverables": list of strings\n'
            '- "attributes": object holding the category\'s required attributes that are known\n'
            '- "confidence": 0.0-1.0, how complete the brief is'
        )
        lines.append("")
        lines.append(
            "Use null for anything that cannot be determined. Do NOT include markdown, "
            "code fences, or commentary around the JSON."
        )
        return "\n".join(lines)

    def extract_brief(
        self,
        transcript: List[Dict[str, str]],
        schema: BriefSchema,
        now: datetime,
    ) -> Dict[str, Any]:
        prompt = self.build_prompt(transcript, schema, now)
        try:
            result = openai_client.send_request_to_gpt(
                prompt,
                structured_output=ExtractedBriefModel,
                model=self.model,
                system_prompt="You are a JSON extraction assistant. Always return valid JSON.",
                temperature=self.temperature,
            )
        except Exception as exc:
            raise ExtractionError(f"Brief extraction failed: {exc}") from exc
        return result.model_dump()
