"""
core/brief/schema.py

Required-field registry and validator for briefs.

The set of required fields is owned here, not by the extractor:

- every brief needs the base fields (title, description, category, priority)
- each category contributes its own required attributes, registered as a
  CategorySchema keyed by the category id

Missing category attributes are reported as "attributes.<name>", e.g.

    BriefSchema().validate({"title": "Promo", "category": "video"}).missing_fields
    -> ["description", "priority", "attributes.duration", "attributes.publish_platform"]

Registering a new CategorySchema is enough to add a category; nothing that
calls validate() needs to change.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .models import Brief, BriefValidation


BASE_REQUIRED_FIELDS = ("title", "description", "category", "priority")

TITLE_MAX_CHARS = 200

PRIORITY_LABELS: Dict[str, str] = {
    "standard": "Standard (48 hours)",
    "priority": "Priority (24 hours)",
    "rush": "Rush (12 hours)",
}

BASE_FIELD_QUESTIONS: Dict[str, str] = {
    "title": "What would you call this task in a few words?",
    "description": "Can you describe what you need done in a bit more detail?",
    "category": "What kind of work is this (video, design, web, social, admin, or something else)?",
    "priority": "How urgent is this: standard (48h), priority (24h), or rush (12h)?",
    "deadline": "When do you need this completed?",
    "estimated_hours": "Roughly how many hours do you expect this to take?",
}


def _non_empty(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) > 0
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float))


def _positive_int(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value > 0
    if isinstance(value, float):
        return value.is_integer() and value > 0
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip()) > 0
    return False


@dataclass
class AttributeSpec:
    """One category-specific required attribute."""

    name: str
    question: str
    check: Callable[[Any], bool] = _non_empty


@dataclass
class CategorySchema:
    """
    Capability set for a single category: its label, the attributes it
    requires, and the general follow-up questions worth asking.
    """

    key: str
    label: str
    attributes: List[AttributeSpec] = field(default_factory=list)
    questions: List[str] = field(default_factory=list)

    def missing_attributes(self, attributes: Dict[str, Any]) -> List[str]:
        missing: List[str] = []
        for spec in self.attributes:
            value = attributes.get(spec.name)
            if value is None or not spec.check(value):
                missing.append(f"attributes.{spec.name}")
        return missing

    def attribute(self, name: str) -> Optional[AttributeSpec]:
        for spec in self.attributes:
            if spec.name == name:
                return spec
        return None


DEFAULT_CATEGORIES: List[CategorySchema] = [
    CategorySchema(
        key="video",
        label="Video Editing",
        attributes=[
            AttributeSpec("duration", "What's the target length of the video?"),
            AttributeSpec("publish_platform", "Where will this video be published?"),
        ],
        questions=[
            "Do you have raw footage, or do you need stock footage?",
            "What style are you going for? (e.g., fast-paced, cinematic, tutorial)",
            "Do you have any brand guidelines or color preferences?",
        ],
    ),
    CategorySchema(
        key="design",
        label="Graphic Design",
        attributes=[
            AttributeSpec("dimensions", "What are the dimensions/size requirements?"),
            AttributeSpec("usage", "Where will this design be used? (print, web, social)"),
        ],
        questions=[
            "Do you have brand colors and fonts to use?",
            "What's the main message or call-to-action?",
            "Any reference designs or styles you like?",
        ],
    ),
    CategorySchema(
        key="web",
        label="Web Development",
        attributes=[
            AttributeSpec("platform", "What platform is the site built on?"),
        ],
        questions=[
            "Is this a new page or updates to an existing one?",
            "Do you have the content ready, or do you need copy as well?",
            "Any specific functionality needed? (forms, animations, etc.)",
        ],
    ),
    CategorySchema(
        key="social",
        label="Social Media",
        attributes=[
            AttributeSpec("platforms", "Which platforms is this for?"),
            AttributeSpec(
                "post_count",
                "How many posts/pieces do you need?",
                check=_positive_int,
            ),
        ],
        questions=[
            "Do you have brand voice guidelines?",
            "Any specific topics or themes to cover?",
        ],
    ),
    CategorySchema(
        key="admin",
        label="Admin Tasks",
        attributes=[
            AttributeSpec("output_format", "What format should the output be in?"),
        ],
        questions=[
            "How much data are we working with?",
            "Are there any specific tools or templates to use?",
        ],
    ),
    CategorySchema(
        key="other",
        label="Other",
        questions=[
            "Can you describe the expected output in more detail?",
            "What tools or software might be involved?",
            "Who is the audience for this deliverable?",
        ],
    ),
]


class BriefSchema:
    """
    Validates partial or complete briefs against the base fields plus the
    attributes required by the brief's category.
    """

    def __init__(self, categories: Optional[Iterable[CategorySchema]] = None) -> None:
        self._categories: Dict[str, CategorySchema] = {}
        for category in DEFAULT_CATEGORIES if categories is None else categories:
            self.register(category)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register(self, category: CategorySchema) -> None:
        """Add or replace a category."""
        self._categories[category.key] = category

    def get_category(self, key: Optional[str]) -> Optional[CategorySchema]:
        if not key:
            return None
        return self._categories.get(key)

    @property
    def category_keys(self) -> List[str]:
        return list(self._categories.keys())

    def category_label(self, key: Optional[str]) -> str:
        category = self.get_category(key)
        return category.label if category else (key or "Unknown")

    def required_fields(self, category: Optional[str] = None) -> List[str]:
        """Base required fields, followed by the category's attributes."""
        fields = list(BASE_REQUIRED_FIELDS)
        schema = self.get_category(category)
        if schema is not None:
            fields.extend(f"attributes.{spec.name}" for spec in schema.attributes)
        return fields

    def question_for(self, field_id: str, category: Optional[str] = None) -> Optional[str]:
        """Return the follow-up question that fills `field_id`, if known."""
        if field_id.startswith("attributes."):
            schema = self.get_category(category)
            if schema is None:
                return None
            spec = schema.attribute(field_id.split(".", 1)[1])
            return spec.question if spec else None
        return BASE_FIELD_QUESTIONS.get(field_id)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(
        self,
        brief: Union[Brief, Dict[str, Any], None],
        now: Optional[datetime] = None,
    ) -> BriefValidation:
        """
        Check which required fields are absent or invalid.

        Required fields that are absent or fail their check are listed in
        schema order. Optional fields (deadline, estimated_hours) are only
        listed when present but invalid.
        """
        if brief is not None and not isinstance(brief, Brief):
            brief = Brief.from_loose(brief)
        if brief is None:
            return BriefValidation(valid=False, missing_fields=list(BASE_REQUIRED_FIELDS))

        now = now or datetime.now(timezone.utc)
        missing: List[str] = []

        if not brief.title or len(brief.title) > TITLE_MAX_CHARS:
            missing.append("title")
        if not brief.description or not brief.description.strip():
            missing.append("description")

        category = self.get_category(brief.category)
        if category is None:
            missing.append("category")
        if brief.priority not in PRIORITY_LABELS:
            missing.append("priority")

        if brief.deadline is not None and brief.deadline <= now:
            missing.append("deadline")
        if brief.estimated_hours is not None and (
            not math.isfinite(brief.estimated_hours) or brief.estimated_hours <= 0
        ):
            missing.append("estimated_hours")

        if category is not None:
            missing.extend(category.missing_attributes(brief.attributes))

        return BriefValidation(valid=not missing, missing_fields=missing)
