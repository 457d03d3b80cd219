"""Tests for the brief model and required-field schema."""

from datetime import datetime, timedelta, timezone

import pytest

from core.brief.models import Brief
from core.brief.schema import (
    AttributeSpec,
    BASE_REQUIRED_FIELDS,
    BriefSchema,
    CategorySchema,
)

from conftest import NOW, complete_brief_data, partial_brief_data


# =============================================================================
# Brief.from_loose
# =============================================================================


class TestBriefFromLoose:
    """Lenient coercion of model output."""

    def test_none_and_non_dict_yield_none(self):
        assert Brief.from_loose(None) is None
        assert Brief.from_loose("a brief") is None
        assert Brief.from_loose({}) is None

    def test_unknown_keys_are_dropped(self):
        brief = Brief.from_loose({"title": "Logo", "budget": 500})
        assert brief.title == "Logo"
        assert not hasattr(brief, "budget")

    def test_wrong_types_are_discarded(self):
        brief = Brief.from_loose(
            {
                "title": 42,
                "description": "Needs a logo",
                "estimated_hours": "several",
                "key_requirements": "not a list",
                "confidence": True,
            }
        )
        assert brief.title is None
        assert brief.description == "Needs a logo"
        assert brief.estimated_hours is None
        assert brief.key_requirements == []
        assert brief.confidence is None

    def test_category_and_priority_are_lowercased(self):
        brief = Brief.from_loose({"category": " Design ", "priority": "RUSH"})
        assert brief.category == "design"
        assert brief.priority == "rush"

    def test_deadline_with_z_suffix_is_utc(self):
        brief = Brief.from_loose({"deadline": "2030-01-10T17:00:00Z"})
        assert brief.deadline == datetime(2030, 1, 10, 17, 0, tzinfo=timezone.utc)

    def test_naive_deadline_is_treated_as_utc(self):
        brief = Brief.from_loose({"deadline": "2030-01-10T17:00:00"})
        assert brief.deadline.tzinfo is not None

    def test_offset_deadline_is_converted_to_utc(self):
        brief = Brief.from_loose({"deadline": "2030-01-10T17:00:00+07:00"})
        assert brief.deadline == datetime(2030, 1, 10, 10, 0, tzinfo=timezone.utc)
        assert brief.deadline.utcoffset() == timedelta(0)

    @pytest.mark.parametrize("raw", ["nan", "inf", "-Infinity", float("nan"), float("inf")])
    def test_non_finite_numbers_are_discarded(self, raw):
        brief = Brief.from_loose({"title": "Banner", "estimated_hours": raw})
        assert brief.estimated_hours is None

    def test_numeric_strings_and_confidence_clamp(self):
        brief = Brief.from_loose({"estimated_hours": "2.5", "confidence": 7})
        assert brief.estimated_hours == 2.5
        assert brief.confidence == 1.0

    def test_empty_attribute_values_are_dropped(self):
        brief = Brief.from_loose({"attributes": {"duration": "", "usage": None, "platform": "Shopify"}})
        assert brief.attributes == {"platform": "Shopify"}


# =============================================================================
# BriefSchema.validate
# =============================================================================


class TestBriefSchemaValidate:
    """Missing-field computation."""

    def test_none_reports_base_fields(self, schema):
        result = schema.validate(None)
        assert not result.valid
        assert result.missing_fields == list(BASE_REQUIRED_FIELDS)

    def test_complete_brief_is_valid(self, schema):
        result = schema.validate(complete_brief_data(), now=NOW)
        assert result.valid
        assert result.missing_fields == []

    def test_category_attributes_reported_with_prefix(self, schema):
        result = schema.validate(partial_brief_data(), now=NOW)
        assert not result.valid
        assert result.missing_fields == [
            "attributes.duration",
            "attributes.publish_platform",
        ]

    def test_base_fields_reported_in_order(self, schema):
        result = schema.validate({"title": "Promo", "category": "video"}, now=NOW)
        assert result.missing_fields == [
            "description",
            "priority",
            "attributes.duration",
            "attributes.publish_platform",
        ]

    def test_unknown_category_and_priority_are_missing(self, schema):
        data = partial_brief_data()
        data.update(category="pottery", priority="whenever")
        result = schema.validate(data, now=NOW)
        assert "category" in result.missing_fields
        assert "priority" in result.missing_fields

    def test_title_longer_than_limit_is_invalid(self, schema):
        data = complete_brief_data()
        data["title"] = "x" * 201
        assert schema.validate(data, now=NOW).missing_fields == ["title"]

    def test_past_deadline_is_reported(self, schema):
        data = complete_brief_data()
        data["deadline"] = (NOW - timedelta(days=1)).isoformat()
        assert schema.validate(data, now=NOW).missing_fields == ["deadline"]

    def test_non_positive_hours_are_reported(self, schema):
        data = complete_brief_data()
        data["estimated_hours"] = 0
        assert schema.validate(data, now=NOW).missing_fields == ["estimated_hours"]

    def test_non_finite_hours_are_reported(self, schema):
        brief = Brief.from_loose(complete_brief_data()).model_copy(
            update={"estimated_hours": float("inf")}
        )
        assert schema.validate(brief, now=NOW).missing_fields == ["estimated_hours"]

    def test_absent_optional_fields_are_not_required(self, schema):
        data = complete_brief_data()
        del data["deadline"]
        del data["estimated_hours"]
        assert schema.validate(data, now=NOW).valid

    @pytest.mark.parametrize("count, valid", [(3, True), ("5", True), (0, False), ("many", False)])
    def test_social_post_count_must_be_positive_int(self, schema, count, valid):
        data = partial_brief_data()
        data.update(category="social", attributes={"platforms": ["Instagram"], "post_count": count})
        result = schema.validate(data, now=NOW)
        assert result.valid is valid

    def test_other_category_needs_no_attributes(self, schema):
        data = partial_brief_data()
        data["category"] = "other"
        assert schema.validate(data, now=NOW).valid


# =============================================================================
# Registry
# =============================================================================


class TestCategoryRegistry:
    """Adding categories and looking up questions."""

    def test_registering_a_category_changes_requirements(self):
        schema = BriefSchema()
        schema.register(
            CategorySchema(
                key="audio",
                label="Audio Editing",
                attributes=[AttributeSpec("format", "Which audio format do you need?")],
            )
        )
        data = partial_brief_data()
        data["category"] = "audio"

        result = schema.validate(data, now=NOW)
        assert result.missing_fields == ["attributes.format"]
        assert schema.question_for("attributes.format", "audio") == "Which audio format do you need?"

    def test_required_fields_for_category(self, schema):
        assert schema.required_fields("design") == [
            "title",
            "description",
            "category",
            "priority",
            "attributes.dimensions",
            "attributes.usage",
        ]

    def test_question_for_unknown_field(self, schema):
        assert schema.question_for("attributes.duration", None) is None
        assert schema.question_for("title") is not None

    def test_category_label_falls_back_to_key(self, schema):
        assert schema.category_label("web") == "Web Development"
        assert schema.category_label("pottery") == "pottery"
