"""Unit tests for builder submission sanitizing."""

import asyncio

import pytest

from medidoc.strategies.builder import BuilderSchema, sanitize_submission, validate_submission

from conftest import APPOINTMENT_ID, DOCTOR_ID, OTHER_DOCTOR_ID, PATIENT_ID, TODAY


def schema_of(*elements) -> BuilderSchema:
    return BuilderSchema.model_validate(
        {
            "version": 2,
            "elements": [
                {"id": f"e{index}", "label": e["name"].replace("_", " ").title(), **e}
                for index, e in enumerate(elements)
            ],
        }
    )


LOCKED_NAME = {
    "type": "text",
    "name": "patient_name",
    "required": True,
    "prefill": {"enabled": True, "source": "patient", "field": "patient_name", "readonly": True},
}


# =============================================================================
# Locked Field Tests
# =============================================================================


class TestLockedFields:
    """Test suite for read-only prefill enforcement."""

    def test_tampered_value_replaced(self, prefill_data):
        """Test that a client cannot override a locked field."""
        schema = schema_of(LOCKED_NAME)
        result = sanitize_submission(schema, {"patient_name": "TAMPERED"}, prefill_data, TODAY)
        assert result.valid
        assert result.sanitized_data == {"patient_name": "Jane Doe"}

    def test_missing_locked_value_filled(self, prefill_data):
        """Test that an omitted locked field still receives its value."""
        schema = schema_of(LOCKED_NAME)
        result = sanitize_submission(schema, {}, prefill_data, TODAY)
        assert result.sanitized_data == {"patient_name": "Jane Doe"}

    def test_editable_prefill_keeps_client_value(self, prefill_data):
        """Test that prefilled fields without the lock accept edits."""
        schema = schema_of(
            {
                "type": "text",
                "name": "clinic",
                "prefill": {"enabled": True, "source": "doctor", "field": "clinic"},
            }
        )
        result = sanitize_submission(schema, {"clinic": "Annex"}, prefill_data, TODAY)
        assert result.sanitized_data == {"clinic": "Annex"}

    def test_locked_without_source_data(self, prefill_data):
        """Test that a required locked field with no source data is an error."""
        schema = schema_of(LOCKED_NAME)
        no_patient = prefill_data.model_copy(update={"patient": None})
        result = sanitize_submission(schema, {"patient_name": "TAMPERED"}, no_patient, TODAY)
        assert not result.valid
        assert result.errors == ["Patient Name is required"]
        assert "patient_name" not in result.sanitized_data


# =============================================================================
# Validation Tests
# =============================================================================


class TestSubmissionValidation:
    """Test suite for field validation."""

    def test_all_errors_collected(self, prefill_data):
        """Test that every failing field is reported."""
        schema = schema_of(
            {"type": "paragraph", "name": "diagnosis", "required": True},
            {"type": "text", "name": "notes", "required": True},
            {"type": "text", "name": "optional"},
        )
        result = sanitize_submission(schema, {"diagnosis": "  ", "notes": None}, prefill_data, TODAY)
        assert not result.valid
        assert result.errors == ["Diagnosis is required", "Notes is required"]

    def test_unknown_keys_dropped(self, prefill_data):
        """Test that only schema fields survive sanitizing."""
        schema = schema_of({"type": "text", "name": "notes"})
        result = sanitize_submission(
            schema, {"notes": "ok", "is_admin": True}, prefill_data, TODAY
        )
        assert result.sanitized_data == {"notes": "ok"}

    def test_layout_elements_ignored(self, prefill_data):
        """Test that headers and dividers never carry values."""
        schema = schema_of({"type": "header", "name": "title"}, {"type": "divider", "name": "rule"})
        result = sanitize_submission(schema, {"title": "x", "rule": "y"}, prefill_data, TODAY)
        assert result.valid
        assert result.sanitized_data == {}

    def test_calculated_field_recomputed(self, prefill_data):
        """Test that client-sent calculated values are replaced."""
        schema = schema_of(
            {"type": "number", "name": "weight"},
            {"type": "number", "name": "height"},
            {"type": "calculated", "name": "bmi", "properties": {"calculation": "bmi"}},
        )
        result = sanitize_submission(
            schema, {"weight": 70, "height": 175, "bmi": 99}, prefill_data, TODAY
        )
        assert result.valid
        assert result.sanitized_data["bmi"] == 22.9

    def test_pattern_must_match_whole_value(self, prefill_data):
        """Test that patterns are anchored to the full value."""
        schema = schema_of(
            {
                "type": "text",
                "name": "pin",
                "validation": {"pattern": r"\d{3}", "message": "PIN must be three digits"},
            }
        )
        assert sanitize_submission(schema, {"pin": "123"}, prefill_data, TODAY).valid
        result = sanitize_submission(schema, {"pin": "1234"}, prefill_data, TODAY)
        assert result.errors == ["PIN must be three digits"]

    def test_number_bounds(self, prefill_data):
        schema = schema_of(
            {"type": "number", "name": "age", "properties": {"min": 0, "max": 120}},
        )
        assert sanitize_submission(schema, {"age": "150"}, prefill_data, TODAY).errors == [
            "Age must be at most 120"
        ]
        assert sanitize_submission(schema, {"age": "old"}, prefill_data, TODAY).errors == [
            "Age must be a number"
        ]

    @pytest.mark.parametrize("raw", ["nan", "inf", "-Infinity", float("nan")])
    def test_non_finite_numbers_rejected(self, prefill_data, raw):
        """Test that NaN and infinity cannot slip past a bounded number field."""
        schema = schema_of(
            {
                "type": "number",
                "name": "weight",
                "required": True,
                "properties": {"min": 1, "max": 500},
            },
        )
        result = sanitize_submission(schema, {"weight": raw}, prefill_data, TODAY)
        assert not result.valid
        assert result.errors == ["Weight must be a number"]

    def test_choice_must_be_an_option(self, prefill_data):
        schema = schema_of(
            {"type": "dropdown", "name": "visit_type", "properties": {"options": ["New", "Follow-up"]}},
        )
        assert sanitize_submission(schema, {"visit_type": "New"}, prefill_data, TODAY).valid
        result = sanitize_submission(schema, {"visit_type": "Other"}, prefill_data, TODAY)
        assert result.errors == ["Visit Type must be one of: New, Follow-up"]

    def test_date_format(self, prefill_data):
        schema = schema_of({"type": "date", "name": "follow_up"})
        result = sanitize_submission(schema, {"follow_up": "next week"}, prefill_data, TODAY)
        assert result.errors == ["Follow Up must be a date (YYYY-MM-DD)"]

    def test_length_rules(self, prefill_data):
        schema = schema_of(
            {"type": "text", "name": "code", "validation": {"min_length": 2, "max_length": 4}},
        )
        assert sanitize_submission(schema, {"code": "A"}, prefill_data, TODAY).errors == [
            "Code must be at least 2 characters"
        ]
        assert sanitize_submission(schema, {"code": "ABCDE"}, prefill_data, TODAY).errors == [
            "Code must be at most 4 characters"
        ]


# =============================================================================
# Record Store Tests
# =============================================================================


class TestValidateSubmission:
    """Test suite for submission checks against stored records."""

    @pytest.fixture
    def schema(self):
        return schema_of(
            LOCKED_NAME,
            {
                "type": "text",
                "name": "visit_time",
                "prefill": {
                    "enabled": True,
                    "source": "appointment",
                    "field": "time",
                    "readonly": True,
                },
            },
        )

    def test_prefill_rebuilt_from_records(self, schema, record_store):
        """Test that locked values come from the owning doctor's records."""
        result = asyncio.run(
            validate_submission(
                schema,
                {"patient_name": "TAMPERED", "visit_time": "23:59"},
                record_store,
                DOCTOR_ID,
                PATIENT_ID,
                APPOINTMENT_ID,
            )
        )
        assert result.valid
        assert result.sanitized_data == {"patient_name": "Jane Doe", "visit_time": "14:30"}

    def test_other_doctors_records_not_visible(self, schema, record_store):
        """Test that records owned by another doctor are never used."""
        result = asyncio.run(
            validate_submission(
                schema,
                {"patient_name": "Jane Doe"},
                record_store,
                OTHER_DOCTOR_ID,
                PATIENT_ID,
                APPOINTMENT_ID,
            )
        )
        assert not result.valid
        assert result.errors == ["Patient Name is required"]
