"""Unit tests for builder schema validation and migration."""

import pytest

from medidoc.strategies.builder import (
    BuilderElement,
    BuilderSchema,
    ElementType,
    PrefillSource,
    SchemaValidationError,
    convert_legacy_schema,
    ensure_valid_schema,
    validate_schema,
)
from medidoc.strategies.builder.schema import (
    can_be_prefilled,
    can_be_required,
    clone_element,
    create_default_element,
    generate_field_name,
    is_input_element,
    reorder_elements,
)


def element(name, element_type="text", **extra) -> BuilderElement:
    return BuilderElement.model_validate(
        {"id": f"el_{name}", "type": element_type, "label": name.title(), "name": name, **extra}
    )


# =============================================================================
# Parsing Tests
# =============================================================================


class TestSchemaParsing:
    """Test suite for reading stored schemas."""

    def test_camel_case_keys(self):
        """Test that stored camelCase keys populate the models."""
        schema = BuilderSchema.model_validate(
            {
                "version": 2,
                "elements": [
                    {
                        "id": "e1",
                        "type": "date",
                        "label": "Visit Date",
                        "name": "visit_date",
                        "properties": {"useCurrentDate": True, "helpText": "Today"},
                    }
                ],
            }
        )
        assert schema.elements[0].type == ElementType.DATE
        assert schema.elements[0].properties.use_current_date is True
        assert schema.elements[0].properties.help_text == "Today"

    def test_storage_uses_camel_case(self):
        """Test that serialized schemas use camelCase keys."""
        schema = BuilderSchema(elements=[element("visit", "date", properties={"use_current_date": True})])
        stored = schema.to_storage()
        assert stored["version"] == 2
        assert stored["elements"][0]["properties"]["useCurrentDate"] is True
        assert stored["elements"][0]["type"] == "date"


# =============================================================================
# Validation Tests
# =============================================================================


class TestValidateSchema:
    """Test suite for schema validation."""

    def test_valid_schema(self):
        """Test that a well-formed schema has no errors."""
        schema = BuilderSchema(
            elements=[
                element(
                    "patient_name",
                    prefill={"enabled": True, "source": "patient", "field": "patient_name"},
                ),
                element("visit_type", "dropdown", properties={"options": ["New", "Follow-up"]}),
                element("bmi", "calculated", properties={"calculation": "bmi"}),
                element("section", "header"),
            ]
        )
        assert validate_schema(schema) == []

    def test_duplicate_names_rejected(self):
        """Test that two elements may not share a field name."""
        schema = BuilderSchema(elements=[element("notes"), element("notes", "paragraph")])
        assert "Duplicate field name: notes" in validate_schema(schema)

    def test_options_required_for_choices(self):
        """Test that dropdown and radio elements need options."""
        schema = BuilderSchema(elements=[element("choice", "radio")])
        assert validate_schema(schema) == ["Element 1: Radio Buttons must have at least one option"]

    def test_calculated_needs_calculation(self):
        """Test that calculated elements must name a calculation."""
        schema = BuilderSchema(elements=[element("score", "calculated")])
        assert validate_schema(schema) == ["Element 1: Calculated Field must declare a calculation"]

    def test_custom_calculation_needs_formula(self):
        """Test that custom calculations must supply a formula."""
        schema = BuilderSchema(
            elements=[element("score", "calculated", properties={"calculation": "custom"})]
        )
        assert validate_schema(schema) == ["Element 1: Custom calculation requires a formula"]

    def test_custom_formula_must_parse(self):
        """Test that broken or oversized formulas are rejected when saved."""
        long_formula = "+".join(["{a}"] * 3000)
        schema = BuilderSchema(
            elements=[
                element("a", "number"),
                element(
                    "ok",
                    "calculated",
                    properties={"calculation": "custom", "calculation_formula": "{a} * 2"},
                ),
                element(
                    "open",
                    "calculated",
                    properties={"calculation": "custom", "calculation_formula": "({a} * 2"},
                ),
                element(
                    "long",
                    "calculated",
                    properties={"calculation": "custom", "calculation_formula": long_formula},
                ),
            ]
        )
        assert validate_schema(schema) == [
            "Element 3: Custom formula rejected: Formula error",
            "Element 4: Custom formula rejected: Formula error",
        ]

    def test_unknown_prefill_field(self):
        """Test that prefill fields must belong to their source."""
        schema = BuilderSchema(
            elements=[
                element("clinic", prefill={"enabled": True, "source": "patient", "field": "clinic"})
            ]
        )
        assert validate_schema(schema) == [
            "Element 1: Unknown prefill field 'clinic' for source 'patient'"
        ]

    def test_prefill_field_prefix_optional(self):
        """Test that prefixed and bare prefill keys are both accepted."""
        schema = BuilderSchema(
            elements=[
                element("a", prefill={"enabled": True, "source": "doctor", "field": "doctor_clinic"}),
                element("b", prefill={"enabled": True, "source": "doctor", "field": "clinic"}),
            ]
        )
        assert validate_schema(schema) == []

    def test_invalid_pattern(self):
        """Test that validation patterns must compile."""
        schema = BuilderSchema(elements=[element("code", validation={"pattern": "[a-z"})])
        assert validate_schema(schema) == ["Element 1: Invalid validation pattern: [a-z"]

    def test_errors_are_collected(self):
        """Test that every problem is reported, not just the first."""
        schema = BuilderSchema(
            elements=[element("x", "dropdown"), element("x", "calculated")]
        )
        assert len(validate_schema(schema)) == 3

    def test_ensure_valid_schema_raises(self):
        """Test that ensure_valid_schema exposes the error list."""
        schema = BuilderSchema(elements=[element("dup"), element("dup")])
        with pytest.raises(SchemaValidationError) as exc_info:
            ensure_valid_schema(schema)
        assert exc_info.value.errors == ["Duplicate field name: dup"]


# =============================================================================
# Authoring Helper Tests
# =============================================================================


class TestAuthoringHelpers:
    """Test suite for element creation and arrangement helpers."""

    def test_generate_field_name(self):
        """Test label to snake_case conversion."""
        assert generate_field_name("Patient Name!") == "patient_name"
        assert generate_field_name("  Blood   Pressure ") == "blood_pressure"

    def test_default_dropdown(self):
        """Test defaults for a new dropdown."""
        new = create_default_element(ElementType.DROPDOWN)
        assert new.name == "dropdown"
        assert new.properties.options == ["Option 1", "Option 2", "Option 3"]
        assert new.id.startswith("el_")

    def test_default_header(self):
        """Test defaults for a new header."""
        new = create_default_element(ElementType.HEADER)
        assert new.properties.font_size == "large"
        assert new.properties.alignment == "left"

    def test_capabilities(self):
        """Test which element types may be prefilled or required."""
        assert can_be_prefilled(ElementType.DATE)
        assert not can_be_prefilled(ElementType.PARAGRAPH)
        assert can_be_required(ElementType.TEXT)
        assert not can_be_required(ElementType.CALCULATED)
        assert not can_be_required(ElementType.DIVIDER)
        assert is_input_element(ElementType.CALCULATED)
        assert not is_input_element(ElementType.HEADER)

    def test_reorder_renumbers_rows(self):
        """Test that moving an element renumbers every row."""
        elements = [element("a"), element("b"), element("c")]
        reordered = reorder_elements(elements, 2, 0)
        assert [e.name for e in reordered] == ["c", "a", "b"]
        assert [e.position.row for e in reordered] == [0, 1, 2]

    def test_clone_element(self):
        """Test that clones get a fresh id and a distinct name."""
        original = element("notes")
        copy = clone_element(original)
        assert copy.id != original.id
        assert copy.name == "notes_copy"
        assert copy.position.row == original.position.row + 1


# =============================================================================
# Migration Tests
# =============================================================================


class TestConvertLegacySchema:
    """Test suite for V1 -> V2 migration."""

    def test_variables_become_elements(self):
        """Test that known paths gain matching prefill rules."""
        result = convert_legacy_schema(
            {
                "version": "1.0",
                "variables": ["patient.name", "patient.age", "doctor.clinic_name", "document.date"],
                "content": "ignored",
            }
        )
        elements = result.schema.elements
        assert [e.name for e in elements] == [
            "patient_name",
            "patient_age",
            "doctor_clinic_name",
            "document_date",
        ]
        assert elements[0].prefill.source == PrefillSource.PATIENT
        assert elements[0].prefill.field == "patient_name"
        assert elements[1].type == ElementType.NUMBER
        assert elements[2].prefill.field == "doctor_clinic"
        assert elements[3].type == ElementType.DATE
        assert elements[3].properties.use_current_date is True
        assert result.warnings == []
        assert len(result.changes) == 4
        assert validate_schema(result.schema) == []

    def test_unmapped_variable_warns(self):
        """Test that paths without a prefill source become plain text with a warning."""
        result = convert_legacy_schema({"variables": ["custom.referral_code"]})
        assert result.schema.elements[0].type == ElementType.TEXT
        assert result.schema.elements[0].prefill is None
        assert len(result.warnings) == 1

    def test_variable_objects(self):
        """Test that object-style variables keep their label and required flag."""
        result = convert_legacy_schema(
            {"variables": [{"name": "ref", "label": "Referral", "required": True}]}
        )
        converted = result.schema.elements[0]
        assert (converted.name, converted.label, converted.required) == ("ref", "Referral", True)

    def test_duplicates_skipped(self):
        """Test that a repeated variable only produces one element."""
        result = convert_legacy_schema({"variables": ["patient.name", "patient.name"]})
        assert len(result.schema.elements) == 1
        assert result.warnings == ["Skipped duplicate field 'patient_name'"]

    def test_no_variables(self):
        """Test that a template without variables yields an empty schema."""
        result = convert_legacy_schema({"version": "1.0", "content": "x"})
        assert result.schema.elements == []
        assert len(result.warnings) == 1
