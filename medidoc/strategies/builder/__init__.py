"""Builder (V2) form engine.

Typed form schemas, prefill resolution, calculated fields and
server-side submission sanitizing.
"""

from medidoc.strategies.builder.calculations import execute_calculation
from medidoc.strategies.builder.models import (
    BuilderElement,
    BuilderSchema,
    ElementType,
    PrefillConfig,
    PrefillData,
    PrefillSource,
    SubmissionResult,
)
from medidoc.strategies.builder.prefill import (
    apply_prefill,
    build_prefill_data,
    get_prefill_value,
    get_system_data,
    initial_form_values,
    is_field_read_only,
)
from medidoc.strategies.builder.schema import (
    PREFILL_FIELDS,
    MigrationResult,
    SchemaValidationError,
    convert_legacy_schema,
    ensure_valid_schema,
    validate_schema,
)
from medidoc.strategies.builder.submission import (
    load_prefill_data,
    sanitize_submission,
    validate_submission,
)

__all__ = [
    "PREFILL_FIELDS",
    "BuilderElement",
    "BuilderSchema",
    "ElementType",
    "MigrationResult",
    "PrefillConfig",
    "PrefillData",
    "PrefillSource",
    "SchemaValidationError",
    "SubmissionResult",
    "apply_prefill",
    "build_prefill_data",
    "convert_legacy_schema",
    "ensure_valid_schema",
    "execute_calculation",
    "get_prefill_value",
    "get_system_data",
    "initial_form_values",
    "is_field_read_only",
    "load_prefill_data",
    "sanitize_submission",
    "validate_schema",
    "validate_submission",
]
