"""Template engine strategies.

Implements V1 placeholder substitution, document data assembly and
template content validation.
"""

from medidoc.strategies.template_engine.assembler import (
    calculate_age,
    format_long_date,
    format_time,
    prepare_document_data,
)
from medidoc.strategies.template_engine.defaults import AVAILABLE_VARIABLES, DEFAULT_TEMPLATES
from medidoc.strategies.template_engine.models import (
    DEFAULT_PAGE_SETTINGS,
    DEFAULT_STYLES,
    DocumentData,
    TemplateCategory,
    TemplateContent,
)
from medidoc.strategies.template_engine.resolver import (
    NOT_PROVIDED,
    extract_placeholders,
    find_missing_variables,
    substitute_variables,
)
from medidoc.strategies.template_engine.validator import (
    TemplateValidationError,
    ensure_valid_template_content,
    is_valid_template_content,
)

__all__ = [
    "AVAILABLE_VARIABLES",
    "DEFAULT_PAGE_SETTINGS",
    "DEFAULT_STYLES",
    "DEFAULT_TEMPLATES",
    "NOT_PROVIDED",
    "DocumentData",
    "TemplateCategory",
    "TemplateContent",
    "TemplateValidationError",
    "calculate_age",
    "ensure_valid_template_content",
    "extract_placeholders",
    "find_missing_variables",
    "format_long_date",
    "format_time",
    "is_valid_template_content",
    "prepare_document_data",
    "substitute_variables",
]
