"""Structural checks for V1 template content."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel


class TemplateValidationError(ValueError):
    """Raised when template content fails the structural check."""


def is_valid_template_content(content: Any) -> bool:
    """Return True if ``content`` has the V1 template shape.

    Checks only the top-level structure: ``version`` is the literal "1.0",
    ``variables`` and ``elements`` are lists and ``content`` is a string.
    Placeholders are not checked against the declared variables.
    """
    if isinstance(content, BaseModel):
        content = content.model_dump(by_alias=True)

    if not isinstance(content, Mapping):
        return False

    return (
        content.get("version") == "1.0"
        and isinstance(content.get("variables"), list)
        and isinstance(content.get("elements"), list)
        and isinstance(content.get("content"), str)
    )


def ensure_valid_template_content(content: Any) -> None:
    """Raise :class:`TemplateValidationError` if ``content`` is not a V1 template."""
    if not is_valid_template_content(content):
        raise TemplateValidationError("Invalid template content")
