"""Placeholder substitution for V1 templates.

Replaces ``{{section.field}}`` placeholders with values from a
:class:`DocumentData` bag. Unresolvable paths never raise; they render
as :data:`NOT_PROVIDED` so a document can always be produced.
"""

import logging
import re
from typing import Any

from pydantic import BaseModel

from medidoc.strategies.template_engine.models import DocumentData, TemplateContent

logger = logging.getLogger(__name__)

NOT_PROVIDED = "[Not provided]"

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")

# Sentinel for "the walk fell off the data bag", distinct from an explicit None.
_MISSING = object()


def _lookup(node: Any, key: str) -> Any:
    """Take one step of a dotted path through the data bag."""
    if isinstance(node, BaseModel):
        if key not in type(node).model_fields:
            return _MISSING
        return getattr(node, key)
    if isinstance(node, dict):
        return node.get(key, _MISSING)
    return _MISSING


def resolve_path(data: DocumentData | dict[str, Any], path: str) -> Any:
    """Walk ``path`` through ``data`` one segment at a time.

    Returns:
        The resolved value, or None when any segment is absent.
    """
    node: Any = data
    for key in path.split("."):
        node = _lookup(node, key)
        if node is _MISSING or node is None:
            return None
    return node


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def extract_placeholders(content: str) -> list[str]:
    """Return the distinct placeholder paths in order of first appearance."""
    seen: dict[str, None] = {}
    for match in PLACEHOLDER_PATTERN.finditer(content):
        seen.setdefault(match.group(1).strip(), None)
    return list(seen)


def substitute_variables(content: str, data: DocumentData | dict[str, Any]) -> str:
    """Substitute every ``{{path}}`` placeholder in ``content``.

    Placeholders are resolved by their exact literal text: each distinct
    placeholder is looked up once and every occurrence of that text is
    replaced. Substituted values are not scanned again.

    Args:
        content: Template text.
        data: The data bag to resolve against.

    Returns:
        The filled text.
    """
    resolved: dict[str, str] = {}

    def replace(match: re.Match[str]) -> str:
        placeholder = match.group(0)
        if placeholder not in resolved:
            value = resolve_path(data, match.group(1).strip())
            resolved[placeholder] = NOT_PROVIDED if value is None else _render_value(value)
        return resolved[placeholder]

    result = PLACEHOLDER_PATTERN.sub(replace, content)

    missing = [text for text, value in resolved.items() if value == NOT_PROVIDED]
    if missing:
        logger.debug(f"Placeholders rendered as not provided: {missing}")

    return result


def find_missing_variables(
    template: TemplateContent, data: DocumentData | dict[str, Any]
) -> list[str]:
    """List declared template variables that the data bag cannot satisfy."""
    return [path for path in template.variables if resolve_path(data, path) is None]
