"""Masking of sensitive request fields before persistence.

Values of fields named in SENSITIVE_FIELDS are replaced by REDACTED_MARKER
at any nesting depth. Keys are kept so that readers can tell a secret was
sent without seeing it.
"""

from __future__ import annotations

__all__ = ["filter_object", "redact_fields"]

from collections.abc import Mapping
from typing import Any

from bweb_log.constants import REDACTED_MARKER, SENSITIVE_FIELDS


def redact_fields(value: Any, sensitive: frozenset[str] = SENSITIVE_FIELDS) -> Any:
    """Return a copy of ``value`` with sensitive mapping entries masked.

    Mappings and lists are walked recursively; other values are returned
    as they are.

    Args:
        value: Parsed params/query/body value.
        sensitive: Field names to mask.

    Returns:
        Redacted copy (input is never mutated).
    """
    if isinstance(value, Mapping):
        return {
            key: REDACTED_MARKER if key in sensitive else redact_fields(item, sensitive)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_fields(item, sensitive) for item in value]
    return value


def filter_object(obj: Any, log: bool = True) -> Any:
    """Prepare a request mapping for a log record.

    Args:
        obj: Params, query or body (mapping, list or None).
        log: When False the field is dropped from the record entirely.

    Returns:
        Redacted copy, or None when logging is off or there is nothing to log.
    """
    if not log or not obj:
        return None
    return redact_fields(obj)
