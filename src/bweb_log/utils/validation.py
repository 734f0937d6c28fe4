"""Validation helpers shared by config loading, reporters and the API."""

from __future__ import annotations

__all__ = [
    "format_validation_errors",
    "validation_errors_from_pydantic",
]

from typing import Any

from pydantic import ValidationError


def validation_errors_from_pydantic(e: ValidationError) -> list[dict[str, Any]]:
    """Extract validation errors from a Pydantic ValidationError.

    Args:
        e: The Pydantic ValidationError to extract from.

    Returns:
        List of error dicts with loc, msg, and type fields.
    """
    return [
        {
            "loc": list(err.get("loc", [])),
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in e.errors()
    ]


def format_validation_errors(e: ValidationError) -> str:
    """One-line human readable summary: ``field: msg; other: msg``."""
    parts = []
    for err in e.errors():
        loc = ".".join(str(part) for part in err.get("loc", []))
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)
