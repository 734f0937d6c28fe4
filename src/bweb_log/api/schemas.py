"""Management API schemas."""

from __future__ import annotations

__all__ = [
    # Response schemas
    "ReporterOptionsResponse",
    "ReporterStatusResponse",
    # Request schemas
    "ReporterToggleRequest",
]

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ReporterStatusResponse(BaseModel):
    """Enabled state of every registered reporter."""

    reporters: dict[str, bool]


class ReporterOptionsResponse(BaseModel):
    """Runtime options of one enabled reporter."""

    options: dict[str, Any]


class ReporterToggleRequest(BaseModel):
    """Body of ``PUT /bweb-log``."""

    id: str = Field(min_length=1)
    enabled: bool

    model_config = ConfigDict(extra="forbid", strict=True)
