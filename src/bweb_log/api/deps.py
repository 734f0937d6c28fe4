"""Shared dependencies for management API routes.

Usage with Annotated:
    from bweb_log.api.deps import RegistryDep

    @router.get("")
    async def get_status(registry: RegistryDep) -> ReporterStatusResponse:
        ...
"""

from __future__ import annotations

__all__ = [
    "REGISTRY_STATE_ATTR",
    "RegistryDep",
    "get_registry",
]

from typing import Annotated, Any, Callable

from fastapi import Depends, HTTPException, Request

from bweb_log.registry import ReporterRegistry

# Attribute on app.state holding the app's ReporterRegistry
REGISTRY_STATE_ATTR: str = "bweb_log_registry"


def _create_state_getter(
    attr_name: str,
    type_hint: str,
    error_detail: str,
) -> Callable[[Request], Any]:
    """Create a dependency function that retrieves a value from app.state.

    Args:
        attr_name: Attribute name on app.state.
        type_hint: Type name used in the getter's docstring.
        error_detail: Error message for HTTPException.

    Returns:
        A dependency function compatible with FastAPI's Depends().
    """

    def getter(request: Request) -> Any:
        value = getattr(request.app.state, attr_name, None)
        if value is None:
            raise HTTPException(status_code=503, detail=error_detail)
        return value

    getter.__name__ = f"get_{attr_name}"
    getter.__doc__ = f"Get {type_hint} from app.state.\n\nRaises HTTPException 503 if not available."
    return getter


get_registry: Callable[[Request], ReporterRegistry] = _create_state_getter(
    REGISTRY_STATE_ATTR,
    "ReporterRegistry",
    "Request logger not installed on this server.",
)

RegistryDep = Annotated[ReporterRegistry, Depends(get_registry)]
