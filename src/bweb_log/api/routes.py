"""Reporter management endpoints.

Provides live control of a server's reporters:
- GET /bweb-log - Enabled state of every reporter
- PUT /bweb-log - Enable or disable a reporter
- GET /bweb-log/{reporter_id} - Runtime options of an enabled reporter
- PUT /bweb-log/{reporter_id} - Update runtime options (all or nothing)

Bodies are parsed here rather than through FastAPI body parameters so that
malformed input produces this API's structured 400 instead of the host's
validation error response.
"""

from __future__ import annotations

__all__ = ["router"]

from typing import Any

from fastapi import APIRouter, Request
from pydantic import ValidationError

from bweb_log.api.deps import RegistryDep
from bweb_log.api.errors import APIError, ErrorCode, api_error_from
from bweb_log.api.schemas import ReporterOptionsResponse, ReporterStatusResponse, ReporterToggleRequest
from bweb_log.constants import MANAGEMENT_PATH
from bweb_log.exceptions import AlreadyEnabledError, NotEnabledError, UnknownReporterError, WeblogError
from bweb_log.utils.validation import format_validation_errors, validation_errors_from_pydantic

router = APIRouter(prefix=MANAGEMENT_PATH)


# =============================================================================
# Helpers
# =============================================================================


async def _read_json_object(request: Request) -> dict[str, Any]:
    """Parse the request body as a JSON object (empty body is ``{}``).

    Raises:
        APIError: 400 VALIDATION_ERROR if the body is not a JSON object.
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = await request.json()
    except ValueError as e:
        raise APIError(
            status_code=400,
            code=ErrorCode.VALIDATION_ERROR,
            message=f"Request body is not valid JSON: {e}",
        ) from e
    if not isinstance(data, dict):
        raise APIError(
            status_code=400,
            code=ErrorCode.VALIDATION_ERROR,
            message="Request body must be a JSON object",
        )
    return data


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=ReporterStatusResponse)
async def get_status(registry: RegistryDep) -> ReporterStatusResponse:
    """List reporters and whether each is enabled."""
    return ReporterStatusResponse(reporters=registry.list_statuses())


@router.put("", response_model=ReporterStatusResponse)
async def set_status(request: Request, registry: RegistryDep) -> ReporterStatusResponse:
    """Enable or disable a reporter.

    Setting a reporter to its current state is a no-op.

    Raises:
        APIError: 400 for malformed bodies and unknown ids,
            500 if the reporter could not open its resources.
    """
    data = await _read_json_object(request)
    try:
        toggle = ReporterToggleRequest.model_validate(data)
    except ValidationError as e:
        raise APIError(
            status_code=400,
            code=ErrorCode.VALIDATION_ERROR,
            message=format_validation_errors(e),
            validation_errors=validation_errors_from_pydantic(e),
        ) from e

    try:
        if not registry.has_reporter(toggle.id):
            raise UnknownReporterError(toggle.id)
        if toggle.enabled and not registry.is_enabled(toggle.id):
            await registry.enable(toggle.id)
        elif not toggle.enabled and registry.is_enabled(toggle.id):
            await registry.disable(toggle.id)
    except (AlreadyEnabledError, NotEnabledError):
        # A concurrent request already made the same change
        pass
    except WeblogError as e:
        raise api_error_from(e) from e

    return ReporterStatusResponse(reporters=registry.list_statuses())


@router.get("/{reporter_id}", response_model=ReporterOptionsResponse)
async def get_options(reporter_id: str, registry: RegistryDep) -> ReporterOptionsResponse:
    """Runtime options of an enabled reporter.

    Raises:
        APIError: 400 if the reporter is unknown or not enabled.
    """
    try:
        options = registry.get_configuration(reporter_id)
    except WeblogError as e:
        raise api_error_from(e) from e
    return ReporterOptionsResponse(options=options)


@router.put("/{reporter_id}", response_model=ReporterOptionsResponse)
async def set_options(reporter_id: str, request: Request, registry: RegistryDep) -> ReporterOptionsResponse:
    """Validate and apply runtime options.

    Raises:
        APIError: 400 if the reporter is unknown or not enabled, or the
            options are invalid (nothing is applied in that case).
    """
    data = await _read_json_object(request)
    try:
        options = registry.set_configuration(reporter_id, data)
    except WeblogError as e:
        raise api_error_from(e) from e
    return ReporterOptionsResponse(options=options)
