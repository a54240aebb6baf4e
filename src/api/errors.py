"""Map domain errors to HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.core.errors import (
    AssetTypeInUseError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PositionInUseError,
    UnauthorizedError,
    ValidationFailedError,
    WorkforceError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[WorkforceError], int]] = [
    (NotFoundError, 404),
    (UnauthorizedError, 403),
    (ConflictError, 409),
    (AuthenticationError, 401),
    (ValidationFailedError, 422),
]


def status_for(exc: WorkforceError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 400


async def workforce_error_handler(request: Request, exc: WorkforceError) -> JSONResponse:
    status = status_for(exc)
    body: dict[str, object] = {"detail": str(exc), "error": type(exc).__name__}
    if isinstance(exc, ValidationFailedError):
        body["field"] = exc.field
        body["detail"] = exc.message
    elif isinstance(exc, AssetTypeInUseError):
        body["asset_ids"] = exc.asset_ids
    elif isinstance(exc, PositionInUseError):
        body["position_ids"] = exc.position_ids
        body["user_ids"] = exc.user_ids
    elif isinstance(exc, NotFoundError):
        body["entity_id"] = exc.entity_id

    logger.info("%s %s -> %d: %s", request.method, request.url.path, status, exc)
    return JSONResponse(status_code=status, content=body)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WorkforceError, workforce_error_handler)  # type: ignore[arg-type]
