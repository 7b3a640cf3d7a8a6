"""Translate domain and framework errors into the API's JSON error shapes."""

from __future__ import annotations

import logging
from typing import Any

import psycopg
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..domain.errors import ServiceError

logger = logging.getLogger(__name__)

# Envelope keys that carry no meaning for the client.
_ENVELOPE_LOC = {"body", "user"}


def format_validation_errors(errors: list[dict[str, Any]]) -> dict[str, dict[str, str]]:
    """Collapse pydantic error entries into ``{"errors": {field: message}}``.

    Errors without a field (missing or unparsable body) are reported under
    ``error``.
    """
    fields: dict[str, str] = {}
    for error in errors:
        path = [part for part in error.get("loc", ()) if isinstance(part, str) and part not in _ENVELOPE_LOC]
        fields[path[-1] if path else "error"] = error.get("msg", "invalid value")
    return {"errors": fields}


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=format_validation_errors(list(exc.errors())),
    )


async def _database_error_handler(request: Request, exc: psycopg.Error) -> JSONResponse:
    logger.error("database failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the service's error translators to ``app``."""
    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(psycopg.Error, _database_error_handler)
