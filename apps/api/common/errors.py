"""
Shared API error handlers for the KivilcimError contract and deterministic 422 payloads.

Docs:
  - docs/architecture/identity/identity-2fa-trust-engine-v1.md
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence, cast

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from kivilcim.platform.errors import KivilcimError

log = logging.getLogger(__name__)

_KIVILCIM_STATUS_BY_CODE: Mapping[str, int] = {
    "validation_error": 422,
    "not_found": 404,
    "forbidden": 403,
    "conflict": 409,
    "unauthorized": 401,
    "unexpected_error": 500,
}


def register_api_error_handlers(*, app: FastAPI) -> None:
    """
    Register global API handlers for KivilcimError and FastAPI validation errors.

    Args:
        app: FastAPI application instance.
    Returns:
        None.
    Assumptions:
        Handlers are installed once during application startup.
    Raises:
        ValueError: If `app` dependency is missing.
    Side Effects:
        Mutates FastAPI exception-handler registry.
    """
    if app is None:  # type: ignore[truthy-bool]
        raise ValueError("register_api_error_handlers requires app")

    app.add_exception_handler(KivilcimError, kivilcim_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)


def kivilcim_error_handler(_request: Request, error: Exception) -> JSONResponse:
    """
    Convert KivilcimError into `{"error": {"code", "message", "details"}}` response.

    Args:
        _request: Starlette request object (unused).
        error: Raised KivilcimError instance.
    Returns:
        JSONResponse: Response with status resolved from error code.
    Assumptions:
        Unknown codes are treated as unexpected internal errors.
    Raises:
        None.
    Side Effects:
        Logs unexpected errors at ERROR level.
    """
    kivilcim_error = cast(KivilcimError, error)
    status_code = _KIVILCIM_STATUS_BY_CODE.get(kivilcim_error.code, 500)
    if status_code >= 500:
        log.error("api error code=%s message=%s", kivilcim_error.code, kivilcim_error.message)
    return JSONResponse(status_code=status_code, content=kivilcim_error.to_payload())


def request_validation_error_handler(_request: Request, error: Exception) -> JSONResponse:
    """
    Convert FastAPI RequestValidationError to canonical `validation_error` payload.

    Args:
        _request: Starlette request object (unused).
        error: Raised validation exception from FastAPI/Pydantic.
    Returns:
        JSONResponse: HTTP 422 payload with deterministically sorted `details.errors` list.
    Assumptions:
        Validation errors include `loc`, `type`, and `msg` attributes.
    Raises:
        None.
    Side Effects:
        None.
    """
    validation_error = cast(RequestValidationError, error)
    kivilcim_error = KivilcimError(
        code="validation_error",
        message="Validation failed",
        details={
            "errors": _sorted_validation_errors(raw_errors=validation_error.errors()),
        },
    )
    return kivilcim_error_handler(_request, kivilcim_error)


def _sorted_validation_errors(*, raw_errors: Any) -> list[dict[str, str]]:
    """
    Convert raw validation errors into list sorted by path, code, and message.

    Args:
        raw_errors: Raw iterable from FastAPI validation subsystem.
    Returns:
        list[dict[str, str]]: Sorted normalized validation items.
    Assumptions:
        Unknown raw shapes are stringified for payload stability.
    Raises:
        None.
    Side Effects:
        None.
    """
    if not isinstance(raw_errors, Sequence) or isinstance(raw_errors, (str, bytes, bytearray)):
        return []

    normalized_items: list[dict[str, str]] = []
    for raw_error in raw_errors:
        if not isinstance(raw_error, Mapping):
            normalized_items.append(
                {"path": "unknown", "code": "validation_error", "message": str(raw_error)}
            )
            continue
        normalized_items.append(
            {
                "path": _normalize_error_path(loc=raw_error.get("loc")),
                "code": _normalize_error_code(raw_type=raw_error.get("type")),
                "message": str(raw_error.get("msg", "Validation error")),
            }
        )

    return sorted(
        normalized_items,
        key=lambda item: (item["path"], item["code"], item["message"]),
    )


def _normalize_error_path(*, loc: Any) -> str:
    # `("body", "code")` -> `body.code`
    if isinstance(loc, Sequence) and not isinstance(loc, (str, bytes, bytearray)):
        path_parts = [str(part) for part in loc]
        if path_parts:
            return ".".join(path_parts)
    if loc is None:
        return "unknown"
    return str(loc)


def _normalize_error_code(*, raw_type: Any) -> str:
    if raw_type is None:
        return "validation_error"
    normalized = str(raw_type).strip().lower()
    if not normalized:
        return "validation_error"
    if normalized == "missing" or normalized.endswith(".missing"):
        return "required"
    return normalized
