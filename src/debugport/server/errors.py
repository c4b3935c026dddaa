"""Uniform error rendering for the control-plane routes.

Every route is installed with ``ErrorTranslatingRoute``, which wraps the
route handler: a normal return passes through untouched, a domain failure
becomes a 400 ``{"message": ...}`` envelope, anything else becomes a
generic 500 envelope and is logged with its traceback. Route handlers
raise; they never build error payloads.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Coroutine

from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from debugport.capture.base import CaptureError
from debugport.domain.models import ErrorEnvelope
from debugport.subscriptions.parser import SubscriptionParseError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class RpcError(Exception):
    """A named, user-facing failure of a control-plane call."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# Failures that are the caller's or the environment's fault, not ours.
DOMAIN_ERRORS: tuple[type[Exception], ...] = (
    RpcError,
    SubscriptionParseError,
    CaptureError,
    RequestValidationError,
    ValidationError,
)


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorEnvelope(message=message).model_dump(by_alias=True),
    )


def describe_validation_errors(errors: list[dict[str, Any]]) -> str:
    """Flatten pydantic/FastAPI error dicts into one line."""
    parts = []
    for error in errors:
        loc = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        msg = error.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "Invalid request: " + "; ".join(parts)


def domain_error_message(exc: Exception) -> str:
    if isinstance(exc, RpcError):
        return exc.message
    if isinstance(exc, RequestValidationError):
        return describe_validation_errors(list(exc.errors()))
    if isinstance(exc, ValidationError):
        return describe_validation_errors(exc.errors())
    return str(exc)


class ErrorTranslatingRoute(APIRoute):
    """APIRoute whose handler renders failures as ``ErrorEnvelope``."""

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()

        async def translate_errors(request: Request) -> Response:
            try:
                return await handler(request)
            except DOMAIN_ERRORS as exc:
                message = domain_error_message(exc)
                logger.info("%s %s failed: %s", request.method, request.url.path, message)
                return error_response(message, 400)
            except StarletteHTTPException as exc:
                return error_response(str(exc.detail), exc.status_code)
            except Exception:
                logger.exception("Unhandled error in %s %s", request.method, request.url.path)
                return error_response(INTERNAL_ERROR_MESSAGE, 500)

        return translate_errors


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Render router-level failures (unknown path, wrong method) as envelopes."""
    response = error_response(str(exc.detail), exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response
