#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
API errors
==========
Every failure leaves the API in the same envelope:

    {"type": "error", "error": "<machine-code>", "readableError": "<text>"}

Services raise ``ApiError``; the handlers registered by ``register_handlers``
turn it (and FastAPI's own request validation errors) into that envelope.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from urllib.parse import urlencode

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.core.results import Err

logger = logging.getLogger(__name__)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Exceptions
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ApiError(HTTPException):

    def __init__(self, status_code: int, error: str, readable_error: str) -> None:
        super().__init__(status_code=status_code, detail=readable_error)
        self.error = error
        self.readable_error = readable_error

    @classmethod
    def from_err(cls, err: Err, status_code: int = status.HTTP_400_BAD_REQUEST) -> "ApiError":
        return cls(status_code, err.error, err.readable_error)

    def to_dict(self) -> dict:
        return {
            "type": "error",
            "error": self.error,
            "readableError": self.readable_error,
        }


# -----------------------------------------------------------------------------

def not_found(readable_error: str) -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, "not-found", readable_error)


# -----------------------------------------------------------------------------

class LoginRequired(Exception):
    """Raised by the session gate when no valid session is presented."""

    def __init__(self, redirect: str) -> None:
        super().__init__(redirect)
        self.redirect = redirect


class NotAnAdmin(Exception):
    """Raised by the admin gate for a non-admin caller."""

    def __init__(self, login) -> None:
        super().__init__("Not an admin")
        self.login = login


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Handlers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


async def _api_error_handler(_request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


async def _validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    return JSONResponse(
        {
            "type": "error",
            "error": "invalid-type",
            "readableError": f"Invalid request: {location} {first.get('msg', '')}".strip(),
        },
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and wants_html(request):
        from webui.templating import templates

        login = getattr(request.state, "login", None)
        return templates.TemplateResponse(
            request, "404.html", {"login": login}, status_code=status.HTTP_404_NOT_FOUND
        )
    code = "not-found" if exc.status_code == status.HTTP_404_NOT_FOUND else "http-error"
    return JSONResponse(
        {"type": "error", "error": code, "readableError": str(exc.detail)},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _login_required_handler(_request: Request, exc: LoginRequired) -> RedirectResponse:
    settings = get_settings()
    response = RedirectResponse(
        url="/login?" + urlencode({"redirect": exc.redirect}),
        status_code=status.HTTP_302_FOUND,
    )
    response.delete_cookie(
        settings.session_cookie_name, httponly=True, secure=settings.cookie_secure
    )
    return response


async def _not_an_admin_handler(request: Request, exc: NotAnAdmin):
    logger.info("Rejected %s %s for non-admin %s", request.method, request.url.path, exc.login.name)
    if wants_html(request):
        from webui.templating import templates

        return templates.TemplateResponse(
            request, "401.html", {"login": exc.login}, status_code=status.HTTP_401_UNAUTHORIZED
        )
    return JSONResponse(
        {"type": "error", "error": "not-an-admin", "readableError": "Not an admin"},
        status_code=status.HTTP_401_UNAUTHORIZED,
    )


# -----------------------------------------------------------------------------

def register_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(LoginRequired, _login_required_handler)
    app.add_exception_handler(NotAnAdmin, _not_an_admin_handler)


# -----------------------------------------------------------------------------
