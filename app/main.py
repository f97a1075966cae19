#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Initiatives Tracker
===================
Entry point.  Start with:
    uvicorn app.main:app --reload
or through the ``initiatives-tracker`` command.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from app.core.config import get_settings
from app.core.database import dispose_db, init_db
from app.core.errors import register_handlers
from app.core.security import LoginInfo, get_login
from app.routes import initiatives, login_info, organisations, people, user_content
from webui import session as webui_session
from webui.pages import account, home

logger = logging.getLogger(__name__)

_STATIC_DIR = Path(__file__).resolve().parent.parent / "webui" / "static"
_FIXED_HEADERS = {"Permissions-Policy": "interest-cohort=()"}
_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


# -----------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup / shutdown."""
    await init_db()
    yield
    await dispose_db()


# -----------------------------------------------------------------------------

def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url=None,
        openapi_url="/api/openapi.json",
    )
    register_handlers(app)

    # ── Response headers ──────────────────────────────────────────────────
    @app.middleware("http")
    async def fixed_headers(request, call_next):
        response = await call_next(request)
        for key, value in _FIXED_HEADERS.items():
            response.headers.setdefault(key, value)
        return response

    # ── JSON API ──────────────────────────────────────────────────────────
    API = "/api"
    app.include_router(login_info.router,    prefix=API)
    app.include_router(initiatives.router,   prefix=API)
    app.include_router(organisations.router, prefix=API)
    app.include_router(people.router,        prefix=API)
    app.include_router(user_content.router,  prefix=API)

    # ── HTML ──────────────────────────────────────────────────────────────
    app.include_router(webui_session.router)
    app.include_router(home.router)
    app.include_router(account.router)

    if _STATIC_DIR.is_dir():
        app.mount("/static", StaticFiles(directory=_STATIC_DIR), name="static")

    @app.get("/health", include_in_schema=False)
    async def health():
        return {"status": "ok"}

    @app.get("/robots.txt", include_in_schema=False, response_class=PlainTextResponse)
    async def robots():
        return "User-agent: *\nDisallow: /\n"

    # ── Anything else: gate first, then 404 ───────────────────────────────
    @app.api_route("/{path:path}", methods=_ALL_METHODS, include_in_schema=False)
    async def fallback(path: str, _login: LoginInfo = Depends(get_login)):
        raise HTTPException(status_code=404, detail="Not Found")

    return app


app = create_app()
