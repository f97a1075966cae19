#!/usr/bin/env python3
# -----------------------------------------------------------------------------
"""
Login and logout pages.

  GET  /login     login form
  POST /login     check credentials, start a session, redirect back
  GET  /logout    end the session

The ``redirect`` query parameter set by the session gate is honoured only as
a path on this site.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from urllib.parse import urlsplit, urlunsplit

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.core.security import (
    clear_session_cookie,
    create_session,
    delete_session,
    set_session_cookie,
)
from app.services.logins import authenticate
from webui.templating import templates

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webui-session"])


# -----------------------------------------------------------------------------

def safe_redirect(target: str | None) -> str:
    """Reduce *target* to a same-site path, query and fragment."""
    if not target:
        return "/"
    parts = urlsplit(target)
    path = parts.path or "/"
    if not path.startswith("/") or path.startswith("//") or "\\" in path:
        path = "/"
    return urlunsplit(("", "", path, parts.query, parts.fragment))


# -----------------------------------------------------------------------------

@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request):
    return templates.TemplateResponse(request, "login.html", {"login": None, "error": ""})


@router.post("/login")
async def login_submit(
    request: Request,
    username: str = Form(default=""),
    password: str = Form(default=""),
    db: AsyncSession = Depends(get_db),
):
    if not username.strip() or not password:
        return templates.TemplateResponse(
            request, "login.html",
            {"login": None, "error": "missing-values"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    login = await authenticate(db, username, password)
    if login is None:
        logger.info("Failed login for %r", username)
        return templates.TemplateResponse(
            request, "login.html",
            {"login": None, "error": "incorrect-credentials"},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    session_id, expires = await create_session(db, login.id)
    await db.commit()

    response = RedirectResponse(
        url=safe_redirect(request.query_params.get("redirect")),
        status_code=status.HTTP_302_FOUND,
    )
    set_session_cookie(response, session_id, expires)
    return response


# -----------------------------------------------------------------------------

@router.get("/logout")
async def logout(request: Request, db: AsyncSession = Depends(get_db)):
    session_id = request.cookies.get(get_settings().session_cookie_name)
    if session_id:
        await delete_session(db, session_id)
        await db.commit()
    response = RedirectResponse(url="/login", status_code=status.HTTP_302_FOUND)
    clear_session_cookie(response)
    return response
