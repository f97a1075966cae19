#!/usr/bin/env python3
# -----------------------------------------------------------------------------
"""Landing page: every initiative with the caller's signatures."""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import LoginInfo, get_login
from app.services.initiatives import list_initiatives
from webui.templating import templates

router = APIRouter(tags=["webui-home"])


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    login: LoginInfo = Depends(get_login),
    db: AsyncSession = Depends(get_db),
):
    return templates.TemplateResponse(request, "index.html", {
        "login": login,
        "initiatives": await list_initiatives(db, login.id),
    })
