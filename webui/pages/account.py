#!/usr/bin/env python3
# -----------------------------------------------------------------------------
"""
Account page (any logged-in user).

  GET  /account                     show the forms
  POST /account  action=username    change own username
  POST /account  action=password    change own password
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import LoginInfo, get_login
from app.services.logins import AccountError, change_password, change_username
from webui.templating import templates

router = APIRouter(tags=["webui-account"])


# -----------------------------------------------------------------------------

@router.get("/account", response_class=HTMLResponse)
async def account_page(request: Request, login: LoginInfo = Depends(get_login)):
    return templates.TemplateResponse(request, "account.html", {
        "login": login, "error": "", "success": "",
    })


@router.post("/account", response_class=HTMLResponse)
async def account_submit(
    request: Request,
    action: str = Form(...),
    username: str = Form(default=""),
    current_password: str = Form(default=""),
    new_password: str = Form(default=""),
    new_password_repeat: str = Form(default=""),
    login: LoginInfo = Depends(get_login),
    db: AsyncSession = Depends(get_db),
):
    try:
        if action == "username":
            await change_username(db, login.id, username)
            success = "Username changed."
        elif action == "password":
            await change_password(
                db, login.id, current_password, new_password, new_password_repeat
            )
            success = "Password changed."
        else:
            raise AccountError(f"Unknown action {action!r}.")
    except AccountError as e:
        return templates.TemplateResponse(request, "account.html", {
            "login": login, "error": str(e), "success": "",
        }, status_code=status.HTTP_400_BAD_REQUEST)

    return templates.TemplateResponse(request, "account.html", {
        "login": login, "error": "", "success": success,
    })
