#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""GET /api/login-info: identity of the current session."""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.security import LoginInfo, get_login
from app.schemas import ApiSuccess, LoginInfoResponse

router = APIRouter(tags=["login"])


@router.get("/login-info", response_model=ApiSuccess[LoginInfoResponse])
async def login_info(login: LoginInfo = Depends(get_login)):
    return {"data": LoginInfoResponse.model_validate(login)}
