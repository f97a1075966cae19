#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Security utilities
==================
- Password hashing (bcrypt, run off the event loop)
- Opaque cookie sessions with sliding expiry renewal
- FastAPI dependencies for the login gate and the admin gate
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import asyncio
import hmac
import logging
import secrets
import time
from dataclasses import dataclass

import bcrypt as _bcrypt_lib
from fastapi import Depends, Request, Response
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession


# -----------------------------------------------------------------------------

from .config import get_settings
from .database import get_db
from .errors import LoginRequired, NotAnAdmin

logger = logging.getLogger(__name__)

_HOUR_MS = 60 * 60 * 1000
_DAY_MS = 24 * _HOUR_MS


# --------------------------------------------------------------------------- #
# Password hashing
# --------------------------------------------------------------------------- #

def new_salt() -> bytes:
    return _bcrypt_lib.gensalt(rounds=get_settings().bcrypt_rounds)


# -----------------------------------------------------------------------------

async def hash_password(plain: str, salt: bytes) -> bytes:
    return await asyncio.to_thread(_bcrypt_lib.hashpw, plain.encode("utf-8"), salt)


# -----------------------------------------------------------------------------

async def verify_password(plain: str, hashed: bytes, salt: bytes) -> bool:
    try:
        candidate = await hash_password(plain, salt)
    except ValueError:
        return False
    return hmac.compare_digest(candidate, hashed)


# --------------------------------------------------------------------------- #
# Sessions
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class LoginInfo:
    """Identity of the caller, attached to every gated request."""

    name: str
    id: str
    is_admin: bool

    def to_dict(self) -> dict:
        return {"name": self.name, "id": self.id, "isAdmin": self.is_admin}


# -----------------------------------------------------------------------------

def now_ms() -> int:
    return int(time.time() * 1000)


def _fresh_expiry() -> int:
    return now_ms() + get_settings().session_lifetime_days * _DAY_MS


# -----------------------------------------------------------------------------

async def create_session(db: AsyncSession, user_id: str) -> tuple[str, int]:
    """Insert a new session row and return ``(session_id, expires_ms)``."""
    from app.models import Session

    session_id = secrets.token_hex(64)
    expires = _fresh_expiry()
    db.add(Session(session_id=session_id, user_id=user_id, expires=expires))
    await db.flush()
    logger.info("Created session for %s", user_id)
    return session_id, expires


# -----------------------------------------------------------------------------

async def delete_session(db: AsyncSession, session_id: str) -> None:
    from app.models import Session

    await db.execute(delete(Session).where(Session.session_id == session_id))


# -----------------------------------------------------------------------------

async def purge_expired_sessions(db: AsyncSession) -> int:
    from app.models import Session

    result = await db.execute(delete(Session).where(Session.expires < now_ms()))
    return result.rowcount or 0


# -----------------------------------------------------------------------------

async def resolve_session(
    db: AsyncSession, session_id: str
) -> tuple[LoginInfo, int | None] | None:
    """Look up a session, renewing it when it is close to expiring.

    Returns None for unknown or expired sessions, otherwise the login and the
    new expiry when the session was renewed.
    """
    from app.models import Login, Session

    result = await db.execute(
        select(Session.expires, Login.user_id, Login.username, Login.is_admin)
        .join(Login, Login.user_id == Session.user_id)
        .where(Session.session_id == session_id)
    )
    row = result.one_or_none()
    if row is None:
        return None

    now = now_ms()
    if row.expires <= now:
        return None

    renewed = None
    threshold = get_settings().session_renew_threshold_hours * _HOUR_MS
    if row.expires - now < threshold:
        renewed = _fresh_expiry()
        await db.execute(
            update(Session)
            .where(Session.session_id == session_id)
            .values(expires=renewed)
        )
        await db.commit()
        logger.debug("Renewed session for %s", row.user_id)

    login = LoginInfo(name=row.username, id=row.user_id, is_admin=bool(row.is_admin))
    return login, renewed


# -----------------------------------------------------------------------------

def set_session_cookie(response: Response, session_id: str, expires_ms: int) -> None:
    settings = get_settings()
    # The cookie dies five minutes before the row does.
    max_age = max(0, (expires_ms - now_ms()) // 1000 - 5 * 60)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        max_age=max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(
        settings.session_cookie_name, httponly=True, secure=settings.cookie_secure
    )


# --------------------------------------------------------------------------- #
# FastAPI dependencies
# --------------------------------------------------------------------------- #

def _original_target(request: Request) -> str:
    target = request.url.path
    if request.url.query:
        target += "?" + request.url.query
    return target


# -----------------------------------------------------------------------------

async def get_login(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> LoginInfo:
    session_id = request.cookies.get(get_settings().session_cookie_name)
    resolved = await resolve_session(db, session_id) if session_id else None
    if resolved is None:
        raise LoginRequired(_original_target(request))

    login, renewed = resolved
    if renewed is not None:
        set_session_cookie(response, session_id, renewed)
    request.state.login = login
    return login


# -----------------------------------------------------------------------------

async def require_admin(login: LoginInfo = Depends(get_login)) -> LoginInfo:
    if not login.is_admin:
        raise NotAnAdmin(login)
    return login


# -----------------------------------------------------------------------------
