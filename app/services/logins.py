#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Login service
=============
Logins are bootstrapped from the command line and afterwards manage their own
username and password from the account page.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
import secrets
import string
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession


# -----------------------------------------------------------------------------

from app.core.security import LoginInfo, hash_password, new_salt, verify_password
from app.models import Login

logger = logging.getLogger(__name__)

_USERNAME = re.compile(r"^[a-z\d]+$", re.IGNORECASE)
_PASSWORD = re.compile(r"(?=.*\d)(?=.*[a-z])(?=.*[A-Z]).{10,}")

_SPECIAL = "!@#$%*"
_ALL_CHARS = string.ascii_lowercase + string.ascii_uppercase + string.digits + _SPECIAL


class AccountError(ValueError):
    """A rejected account change; the message is shown to the user."""


# -----------------------------------------------------------------------------

def generate_password(length: int = 16) -> str:
    """Random password with at least one lower, upper, digit and special char."""
    chars = [
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.digits),
        secrets.choice(_SPECIAL),
    ]
    while len(chars) < length:
        chars.append(secrets.choice(_ALL_CHARS))

    # Fisher-Yates with a CSPRNG
    for i in range(len(chars) - 1, 0, -1):
        j = secrets.randbelow(i + 1)
        chars[i], chars[j] = chars[j], chars[i]
    return "".join(chars)


# -----------------------------------------------------------------------------

async def create_login(
    db: AsyncSession, username: str, password: str, is_admin: bool = False
) -> Login:
    salt = new_salt()
    login = Login(
        username=username.strip(),
        password_hash=await hash_password(password, salt),
        password_salt=salt,
        is_admin=is_admin,
    )
    db.add(login)
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        raise AccountError(f"Username {username!r} is already taken.") from exc
    logger.info("Created %s login %s", "admin" if is_admin else "user", login.username)
    return login


# -----------------------------------------------------------------------------

async def authenticate(db: AsyncSession, username: str, password: str) -> Optional[LoginInfo]:
    """Return the login for valid credentials, None otherwise."""
    # username column compares NOCASE
    login = await db.scalar(select(Login).where(Login.username == username.strip()))
    if login is None:
        return None
    if not await verify_password(password, login.password_hash, login.password_salt):
        return None
    return LoginInfo(name=login.username, id=login.user_id, is_admin=login.is_admin)


# -----------------------------------------------------------------------------

async def change_username(db: AsyncSession, user_id: str, username: str) -> None:
    username = username.strip()
    if len(username) < 4:
        raise AccountError("Username must contain at least 4 characters.")
    if not _USERNAME.match(username):
        raise AccountError("Username must only contain letters and numbers.")

    login = await db.get(Login, user_id)
    if login is None:
        raise AccountError("Could not find account.")

    login.username = username
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        raise AccountError("Username is already taken.") from exc
    logger.info("Login %s renamed to %s", user_id, username)


# -----------------------------------------------------------------------------

async def change_password(
    db: AsyncSession,
    user_id: str,
    current_password: str,
    new_password: str,
    new_password_repeat: str,
) -> None:
    if new_password != new_password_repeat:
        raise AccountError("Passwords did not match.")
    if not _PASSWORD.match(new_password):
        raise AccountError("Password did not match criteria.")

    login = await db.get(Login, user_id)
    if login is None:
        raise AccountError("Could not find account.")
    if not await verify_password(current_password, login.password_hash, login.password_salt):
        raise AccountError("Current password was incorrect.")

    salt = new_salt()
    login.password_hash = await hash_password(new_password, salt)
    login.password_salt = salt
    await db.flush()
    logger.info("Password changed for %s", user_id)


# -----------------------------------------------------------------------------
