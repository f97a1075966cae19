#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Slug generation
===============
URL-safe identifiers derived from display names.

    make_slug("Jürg Müller")  ->  "jurg-muller-3fa4c2d1"

The random suffix keeps repeated names apart; callers still treat a primary
key collision on insert as retryable.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
import secrets
import unicodedata
from typing import Callable

from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import Base

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

_SEPARATORS = re.compile(r"[\s_\-/]+")
_UNSAFE = re.compile(r"[^0-9a-z-]")
_HYPHENS = re.compile(r"-{2,}")

# names made only of punctuation
_EMPTY_PREFIX = "x"


# -----------------------------------------------------------------------------

def strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


# -----------------------------------------------------------------------------

def make_slug(name: str) -> str:
    # upper() first so that "ß" becomes "ss"
    s = name.strip().upper().lower()
    s = strip_diacritics(s)
    s = _SEPARATORS.sub("-", s)
    s = _UNSAFE.sub("", s)
    s = _HYPHENS.sub("-", s).strip("-") or _EMPTY_PREFIX
    return f"{s}-{secrets.token_hex(4)}"


# -----------------------------------------------------------------------------

async def insert_with_slug(
    db: AsyncSession,
    name: str,
    build: Callable[[str], Base],
    attempts: int = 3,
) -> Base:
    """Insert ``build(slug)``, drawing a fresh slug when the id is taken.

    Any other integrity failure is re-raised for the caller to translate.
    """
    for attempt in range(1, attempts + 1):
        row = build(make_slug(name))
        db.add(row)
        try:
            await db.flush()
            return row
        except IntegrityError:
            await db.rollback()
            key = inspect(type(row)).primary_key[0]
            taken = await db.scalar(select(key).where(key == row.id))
            if taken is None or attempt == attempts:
                raise
            logger.warning("Slug %s already taken, retrying", row.id)
    raise AssertionError("unreachable")


# -----------------------------------------------------------------------------
