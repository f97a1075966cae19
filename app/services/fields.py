#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Field validators
================
Per-field rules shared by the entity services.  Each takes the raw body value
and returns ``Ok(value)`` or ``Err(code, text)``; the async ones resolve
hosts or fetch assets.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from datetime import datetime
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from app.core.results import Err, Ok, Result
from .uploads import AssetDescriptor, fetch_image, fetch_pdf
from .validation import invalid_type, is_nullish, validate_url


# -----------------------------------------------------------------------------

_NAME_PATTERN = re.compile(r"^[a-züöäéèëï][a-züöäéèëï\d\-/()* .]+$", re.IGNORECASE)

_IMAGE_FETCH_ERROR = Err(
    "fetch-error",
    "Could not fetch image. Either it was an invalid URL or the file was not an image.",
)
_PDF_FETCH_ERROR = Err(
    "fetch-error",
    "Could not fetch PDF. Either invalid URL or not a PDF.",
)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Text
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _check_length(value: Any, field: str, label: str, code: str, minimum: int = 10) -> Result[str]:
    if not isinstance(value, str):
        return invalid_type(field, "string", value)
    if len(value) < minimum:
        return Err(code, f"{label} is too short. Must be at least {minimum} characters.")
    return Ok(value)


def validate_short_name(value: Any) -> Result[str]:
    return _check_length(value, "shortName", "Short Name", "short-name-too-short")


def validate_full_name(value: Any) -> Result[str]:
    return _check_length(value, "fullName", "Full Name", "full-name-too-short")


# -----------------------------------------------------------------------------

def validate_name(value: Any) -> Result[str]:
    """Names of people and organisations."""
    if not isinstance(value, str):
        return invalid_type("name", "string", value)

    name = value.strip()
    if len(name) < 4:
        return Err("name-too-short", "Name must be at least four characters long")
    if not _NAME_PATTERN.match(name):
        return Err("name-invalid-characters", "Name must contain only latin letters.")
    return Ok(name)


# -----------------------------------------------------------------------------

def validate_deadline(value: Any) -> Result[str | None]:
    if is_nullish(value):
        return Ok(None)
    if not isinstance(value, str):
        return invalid_type("deadline", "string", value)

    deadline = value.strip()
    try:
        parsed = datetime.strptime(deadline, "%Y-%m-%d")
    except ValueError:
        return Err("invalid-date", "Invalid date.")

    normalised = parsed.strftime("%Y-%m-%d")
    if normalised != deadline:
        return Err(
            "invalid-date",
            f'Invalid date. Normalising input "{deadline}" resulted in "{normalised}". '
            "Expected it to stay unchanged",
        )
    return Ok(deadline)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# URLs and assets
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def validate_website(value: Any) -> Result[str | None]:
    if is_nullish(value):
        return Ok(None)

    checked = await validate_url("website", value)
    if isinstance(checked, Err):
        return checked

    # Drop credentials and fragment before storing.
    parts = urlsplit(value)
    netloc = parts.hostname or ""
    if parts.port is not None:
        netloc += f":{parts.port}"
    return Ok(urlunsplit((parts.scheme.lower(), netloc, parts.path or "/", parts.query, "")))


# -----------------------------------------------------------------------------

async def _asset(value: Any, label: str, fetch, failure: Err) -> Result[AssetDescriptor]:
    if not isinstance(value, (bytes, bytearray)):
        checked = await validate_url(label, value)
        if isinstance(checked, Err):
            return checked
    result = await fetch(value)
    return failure if isinstance(result, Err) else result


async def validate_pdf(value: Any) -> Result[AssetDescriptor]:
    return await _asset(value, "PDF URL", fetch_pdf, _PDF_FETCH_ERROR)


async def validate_image(value: Any) -> Result[AssetDescriptor | None]:
    if is_nullish(value):
        return Ok(None)
    return await _asset(value, "Image URL", fetch_image, _IMAGE_FETCH_ERROR)


# -----------------------------------------------------------------------------
