#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Body validation
===============
Untrusted request bodies are checked field by field.  Each entity declares a
mapping of field name -> validator; a validator takes the raw value and
returns ``Ok(typed_value)`` or ``Err(code, text)``, synchronously or as a
coroutine.  ``BodyValidator`` composes such a mapping into a whole-body check:

    validate = BodyValidator({"name": validate_name})
    result = await validate(body, ["name"])          # create: all keys
    result = await validate(body, list(body))        # patch: supplied keys

This module also holds the URL safety check used before any remote fetch.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import asyncio
import inspect
import ipaddress
import logging
import socket
from typing import Any, Awaitable, Callable, Iterable, Mapping, Union
from urllib.parse import urlsplit

from app.core.results import Err, Ok, Result

logger = logging.getLogger(__name__)

FieldValidator = Callable[[Any], Union[Result, Awaitable[Result]]]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Small helpers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def type_of(value: Any) -> str:
    """Name a value's type the way API clients think about it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, (bytes, bytearray)):
        return "file"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


# -----------------------------------------------------------------------------

def is_nullish(value: Any) -> bool:
    """``None``, ``"null"`` and blank strings all mean "clear this field"."""
    return (
        value is None
        or value == "null"
        or (isinstance(value, str) and value.strip() == "")
    )


# -----------------------------------------------------------------------------

def invalid_type(field: str, expected: str, value: Any) -> Err:
    return Err(
        "invalid-type",
        f"Invalid type for {field}. Expected {expected}, got {type_of(value)}.",
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# URL safety
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_FORBIDDEN_HOST_CHARS = set(" \t\r\n<>\\^|\"{}`")


def _is_blocked_ip(address: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_reserved
        or address.is_multicast
        or address.is_unspecified
    )


# -----------------------------------------------------------------------------

async def resolve_host(hostname: str) -> list[str]:
    """Resolve *hostname* to the set of addresses it currently points at."""
    loop = asyncio.get_running_loop()
    host_info = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    return sorted({str(sockaddr[0]) for *_, sockaddr in host_info})


# -----------------------------------------------------------------------------

async def is_internal(netloc: str, hostname: str) -> bool:
    # IPv6 cannot be classified reliably, so every literal counts as internal.
    # Hostnames that merely resolve to IPv6 are still judged below.
    if "[" in netloc or ":" in hostname:
        return True

    try:
        if _is_blocked_ip(ipaddress.ip_address(hostname)):
            return True
    except ValueError:
        pass

    try:
        addresses = await resolve_host(hostname)
    except (OSError, UnicodeError) as exc:
        # A host that does not resolve is dead, not internal.
        logger.debug("Could not resolve %s: %s", hostname, exc)
        return False

    for text in addresses:
        try:
            address = ipaddress.ip_address(text.split("%", 1)[0])
        except ValueError:
            continue
        if _is_blocked_ip(address):
            return True
    return False


# -----------------------------------------------------------------------------

def parse_http_url(candidate: str):
    """Return the ``SplitResult`` of an absolute http(s) URL, or None."""
    try:
        parts = urlsplit(candidate)
        parts.port
    except ValueError:
        return None
    if parts.scheme.lower() not in ("http", "https"):
        return None
    hostname = parts.hostname or ""
    if not hostname or _FORBIDDEN_HOST_CHARS.intersection(parts.netloc):
        return None
    return parts


# -----------------------------------------------------------------------------

async def validate_url(field: str, candidate: Any) -> Result[None]:
    if not isinstance(candidate, str):
        return Err(
            "invalid-type",
            f"Invalid type for {field}. Expected string, got {type_of(candidate)}.",
        )

    parts = parse_http_url(candidate)
    if parts is None:
        return Err("invalid-url", f"{field} is not a valid URL.")

    host_port = parts.netloc.rpartition("@")[2]
    if await is_internal(host_port, parts.hostname or ""):
        return Err("unresolvable-url", f"Cannot resolve url of {field}.")

    return Ok(None)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Composer
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class BodyValidator:
    """Validate a whole body against a fixed set of field validators."""

    def __init__(self, validators: Mapping[str, FieldValidator]) -> None:
        self.validators = dict(validators)

    @property
    def keys(self) -> list[str]:
        return list(self.validators)

    async def _run(self, body: dict, key: str) -> tuple[str, Result]:
        if key not in body:
            return key, Err("missing-field", f'Missing required field "{key}".')
        result = self.validators[key](body[key])
        if inspect.isawaitable(result):
            result = await result
        return key, result

    async def __call__(self, body: Any, required_keys: Iterable[str]) -> Result[dict]:
        if not isinstance(body, dict):
            return Err(
                "invalid-type",
                f"Invalid type of body. Expected object, got {type_of(body)}.",
            )

        for key in body:
            if key not in self.validators:
                return Err("unknown-key", f'Unknown key "{key}".')

        outcomes = await asyncio.gather(*(self._run(body, key) for key in required_keys))

        data: dict[str, Any] = {}
        for key, result in outcomes:
            if isinstance(result, Err):
                return result
            data[key] = result.value
        return Ok(data)


# -----------------------------------------------------------------------------
