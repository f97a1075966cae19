#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Asset ingestion
===============
Images and PDFs arrive either as uploaded bytes or as a URL to fetch.  This
module turns them into an ``AssetDescriptor`` (random id + sniffed extension,
target path, bytes) without touching the disk; the entity services write the
new file and remove the superseded one.

Storage layout (relative to settings.data_dir):
  pdf/{uuid}.pdf
  image/{uuid}.{jpg,png,avif,webp,svg}

Public paths are computed at read time:
  /api/user-content/{pdf,image}/{id}
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import asyncio
import json
import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Literal

import aiofiles
import aiofiles.os
import filetype
import httpx
from fastapi import Request, status
from lxml import etree
from sqlalchemy import select, union
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile


# -----------------------------------------------------------------------------

from app.core.config import get_settings
from app.core.errors import ApiError
from app.core.results import Err, Ok, Result
from app.models import Initiative, Organisation
from .validation import validate_url

logger = logging.getLogger(__name__)

AssetKind = Literal["pdf", "image"]

_ALLOWED_IMAGES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/avif": "avif",
    "image/webp": "webp",
}
_USER_AGENT = "InitiativesTracker/0.1 (+asset-fetch)"
_ASSET_ID = re.compile(r"^[0-9a-f\-]{36}\.[a-z]{3,4}$")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Descriptors and errors
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class AssetDescriptor:
    id: str
    kind: AssetKind
    suggested_path: Path
    body: bytes


class AssetFetchError(Exception):
    """Any reason an asset could not be produced: network, size, type."""


# -----------------------------------------------------------------------------

def asset_dir(kind: AssetKind) -> Path:
    settings = get_settings()
    return settings.pdf_dir if kind == "pdf" else settings.image_dir


def _describe(kind: AssetKind, ext: str, body: bytes) -> AssetDescriptor:
    asset_id = f"{uuid.uuid4()}.{ext}"
    return AssetDescriptor(
        id=asset_id,
        kind=kind,
        suggested_path=asset_dir(kind) / asset_id,
        body=body,
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Remote fetch
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def _guard_request(request: httpx.Request) -> None:
    # Every hop, redirects included, must point at a public host.
    result = await validate_url("asset URL", str(request.url))
    if isinstance(result, Err):
        raise AssetFetchError(f"Refusing to fetch {request.url.host}: {result.error}")


def _make_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        follow_redirects=True,
        headers={"User-Agent": _USER_AGENT},
        event_hooks={"request": [_guard_request]},
    )


# -----------------------------------------------------------------------------

async def _read_capped(response: httpx.Response, limit: int) -> bytes:
    chunks: list[bytes] = []
    total = 0
    async for chunk in response.aiter_bytes():
        total += len(chunk)
        if total > limit:
            raise AssetFetchError("File is too large")
        chunks.append(chunk)
    return b"".join(chunks)


async def _download(url: str, limit: int) -> bytes:
    async with _make_client() as client:
        async with client.stream("GET", url) as response:
            final = await validate_url("asset URL", str(response.url))
            if isinstance(final, Err):
                raise AssetFetchError("Redirected to an internal url")
            if response.status_code >= 400:
                raise AssetFetchError(f"Remote answered {response.status_code}")
            return await _read_capped(response, limit)


# -----------------------------------------------------------------------------

async def safe_fetch(url: str) -> bytes:
    """Fetch *url* within the configured timeout and size cap."""
    settings = get_settings()
    try:
        return await asyncio.wait_for(
            _download(url, settings.max_asset_bytes),
            timeout=settings.fetch_timeout_seconds,
        )
    except asyncio.TimeoutError as exc:
        raise AssetFetchError("Timed out") from exc
    except httpx.HTTPError as exc:
        raise AssetFetchError(str(exc) or type(exc).__name__) from exc


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SVG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_UNSAFE_SVG_TAGS = {
    "script", "foreignobject", "iframe", "embed", "object",
    "audio", "video", "handler", "listener",
}
_SAFE_HREF = re.compile(r"^\s*(#|data:image/(png|jpeg|gif|webp|avif);)", re.IGNORECASE)
_ANIMATION_TAGS = {"animate", "set", "animatemotion", "animatetransform", "discard"}
_SCRIPT_URL = re.compile(r"^\s*(javascript|vbscript|data):", re.IGNORECASE)


def _looks_like_svg(body: bytes) -> bool:
    head = body.lstrip()[:5].lower()
    return head == b"<?xml" or b"<svg" in body


def _rewrites_link(el) -> bool:
    if etree.QName(el).localname.lower() not in _ANIMATION_TAGS:
        return False
    target = (el.get("attributeName") or "").strip().rsplit(":", 1)[-1].lower()
    if target == "href" or target.startswith("on"):
        return True
    values = (el.get(name) or "" for name in ("values", "to", "from", "by"))
    return any(_SCRIPT_URL.match(part) for value in values for part in value.split(";"))


def sanitize_svg(text: str) -> bytes:
    """Reduce an SVG document to a safe subset.

    Drops scripts, embedded documents, event handlers and external links and
    fills in width/height from the viewBox when they are missing.  Raises
    ``AssetFetchError`` when the input is not an SVG document.
    """
    parser = etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        remove_comments=True,
        remove_pis=True,
    )
    try:
        root = etree.fromstring(text.encode("utf-8"), parser)
    except etree.XMLSyntaxError as exc:
        raise AssetFetchError("Not an image.") from exc

    if not isinstance(root.tag, str) or etree.QName(root).localname != "svg":
        raise AssetFetchError("Not an image.")

    for el in list(root.iter()):
        parent = el.getparent()
        if not isinstance(el.tag, str):
            # entities and anything else that is not an element
            if parent is not None:
                parent.remove(el)
            continue
        if etree.QName(el).localname.lower() in _UNSAFE_SVG_TAGS:
            if parent is not None:
                parent.remove(el)
            continue
        if _rewrites_link(el):
            if parent is not None:
                parent.remove(el)
            continue
        for name in list(el.attrib):
            local = etree.QName(name).localname.lower()
            if local.startswith("on"):
                del el.attrib[name]
            elif local == "href" and not _SAFE_HREF.match(el.attrib[name]):
                del el.attrib[name]

    view_box = (root.get("viewBox") or "").replace(",", " ").split()
    if len(view_box) == 4:
        if root.get("width") is None:
            root.set("width", view_box[2])
        if root.get("height") is None:
            root.set("height", view_box[3])

    return etree.tostring(root, encoding="utf-8")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Public fetchers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def _load(source: bytes | str) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        body = bytes(source)
    else:
        body = await safe_fetch(source)
    if len(body) > get_settings().max_asset_bytes:
        raise AssetFetchError("File is too large")
    return body


# -----------------------------------------------------------------------------

async def _ingest_image(source: bytes | str) -> AssetDescriptor:
    body = await _load(source)

    if _looks_like_svg(body):
        cleaned = sanitize_svg(body.decode("utf-8", errors="replace"))
        return _describe("image", "svg", cleaned)

    kind = filetype.guess(body)
    if kind is None or kind.mime not in _ALLOWED_IMAGES:
        raise AssetFetchError("Not an image.")
    return _describe("image", _ALLOWED_IMAGES[kind.mime], body)


async def _ingest_pdf(source: bytes | str) -> AssetDescriptor:
    body = await _load(source)
    kind = filetype.guess(body)
    if kind is None or kind.mime != "application/pdf":
        raise AssetFetchError("Not a pdf.")
    return _describe("pdf", "pdf", body)


# -----------------------------------------------------------------------------

async def fetch_image(source: bytes | str) -> Result[AssetDescriptor]:
    try:
        return Ok(await _ingest_image(source))
    except AssetFetchError as exc:
        logger.info("Image rejected: %s", exc)
        return Err("fetch-error", str(exc))


async def fetch_pdf(source: bytes | str) -> Result[AssetDescriptor]:
    try:
        return Ok(await _ingest_pdf(source))
    except AssetFetchError as exc:
        logger.info("PDF rejected: %s", exc)
        return Err("fetch-error", str(exc))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Disk
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def write_asset(asset: AssetDescriptor) -> None:
    asset.suggested_path.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(asset.suggested_path, "wb") as fh:
        await fh.write(asset.body)
    logger.info("Stored %s asset %s (%d bytes)", asset.kind, asset.id, len(asset.body))


# -----------------------------------------------------------------------------

async def remove_asset(kind: AssetKind, asset_id: str | None) -> None:
    """Best-effort delete; a file that is already gone is not an error."""
    if not asset_id:
        return
    path = asset_file(kind, asset_id)
    if path is None:
        logger.warning("Refusing to remove suspicious %s asset id %r", kind, asset_id)
        return
    try:
        await aiofiles.os.remove(path)
        logger.info("Removed %s asset %s", kind, asset_id)
    except FileNotFoundError:
        logger.debug("%s asset %s was already gone", kind, asset_id)
    except OSError:
        logger.exception("Could not remove %s asset %s", kind, asset_id)


# -----------------------------------------------------------------------------

def asset_file(kind: AssetKind, asset_id: str) -> Path | None:
    """Path of a stored asset, or None when *asset_id* is not a plain file name."""
    if Path(asset_id).name != asset_id or asset_id in ("", ".", ".."):
        return None
    return asset_dir(kind) / asset_id


# -----------------------------------------------------------------------------

def image_path(asset_id: str | None) -> str | None:
    return None if asset_id is None else f"/api/user-content/image/{asset_id}"


def pdf_path(asset_id: str) -> str:
    return f"/api/user-content/pdf/{asset_id}"


def initiative_row(initiative: Initiative) -> dict[str, Any]:
    return {
        "id": initiative.id,
        "short_name": initiative.short_name,
        "full_name": initiative.full_name,
        "website": initiative.website,
        "pdf": pdf_path(initiative.pdf),
        "image": image_path(initiative.image),
        "deadline": initiative.deadline,
    }


def organisation_row(organisation: Organisation) -> dict[str, Any]:
    return {
        "id": organisation.id,
        "name": organisation.name,
        "image": image_path(organisation.image),
        "website": organisation.website,
    }


# -----------------------------------------------------------------------------

async def prune_assets(db: AsyncSession) -> list[str]:
    """Delete asset files that no row references.  Returns removed file names."""
    images = set(
        (await db.execute(
            union(select(Initiative.image), select(Organisation.image))
        )).scalars().all()
    )
    pdfs = set((await db.execute(select(Initiative.pdf))).scalars().all())

    removed: list[str] = []
    for kind, referenced in (("image", images), ("pdf", pdfs)):
        directory = asset_dir(kind)
        for name in await aiofiles.os.listdir(directory):
            if name in referenced:
                continue
            try:
                await aiofiles.os.remove(directory / name)
            except FileNotFoundError:
                continue
            removed.append(f"{kind}/{name}")

    logger.info("Pruned %d orphaned asset(s)", len(removed))
    return removed


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Request bodies
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_FORM_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")
# multipart boundaries, part headers and the text fields
_FORM_OVERHEAD = 64 * 1024


async def merge_body_files(request: Request, file_keys: Iterable[str] = ()) -> Any:
    """Merge a JSON or form body with uploaded files into one mapping.

    Uploaded files replace a text field of the same name.  Uploads are read up
    to one byte past the size cap so oversized files are rejected later by
    the fetchers without buffering the whole thing.  A form whose declared
    length cannot fit within the caps is refused before it is read.
    """
    content_type = request.headers.get("content-type", "")
    file_keys = tuple(file_keys)

    if content_type.startswith(_FORM_TYPES):
        cap = get_settings().max_asset_bytes
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > cap * max(len(file_keys), 1) + _FORM_OVERHEAD:
            raise ApiError(
                status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                "body-too-large",
                "Request body is too large.",
            )
        limit = cap + 1
        form = await request.form()
        body: dict[str, Any] = {}
        uploads: dict[str, bytes] = {}
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key in uploads:
                    continue
                data = await value.read(limit)
                if data:
                    uploads[key] = data
            elif key not in body:
                body[key] = value
        for key, data in uploads.items():
            if key not in file_keys:
                # surfaces as unknown-key unless the text field is also known
                body.setdefault(key, data)
                continue
            body[key] = data
        return body

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST, "invalid-type", "Body is not valid JSON."
        ) from exc


# -----------------------------------------------------------------------------
