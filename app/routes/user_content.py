#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
User content router
===================
GET /api/user-content/pdf/{id}
GET /api/user-content/image/{id}

Asset ids are random and never reused, so responses may be cached forever.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from app.core.errors import not_found
from app.core.security import get_login
from app.services.uploads import asset_file

# -----------------------------------------------------------------------------

router = APIRouter(
    prefix="/user-content", tags=["user-content"], dependencies=[Depends(get_login)]
)

_CACHE_HEADERS = {"Cache-Control": "public, max-age=31536000, immutable"}
# SVGs are served from our own origin
_IMAGE_CSP = {"Content-Security-Policy": "default-src 'none'; style-src 'unsafe-inline'; sandbox"}


# -----------------------------------------------------------------------------

@router.get("/{kind}/{asset_id}")
async def get_asset(kind: Literal["pdf", "image"], asset_id: str):
    path = asset_file(kind, asset_id)
    if path is None or not path.is_file():
        raise not_found("File does not exist.")
    headers = {**_CACHE_HEADERS, **(_IMAGE_CSP if kind == "image" else {})}
    return FileResponse(path, headers=headers)


# -----------------------------------------------------------------------------
