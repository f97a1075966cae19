#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Initiatives router
==================
GET    /api/initiatives                                   list
POST   /api/initiative/create                             create  [admin]
GET    /api/initiative/{id}                               detail
PATCH  /api/initiative/{id}                               update  [admin]
DELETE /api/initiative/{id}                               delete  [admin]
PUT    /api/initiative/{id}/sign/{person_id}              sign    [owner]
DELETE /api/initiative/{id}/sign/{person_id}              unsign  [owner]
PUT    /api/initiative/{id}/organisation/{org_id}         link    [admin]
DELETE /api/initiative/{id}/organisation/{org_id}         unlink  [admin]

Bodies may be JSON or multipart; ``pdf`` and ``image`` accept a file upload
or a URL to fetch.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import LoginInfo, get_login, require_admin
from app.schemas import ApiSuccess, InitiativeResponse, OKResponse
from app.services import initiatives as initiative_svc
from app.services.uploads import merge_body_files

# -----------------------------------------------------------------------------

router = APIRouter(tags=["initiatives"], dependencies=[Depends(get_login)])

_FILE_KEYS = ["pdf", "image"]


# -----------------------------------------------------------------------------

@router.get("/initiatives", response_model=ApiSuccess[list[InitiativeResponse]])
async def list_initiatives(
    login: LoginInfo = Depends(get_login),
    db: AsyncSession = Depends(get_db),
):
    return {"data": await initiative_svc.list_initiatives(db, login.id)}


# -----------------------------------------------------------------------------

@router.post(
    "/initiative/create",
    response_model=ApiSuccess[InitiativeResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_initiative(
    request: Request,
    login: LoginInfo = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    body = await merge_body_files(request, _FILE_KEYS)
    return {"data": await initiative_svc.create_initiative(db, login.id, body)}


# -----------------------------------------------------------------------------

@router.get("/initiative/{initiative_id}", response_model=ApiSuccess[InitiativeResponse])
async def get_initiative(
    initiative_id: str,
    login: LoginInfo = Depends(get_login),
    db: AsyncSession = Depends(get_db),
):
    return {"data": await initiative_svc.get_initiative(db, login.id, initiative_id)}


# -----------------------------------------------------------------------------

@router.patch("/initiative/{initiative_id}", response_model=ApiSuccess[InitiativeResponse])
async def patch_initiative(
    initiative_id: str,
    request: Request,
    login: LoginInfo = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    body = await merge_body_files(request, _FILE_KEYS)
    return {"data": await initiative_svc.patch_initiative(db, login.id, initiative_id, body)}


# -----------------------------------------------------------------------------

@router.delete("/initiative/{initiative_id}", response_model=OKResponse)
async def delete_initiative(
    initiative_id: str,
    _admin: LoginInfo = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await initiative_svc.delete_initiative(db, initiative_id)
    return OKResponse()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Signatures
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.put(
    "/initiative/{initiative_id}/sign/{person_id}",
    response_model=OKResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_signature(
    initiative_id: str,
    person_id: str,
    login: LoginInfo = Depends(get_login),
    db: AsyncSession = Depends(get_db),
):
    await initiative_svc.add_signature(db, login.id, initiative_id, person_id)
    return OKResponse()


@router.delete("/initiative/{initiative_id}/sign/{person_id}", response_model=OKResponse)
async def remove_signature(
    initiative_id: str,
    person_id: str,
    login: LoginInfo = Depends(get_login),
    db: AsyncSession = Depends(get_db),
):
    await initiative_svc.remove_signature(db, login.id, initiative_id, person_id)
    return OKResponse()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Organisations
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.put(
    "/initiative/{initiative_id}/organisation/{organisation_id}",
    response_model=OKResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_organisation(
    initiative_id: str,
    organisation_id: str,
    _admin: LoginInfo = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await initiative_svc.add_organisation(db, initiative_id, organisation_id)
    return OKResponse()


@router.delete(
    "/initiative/{initiative_id}/organisation/{organisation_id}",
    response_model=OKResponse,
)
async def remove_organisation(
    initiative_id: str,
    organisation_id: str,
    _admin: LoginInfo = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await initiative_svc.remove_organisation(db, initiative_id, organisation_id)
    return OKResponse()


# -----------------------------------------------------------------------------
