#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Organisations router
====================
GET    /api/organisations              list
POST   /api/organisation/create        create  [admin]
GET    /api/organisation/{id}          detail
PATCH  /api/organisation/{id}          update  [admin]
DELETE /api/organisation/{id}          delete  [admin]
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import LoginInfo, get_login, require_admin
from app.schemas import ApiSuccess, OKResponse, OrganisationResponse
from app.services import organisations as organisation_svc
from app.services.uploads import merge_body_files

# -----------------------------------------------------------------------------

router = APIRouter(tags=["organisations"], dependencies=[Depends(get_login)])


# -----------------------------------------------------------------------------

@router.get("/organisations", response_model=ApiSuccess[list[OrganisationResponse]])
async def list_organisations(db: AsyncSession = Depends(get_db)):
    return {"data": await organisation_svc.list_organisations(db)}


@router.post(
    "/organisation/create",
    response_model=ApiSuccess[OrganisationResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_organisation(
    request: Request,
    _admin: LoginInfo = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    body = await merge_body_files(request, ["image"])
    return {"data": await organisation_svc.create_organisation(db, body)}


# -----------------------------------------------------------------------------

@router.get("/organisation/{organisation_id}", response_model=ApiSuccess[OrganisationResponse])
async def get_organisation(organisation_id: str, db: AsyncSession = Depends(get_db)):
    return {"data": await organisation_svc.get_organisation(db, organisation_id)}


@router.patch("/organisation/{organisation_id}", response_model=ApiSuccess[OrganisationResponse])
async def patch_organisation(
    organisation_id: str,
    request: Request,
    _admin: LoginInfo = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    body = await merge_body_files(request, ["image"])
    return {"data": await organisation_svc.patch_organisation(db, organisation_id, body)}


@router.delete("/organisation/{organisation_id}", response_model=OKResponse)
async def delete_organisation(
    organisation_id: str,
    _admin: LoginInfo = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await organisation_svc.delete_organisation(db, organisation_id)
    return OKResponse()


# -----------------------------------------------------------------------------
