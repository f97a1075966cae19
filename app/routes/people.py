#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
People router
=============
Every route is scoped to the caller's own people.

GET    /api/people                list
POST   /api/person/create         create
GET    /api/person/{id}           detail
PATCH  /api/person/{id}           rename
DELETE /api/person/{id}           delete
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import LoginInfo, get_login
from app.schemas import ApiSuccess, OKResponse, PersonResponse
from app.services import people as people_svc
from app.services.uploads import merge_body_files

# -----------------------------------------------------------------------------

router = APIRouter(tags=["people"])


# -----------------------------------------------------------------------------

@router.get("/people", response_model=ApiSuccess[list[PersonResponse]])
async def list_people(
    login: LoginInfo = Depends(get_login),
    db: AsyncSession = Depends(get_db),
):
    return {"data": await people_svc.list_people(db, login.id)}


@router.post(
    "/person/create",
    response_model=ApiSuccess[PersonResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_person(
    request: Request,
    login: LoginInfo = Depends(get_login),
    db: AsyncSession = Depends(get_db),
):
    body = await merge_body_files(request)
    return {"data": await people_svc.create_person(db, login.id, body)}


# -----------------------------------------------------------------------------

@router.get("/person/{person_id}", response_model=ApiSuccess[PersonResponse])
async def get_person(
    person_id: str,
    login: LoginInfo = Depends(get_login),
    db: AsyncSession = Depends(get_db),
):
    return {"data": await people_svc.get_person(db, login.id, person_id)}


@router.patch("/person/{person_id}", response_model=ApiSuccess[PersonResponse])
async def patch_person(
    person_id: str,
    request: Request,
    login: LoginInfo = Depends(get_login),
    db: AsyncSession = Depends(get_db),
):
    body = await merge_body_files(request)
    return {"data": await people_svc.patch_person(db, login.id, person_id, body)}


@router.delete("/person/{person_id}", response_model=OKResponse)
async def delete_person(
    person_id: str,
    login: LoginInfo = Depends(get_login),
    db: AsyncSession = Depends(get_db),
):
    await people_svc.delete_person(db, login.id, person_id)
    return OKResponse()


# -----------------------------------------------------------------------------
