#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
People service
==============
People are owned by the login that created them and are invisible to every
other login.  A name may appear once per owner, compared case-insensitively.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from fastapi import status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession


# -----------------------------------------------------------------------------

from app.core.errors import ApiError, not_found
from app.models import Initiative, Person, Signature
from .fields import validate_name
from .slug import insert_with_slug
from .sorting import sort_initiatives, sort_people
from .uploads import initiative_row
from .validation import BodyValidator

logger = logging.getLogger(__name__)

validate_person = BodyValidator({"name": validate_name})

_MISSING = "Person does not exist."


def _duplicate() -> ApiError:
    return ApiError(
        status.HTTP_409_CONFLICT, "duplicate-person", "Person with that name already exists."
    )


# -----------------------------------------------------------------------------

async def enrich_people(db: AsyncSession, people: list[Person]) -> list[dict[str, Any]]:
    ids = [person.id for person in people]
    if not ids:
        return []

    signed: dict[str, list[Initiative]] = defaultdict(list)
    result = await db.execute(
        select(Signature.person_id, Initiative)
        .join(Initiative, Initiative.id == Signature.initiative_id)
        .where(Signature.person_id.in_(ids))
    )
    for person_id, initiative in result.all():
        signed[person_id].append(initiative)

    return [
        {
            **person.to_dict(),
            "initiatives": [initiative_row(i) for i in sort_initiatives(signed[person.id])],
        }
        for person in people
    ]


# -----------------------------------------------------------------------------

async def _owned(db: AsyncSession, owner: str, person_id: str) -> Person:
    person = await db.scalar(
        select(Person).where(Person.id == person_id, Person.owner == owner)
    )
    if person is None:
        raise not_found(_MISSING)
    return person


async def _name_taken(db: AsyncSession, owner: str, name: str, exclude: str | None = None) -> bool:
    stmt = select(Person.id).where(Person.owner == owner, Person.name == name)
    if exclude is not None:
        stmt = stmt.where(Person.id != exclude)
    return (await db.scalar(stmt.limit(1))) is not None


# -----------------------------------------------------------------------------

async def list_people(db: AsyncSession, owner: str) -> list[dict[str, Any]]:
    result = await db.execute(select(Person).where(Person.owner == owner))
    return await enrich_people(db, sort_people(result.scalars().all()))


async def get_person(db: AsyncSession, owner: str, person_id: str) -> dict[str, Any]:
    [enriched] = await enrich_people(db, [await _owned(db, owner, person_id)])
    return enriched


# -----------------------------------------------------------------------------

async def create_person(db: AsyncSession, owner: str, body: Any) -> dict[str, Any]:
    result = await validate_person(body, ["name"])
    if not result.ok:
        raise ApiError.from_err(result)
    name = result.value["name"]

    if await _name_taken(db, owner, name):
        raise _duplicate()

    try:
        person = await insert_with_slug(
            db, name, lambda slug: Person(id=slug, name=name, owner=owner)
        )
    except IntegrityError as exc:
        raise ApiError(
            status.HTTP_409_CONFLICT,
            "person-already-exists",
            "Person with that name already exists",
        ) from exc

    logger.info("Created person %s for %s", person.id, owner)
    [enriched] = await enrich_people(db, [person])
    return enriched


# -----------------------------------------------------------------------------

async def patch_person(db: AsyncSession, owner: str, person_id: str, body: Any) -> dict[str, Any]:
    person = await _owned(db, owner, person_id)

    result = await validate_person(body, list(body) if isinstance(body, dict) else [])
    if not result.ok:
        raise ApiError.from_err(result)
    data = result.value

    if "name" in data and data["name"] != person.name:
        if await _name_taken(db, owner, data["name"], exclude=person.id):
            raise _duplicate()
        person.name = data["name"]
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            raise ApiError(
                status.HTTP_409_CONFLICT, "unique-name", "Person with that name already exists."
            ) from exc
        logger.info("Renamed person %s", person_id)

    [enriched] = await enrich_people(db, [person])
    return enriched


# -----------------------------------------------------------------------------

async def delete_person(db: AsyncSession, owner: str, person_id: str) -> None:
    result = await db.execute(
        delete(Person).where(Person.id == person_id, Person.owner == owner)
    )
    if result.rowcount == 0:
        raise not_found(_MISSING)
    logger.info("Deleted person %s", person_id)


# -----------------------------------------------------------------------------
