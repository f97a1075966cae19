#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Initiative service
==================
Create, read, patch and delete initiatives, plus the two join tables that
hang off them (signatures and organisation associations).

Read models are enriched: ``signatures`` lists only the caller's own people,
``organisations`` every associated organisation.  Asset columns hold bare ids
and are rewritten to public paths on the way out.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from fastapi import status
from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession


# -----------------------------------------------------------------------------

from app.core.errors import ApiError, not_found
from app.models import Initiative, InitiativeOrganisation, Organisation, Person, Signature
from .fields import (
    validate_deadline,
    validate_full_name,
    validate_image,
    validate_pdf,
    validate_short_name,
    validate_website,
)
from .slug import insert_with_slug
from .sorting import sort_initiatives, sort_organisations, sort_people
from .uploads import initiative_row, organisation_row, remove_asset, write_asset
from .validation import BodyValidator

logger = logging.getLogger(__name__)

validate_initiative = BodyValidator({
    "shortName": validate_short_name,
    "fullName": validate_full_name,
    "website": validate_website,
    "pdf": validate_pdf,
    "image": validate_image,
    "deadline": validate_deadline,
})

_REQUIRED = ["shortName", "fullName", "pdf"]
_OPTIONAL = ["website", "image", "deadline"]
_COLUMNS = {
    "shortName": "short_name",
    "fullName": "full_name",
    "website": "website",
    "pdf": "pdf",
    "image": "image",
    "deadline": "deadline",
}
_ASSETS = {"pdf": "pdf", "image": "image"}

_MISSING = "Initiative does not exist."


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Read models
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def enrich_initiatives(
    db: AsyncSession, initiatives: list[Initiative], login_id: str
) -> list[dict[str, Any]]:
    ids = [initiative.id for initiative in initiatives]
    if not ids:
        return []

    signers: dict[str, list[Person]] = defaultdict(list)
    result = await db.execute(
        select(Signature.initiative_id, Person)
        .join(Person, Person.id == Signature.person_id)
        .where(Signature.initiative_id.in_(ids), Person.owner == login_id)
    )
    for initiative_id, person in result.all():
        signers[initiative_id].append(person)

    linked: dict[str, list[Organisation]] = defaultdict(list)
    result = await db.execute(
        select(InitiativeOrganisation.initiative_id, Organisation)
        .join(Organisation, Organisation.id == InitiativeOrganisation.organisation_id)
        .where(InitiativeOrganisation.initiative_id.in_(ids))
    )
    for initiative_id, organisation in result.all():
        linked[initiative_id].append(organisation)

    return [
        {
            **initiative_row(initiative),
            "signatures": [p.to_dict() for p in sort_people(signers[initiative.id])],
            "organisations": [
                organisation_row(o) for o in sort_organisations(linked[initiative.id])
            ],
        }
        for initiative in initiatives
    ]


# -----------------------------------------------------------------------------

async def list_initiatives(db: AsyncSession, login_id: str) -> list[dict[str, Any]]:
    result = await db.execute(select(Initiative))
    return await enrich_initiatives(db, sort_initiatives(result.scalars().all()), login_id)


# -----------------------------------------------------------------------------

async def get_initiative(db: AsyncSession, login_id: str, initiative_id: str) -> dict[str, Any]:
    initiative = await db.get(Initiative, initiative_id)
    if initiative is None:
        raise not_found(_MISSING)
    [enriched] = await enrich_initiatives(db, [initiative], login_id)
    return enriched


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Mutations
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def create_initiative(db: AsyncSession, login_id: str, body: Any) -> dict[str, Any]:
    supplied = [key for key in _OPTIONAL if isinstance(body, dict) and key in body]
    result = await validate_initiative(body, _REQUIRED + supplied)
    if not result.ok:
        raise ApiError.from_err(result)
    data = result.value

    pdf = data["pdf"]
    image = data.get("image")
    await write_asset(pdf)
    if image is not None:
        await write_asset(image)

    initiative = await insert_with_slug(
        db,
        data["shortName"],
        lambda slug: Initiative(
            id=slug,
            short_name=data["shortName"],
            full_name=data["fullName"],
            website=data.get("website"),
            pdf=pdf.id,
            image=image.id if image is not None else None,
            deadline=data.get("deadline"),
        ),
    )
    logger.info("Created initiative %s", initiative.id)
    [enriched] = await enrich_initiatives(db, [initiative], login_id)
    return enriched


# -----------------------------------------------------------------------------

async def patch_initiative(
    db: AsyncSession, login_id: str, initiative_id: str, body: Any
) -> dict[str, Any]:
    initiative = await db.get(Initiative, initiative_id)
    if initiative is None:
        raise not_found(_MISSING)

    result = await validate_initiative(body, list(body) if isinstance(body, dict) else [])
    if not result.ok:
        raise ApiError.from_err(result)

    for key, value in result.value.items():
        column = _COLUMNS[key]
        if key in _ASSETS:
            await remove_asset(_ASSETS[key], getattr(initiative, column))
            if value is not None:
                await write_asset(value)
                value = value.id
        setattr(initiative, column, value)

    if result.value:
        await db.flush()
        logger.info("Patched initiative %s: %s", initiative_id, ", ".join(result.value))

    [enriched] = await enrich_initiatives(db, [initiative], login_id)
    return enriched


# -----------------------------------------------------------------------------

async def delete_initiative(db: AsyncSession, initiative_id: str) -> None:
    assets = (await db.execute(
        select(Initiative.pdf, Initiative.image).where(Initiative.id == initiative_id)
    )).one_or_none()
    if assets is not None:
        await remove_asset("pdf", assets.pdf)
        await remove_asset("image", assets.image)

    result = await db.execute(delete(Initiative).where(Initiative.id == initiative_id))
    if result.rowcount == 0:
        raise not_found(_MISSING)
    logger.info("Deleted initiative %s", initiative_id)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Join tables
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def _link(db: AsyncSession, stmt, readable_error: str) -> None:
    try:
        await db.execute(stmt.on_conflict_do_nothing())
    except IntegrityError as exc:
        # foreign key: one side does not exist
        await db.rollback()
        raise ApiError(status.HTTP_404_NOT_FOUND, "not-found", readable_error) from exc


# -----------------------------------------------------------------------------

async def add_signature(
    db: AsyncSession, login_id: str, initiative_id: str, person_id: str
) -> None:
    missing = "Initiative or person not found"
    owner = await db.scalar(select(Person.owner).where(Person.id == person_id))
    if owner is not None and owner != login_id:
        raise not_found(missing)
    await _link(
        db,
        insert(Signature).values(initiative_id=initiative_id, person_id=person_id),
        missing,
    )


async def remove_signature(
    db: AsyncSession, login_id: str, initiative_id: str, person_id: str
) -> None:
    owned = select(Person.id).where(Person.owner == login_id)
    result = await db.execute(
        delete(Signature).where(
            Signature.initiative_id == initiative_id,
            Signature.person_id == person_id,
            Signature.person_id.in_(owned),
        )
    )
    if result.rowcount == 0:
        raise not_found("Signature does not exist.")


# -----------------------------------------------------------------------------

async def add_organisation(db: AsyncSession, initiative_id: str, organisation_id: str) -> None:
    await _link(
        db,
        insert(InitiativeOrganisation).values(
            initiative_id=initiative_id, organisation_id=organisation_id
        ),
        "Initiative or organisation not found",
    )


async def remove_organisation(db: AsyncSession, initiative_id: str, organisation_id: str) -> None:
    result = await db.execute(
        delete(InitiativeOrganisation).where(
            InitiativeOrganisation.initiative_id == initiative_id,
            InitiativeOrganisation.organisation_id == organisation_id,
        )
    )
    if result.rowcount == 0:
        raise not_found("Organisation wasn't associated with initiative.")


# -----------------------------------------------------------------------------
