#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Organisation service
====================
Admin-maintained organisations, each with an optional logo image.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession


# -----------------------------------------------------------------------------

from app.core.errors import ApiError, not_found
from app.models import Initiative, InitiativeOrganisation, Organisation
from .fields import validate_image, validate_name, validate_website
from .slug import insert_with_slug
from .sorting import sort_initiatives, sort_organisations
from .uploads import initiative_row, organisation_row, remove_asset, write_asset
from .validation import BodyValidator

logger = logging.getLogger(__name__)

validate_organisation = BodyValidator({
    "name": validate_name,
    "image": validate_image,
    "website": validate_website,
})

_MISSING = "Organisation does not exist."


# -----------------------------------------------------------------------------

async def enrich_organisations(
    db: AsyncSession, organisations: list[Organisation]
) -> list[dict[str, Any]]:
    ids = [organisation.id for organisation in organisations]
    if not ids:
        return []

    linked: dict[str, list[Initiative]] = defaultdict(list)
    result = await db.execute(
        select(InitiativeOrganisation.organisation_id, Initiative)
        .join(Initiative, Initiative.id == InitiativeOrganisation.initiative_id)
        .where(InitiativeOrganisation.organisation_id.in_(ids))
    )
    for organisation_id, initiative in result.all():
        linked[organisation_id].append(initiative)

    return [
        {
            **organisation_row(organisation),
            "initiatives": [
                initiative_row(i) for i in sort_initiatives(linked[organisation.id])
            ],
        }
        for organisation in organisations
    ]


# -----------------------------------------------------------------------------

async def list_organisations(db: AsyncSession) -> list[dict[str, Any]]:
    result = await db.execute(select(Organisation))
    return await enrich_organisations(db, sort_organisations(result.scalars().all()))


async def get_organisation(db: AsyncSession, organisation_id: str) -> dict[str, Any]:
    organisation = await db.get(Organisation, organisation_id)
    if organisation is None:
        raise not_found(_MISSING)
    [enriched] = await enrich_organisations(db, [organisation])
    return enriched


# -----------------------------------------------------------------------------

async def create_organisation(db: AsyncSession, body: Any) -> dict[str, Any]:
    supplied = [key for key in ("image", "website") if isinstance(body, dict) and key in body]
    result = await validate_organisation(body, ["name", *supplied])
    if not result.ok:
        raise ApiError.from_err(result)
    data = result.value

    image = data.get("image")
    if image is not None:
        await write_asset(image)

    organisation = await insert_with_slug(
        db,
        data["name"],
        lambda slug: Organisation(
            id=slug,
            name=data["name"],
            image=image.id if image is not None else None,
            website=data.get("website"),
        ),
    )
    logger.info("Created organisation %s", organisation.id)
    [enriched] = await enrich_organisations(db, [organisation])
    return enriched


# -----------------------------------------------------------------------------

async def patch_organisation(db: AsyncSession, organisation_id: str, body: Any) -> dict[str, Any]:
    organisation = await db.get(Organisation, organisation_id)
    if organisation is None:
        raise not_found(_MISSING)

    result = await validate_organisation(body, list(body) if isinstance(body, dict) else [])
    if not result.ok:
        raise ApiError.from_err(result)
    data = result.value

    if "image" in data:
        await remove_asset("image", organisation.image)
        if data["image"] is not None:
            await write_asset(data["image"])
        organisation.image = data["image"].id if data["image"] is not None else None
    if "name" in data:
        organisation.name = data["name"]
    if "website" in data:
        organisation.website = data["website"]

    if data:
        await db.flush()
        logger.info("Patched organisation %s: %s", organisation_id, ", ".join(data))

    [enriched] = await enrich_organisations(db, [organisation])
    return enriched


# -----------------------------------------------------------------------------

async def delete_organisation(db: AsyncSession, organisation_id: str) -> None:
    image = await db.scalar(
        select(Organisation.image).where(Organisation.id == organisation_id)
    )
    await remove_asset("image", image)

    result = await db.execute(delete(Organisation).where(Organisation.id == organisation_id))
    if result.rowcount == 0:
        raise not_found(_MISSING)
    logger.info("Deleted organisation %s", organisation_id)


# -----------------------------------------------------------------------------
