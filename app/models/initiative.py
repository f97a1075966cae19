#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------

"""
Initiative model and its join tables
====================================
An initiative owns exactly one PDF asset and at most one image asset; both
columns store the asset id.  ``deadline`` is an ISO date string (YYYY-MM-DD).

Signatures join people to initiatives, InitiativeOrganisation joins
organisations to initiatives.  Both cascade from either side.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Initiative(Base):
    __tablename__ = "initiatives"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    short_name: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(Text, nullable=False)
    website: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pdf: Mapped[str] = mapped_column(String(64), nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    deadline: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    def __repr__(self) -> str:
        return f"<Initiative {self.short_name!r}>"


class Signature(Base):
    __tablename__ = "signatures"

    person_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("people.id", ondelete="CASCADE"), primary_key=True
    )
    initiative_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("initiatives.id", ondelete="CASCADE"), primary_key=True
    )


class InitiativeOrganisation(Base):
    __tablename__ = "initiative_organisations"

    initiative_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("initiatives.id", ondelete="CASCADE"), primary_key=True
    )
    organisation_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("organisations.id", ondelete="CASCADE"), primary_key=True
    )
