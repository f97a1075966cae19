#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------

"""
Person model
============
People belong to the login that created them; a name is unique within its
owner's namespace, compared case-insensitively.
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Person(Base):
    __tablename__ = "people"
    __table_args__ = (
        UniqueConstraint("owner", "name", name="uq_people_owner_name"),
    )

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(255, collation="NOCASE"), nullable=False)
    owner: Mapped[str] = mapped_column(
        String(36), ForeignKey("logins.user_id", ondelete="CASCADE"), nullable=False, index=True
    )

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "owner": self.owner}

    def __repr__(self) -> str:
        return f"<Person {self.name!r}>"
