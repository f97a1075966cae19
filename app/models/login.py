#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------

"""
Login and Session models
========================
A login is created only through the admin bootstrap CLI.  Sessions are opaque
random tokens; ``expires`` is stored as epoch milliseconds.
"""

from __future__ import annotations

import uuid

from sqlalchemy import BigInteger, Boolean, CheckConstraint, ForeignKey, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Login(Base):
    __tablename__ = "logins"
    __table_args__ = (
        CheckConstraint("is_admin IN (0, 1)", name="ck_logins_is_admin"),
    )

    user_id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    username: Mapped[str] = mapped_column(
        String(64, collation="NOCASE"), unique=True, nullable=False
    )
    password_hash: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    password_salt: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # ── Relationships ───────────────────────────────────────────────────────
    sessions: Mapped[list["Session"]] = relationship(
        back_populates="login", cascade="all, delete-orphan", passive_deletes=True, lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<Login {self.username!r}>"


class Session(Base):
    __tablename__ = "sessions"

    session_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("logins.user_id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires: Mapped[int] = mapped_column(BigInteger, nullable=False)

    login: Mapped[Login] = relationship(back_populates="sessions", lazy="raise")

    def __repr__(self) -> str:
        return f"<Session of {self.user_id} until {self.expires}>"
