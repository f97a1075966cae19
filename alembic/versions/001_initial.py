#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Initial schema: logins, sessions, people, initiatives, organisations

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


# -----------------------------------------------------------------------------

revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


# -----------------------------------------------------------------------------

def upgrade() -> None:
    # ── logins ─────────────────────────────────────────────────────────────────
    op.create_table(
        "logins",
        sa.Column("user_id",       sa.String(36),                       primary_key=True),
        sa.Column("username",      sa.String(64, collation="NOCASE"),   nullable=False, unique=True),
        sa.Column("password_hash", sa.LargeBinary(),                    nullable=False),
        sa.Column("password_salt", sa.LargeBinary(),                    nullable=False),
        sa.Column("is_admin",      sa.Boolean(),                        nullable=False, server_default=sa.text("0")),
        sa.CheckConstraint("is_admin IN (0, 1)", name="ck_logins_is_admin"),
    )

    # ── sessions ───────────────────────────────────────────────────────────────
    op.create_table(
        "sessions",
        sa.Column("session_id", sa.String(128), primary_key=True),
        sa.Column("user_id",    sa.String(36),
                  sa.ForeignKey("logins.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("expires",    sa.BigInteger(), nullable=False),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])

    # ── people ─────────────────────────────────────────────────────────────────
    op.create_table(
        "people",
        sa.Column("id",    sa.String(128),                      primary_key=True),
        sa.Column("name",  sa.String(255, collation="NOCASE"),  nullable=False),
        sa.Column("owner", sa.String(36),
                  sa.ForeignKey("logins.user_id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("owner", "name", name="uq_people_owner_name"),
    )
    op.create_index("ix_people_owner", "people", ["owner"])

    # ── initiatives ────────────────────────────────────────────────────────────
    op.create_table(
        "initiatives",
        sa.Column("id",         sa.String(128), primary_key=True),
        sa.Column("short_name", sa.String(255), nullable=False),
        sa.Column("full_name",  sa.Text(),      nullable=False),
        sa.Column("website",    sa.Text(),      nullable=True),
        sa.Column("pdf",        sa.String(64),  nullable=False),
        sa.Column("image",      sa.String(64),  nullable=True),
        sa.Column("deadline",   sa.String(10),  nullable=True),
    )

    # ── organisations ──────────────────────────────────────────────────────────
    op.create_table(
        "organisations",
        sa.Column("id",      sa.String(128), primary_key=True),
        sa.Column("name",    sa.String(255), nullable=False),
        sa.Column("image",   sa.String(64),  nullable=True),
        sa.Column("website", sa.Text(),      nullable=True),
    )

    # ── join tables ────────────────────────────────────────────────────────────
    op.create_table(
        "signatures",
        sa.Column("person_id",     sa.String(128),
                  sa.ForeignKey("people.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("initiative_id", sa.String(128),
                  sa.ForeignKey("initiatives.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "initiative_organisations",
        sa.Column("initiative_id",   sa.String(128),
                  sa.ForeignKey("initiatives.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("organisation_id", sa.String(128),
                  sa.ForeignKey("organisations.id", ondelete="CASCADE"), primary_key=True),
    )


# -----------------------------------------------------------------------------

def downgrade() -> None:
    op.drop_table("initiative_organisations")
    op.drop_table("signatures")
    op.drop_table("organisations")
    op.drop_table("initiatives")
    op.drop_index("ix_people_owner", table_name="people")
    op.drop_table("people")
    op.drop_index("ix_sessions_user_id", table_name="sessions")
    op.drop_table("sessions")
    op.drop_table("logins")
