"""initial schema

Revision ID: 0001_initial_schema
Revises: 
Create Date: 2026-10-18

"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _id() -> sa.Column:
    return sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.create_table(
        "leads",
        _id(),
        _created_at(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("interest", sa.String(length=64), nullable=False),
        sa.Column("property", sa.String(length=255), nullable=False),
        sa.Column("budget", sa.String(length=128), nullable=False),
        sa.Column("notes", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=64), nullable=False),
    )
    op.create_index("ix_leads_name", "leads", ["name"], unique=False)
    op.create_index("ix_leads_phone", "leads", ["phone"], unique=False)

    op.create_table(
        "visits",
        _id(),
        _created_at(),
        sa.Column("visit_date", sa.String(length=64), nullable=False),
        sa.Column("visit_time", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=64), nullable=False),
        sa.Column("property", sa.String(length=255), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
    )
    op.create_index("ix_visits_name", "visits", ["name"], unique=False)
    op.create_index("ix_visits_property", "visits", ["property"], unique=False)

    op.create_table(
        "call_logs",
        _id(),
        _created_at(),
        sa.Column("phone", sa.String(length=64), nullable=False),
        sa.Column("duration", sa.String(length=32), nullable=False),
        sa.Column("call_type", sa.String(length=64), nullable=False),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("outcome", sa.String(length=64), nullable=False),
    )

    op.create_table(
        "calendar_events",
        _id(),
        _created_at(),
        sa.Column("event_id", sa.String(length=255), nullable=False),
        sa.Column("summary", sa.String(length=255), nullable=False),
        sa.Column("visit_date", sa.String(length=64), nullable=False),
        sa.Column("visit_time", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=64), nullable=False),
        sa.Column("property", sa.String(length=255), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("link", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
    )

    op.create_table(
        "media_logs",
        _id(),
        _created_at(),
        sa.Column("phone", sa.String(length=64), nullable=False),
        sa.Column("direction", sa.String(length=16), nullable=False),
        sa.Column("customer_message", sa.Text(), nullable=False),
        sa.Column("ai_reply", sa.Text(), nullable=False),
        sa.Column("message_type", sa.String(length=32), nullable=False),
        sa.Column("property", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
    )

    op.create_table(
        "properties",
        _id(),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=128), nullable=False),
        sa.Column("bedrooms", sa.String(length=16), nullable=False),
        sa.Column("bathrooms", sa.String(length=16), nullable=False),
        sa.Column("price", sa.String(length=64), nullable=False),
        sa.Column("neighborhood", sa.String(length=128), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("features", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("security", sa.String(length=128), nullable=False),
    )

    op.create_table(
        "faqs",
        _id(),
        sa.Column("category", sa.String(length=128), nullable=False),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("answer", sa.Text(), nullable=False),
        sa.Column("keywords", sa.Text(), nullable=False),
        sa.Column("priority", sa.String(length=32), nullable=False),
    )

    op.create_table(
        "local_info",
        _id(),
        sa.Column("topic", sa.String(length=255), nullable=False),
        sa.Column("information", sa.Text(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("local_info")
    op.drop_table("faqs")
    op.drop_table("properties")
    op.drop_table("media_logs")
    op.drop_table("calendar_events")
    op.drop_table("call_logs")

    op.drop_index("ix_visits_property", table_name="visits")
    op.drop_index("ix_visits_name", table_name="visits")
    op.drop_table("visits")

    op.drop_index("ix_leads_phone", table_name="leads")
    op.drop_index("ix_leads_name", table_name="leads")
    op.drop_table("leads")
