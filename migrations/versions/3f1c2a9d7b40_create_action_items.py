"""create_action_items

Creates the action item tables:
  - organizations  — client organizations (read-only for this service)
  - locations      — optional locations of an organization
  - action_items   — tasks with category, status lifecycle and approval flag

Tables created conditionally (IF NOT EXISTS semantics) so the migration can
run against a database that already received them via db.create_all().

Revision ID: 3f1c2a9d7b40
Revises:
Create Date: 2026-10-19 09:12:44.108532
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '3f1c2a9d7b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    # ── Organizations ─────────────────────────────────────────────────────
    if "organizations" not in existing:
        op.create_table(
            "organizations",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("domain", sa.String(length=255), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )

    # ── Locations ─────────────────────────────────────────────────────────
    if "locations" not in existing:
        op.create_table(
            "locations",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("organization_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_locations_organization_id", "locations", ["organization_id"])

    # ── Action items ──────────────────────────────────────────────────────
    if "action_items" not in existing:
        op.create_table(
            "action_items",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("organization_id", sa.Integer(), nullable=False),
            sa.Column("location_id", sa.Integer(), nullable=True),
            sa.Column("title", sa.String(length=300), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("category", sa.String(length=10), nullable=False, server_default="USER"),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column("is_approved", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_by_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("agent_type", sa.String(length=40), nullable=True),
            sa.Column("metadata", sa.JSON(), nullable=True),
            sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_action_items_organization_id", "action_items", ["organization_id"])
        op.create_index("ix_action_items_location_id", "action_items", ["location_id"])
        op.create_index("ix_action_items_category", "action_items", ["category"])
        op.create_index("ix_action_items_status", "action_items", ["status"])
        op.create_index("ix_action_items_agent_type", "action_items", ["agent_type"])
        op.create_index("ix_action_items_created_at", "action_items", ["created_at"])
        op.create_index("ix_action_items_org_status", "action_items", ["organization_id", "status"])
        op.create_index("ix_action_items_org_category", "action_items", ["organization_id", "category"])


def downgrade():
    op.drop_table("action_items")
    op.drop_table("locations")
    op.drop_table("organizations")
