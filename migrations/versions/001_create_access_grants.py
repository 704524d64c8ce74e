"""Create access_grants table.

Revision ID: 001_access_grants
Revises:
Create Date: 2026-10-16
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "001_access_grants"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "access_grants",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("pet_id", sa.String(64), nullable=False),
        sa.Column("owner_user_id", sa.String(64), nullable=False),
        sa.Column("grantee_user_id", sa.String(64), nullable=False),
        sa.Column(
            "scopes",
            postgresql.ARRAY(sa.String(32)),
            nullable=False,
            server_default="{}",
        ),
        sa.Column(
            "status",
            sa.String(16),
            nullable=False,
            server_default="invited",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "owner_user_id != grantee_user_id", name="ck_grant_not_self"
        ),
        sa.CheckConstraint(
            "(status = 'revoked') = (revoked_at IS NOT NULL)",
            name="ck_grant_revoked_at",
        ),
    )

    op.create_index("ix_access_grants_pet_id", "access_grants", ["pet_id"])
    op.create_index(
        "ix_access_grants_owner_user_id", "access_grants", ["owner_user_id"]
    )
    op.create_index(
        "ix_access_grants_grantee_user_id", "access_grants", ["grantee_user_id"]
    )
    op.create_index(
        "ix_access_grants_active_lookup",
        "access_grants",
        ["pet_id", "grantee_user_id", "updated_at"],
        postgresql_where=sa.text("status = 'active'"),
    )


def downgrade() -> None:
    op.drop_index("ix_access_grants_active_lookup", table_name="access_grants")
    op.drop_index("ix_access_grants_grantee_user_id", table_name="access_grants")
    op.drop_index("ix_access_grants_owner_user_id", table_name="access_grants")
    op.drop_index("ix_access_grants_pet_id", table_name="access_grants")
    op.drop_table("access_grants")
