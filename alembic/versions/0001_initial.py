"""users, tiers, workspaces and workspace members

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 09:00:00

"""
from alembic import op
import sqlalchemy as sa

from models.tier import DEFAULT_TIER_LIMITS

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

tier_name = sa.Enum("FREE", "PRO", "ENTERPRISE", name="tiername")
permission = sa.Enum("FULL_ACCESS", "EDIT", "COMMENT", "READ_ONLY", name="permission")


def upgrade():
    tiers = op.create_table(
        "tiers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", tier_name, nullable=False, unique=True),
        sa.Column("storage_limit_bytes", sa.BigInteger(), nullable=False),
        sa.Column("file_upload_limit_bytes", sa.BigInteger(), nullable=False),
        sa.Column("members_per_workspace_limit", sa.Integer(), nullable=False),
        sa.Column("projects_limit", sa.Integer(), nullable=False),
        sa.Column("docs_limit", sa.Integer(), nullable=False),
        sa.Column("drafts_limit", sa.Integer(), nullable=False),
        sa.CheckConstraint("storage_limit_bytes >= 0", name="ck_tiers_storage_limit"),
        sa.CheckConstraint("file_upload_limit_bytes >= 0", name="ck_tiers_file_upload_limit"),
        sa.CheckConstraint("members_per_workspace_limit >= 0", name="ck_tiers_members_limit"),
        sa.CheckConstraint("projects_limit >= 0", name="ck_tiers_projects_limit"),
        sa.CheckConstraint("docs_limit >= 0", name="ck_tiers_docs_limit"),
        sa.CheckConstraint("drafts_limit >= 0", name="ck_tiers_drafts_limit"),
    )
    op.create_index("ix_tiers_id", "tiers", ["id"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(255), nullable=True),
        sa.Column("last_name", sa.String(255), nullable=True),
        sa.Column("avatar_image", sa.String(1000), nullable=True),
        sa.Column("tier_id", sa.Integer(), sa.ForeignKey("tiers.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "workspaces",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("logo_url", sa.String(1000), nullable=True),
        sa.Column("current_storage_bytes", sa.BigInteger(), nullable=False),
        sa.Column("owner_id", sa.String(255), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("current_storage_bytes >= 0", name="ck_workspaces_storage_non_negative"),
    )
    op.create_index("ix_workspaces_slug", "workspaces", ["slug"], unique=True)
    op.create_index("ix_workspaces_owner_id", "workspaces", ["owner_id"])

    op.create_table(
        "workspace_members",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("workspace_id", sa.String(36), sa.ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("permission", permission, nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("workspace_id", "user_id", name="uix_workspace_member"),
    )
    op.create_index("ix_workspace_members_workspace_id", "workspace_members", ["workspace_id"])
    op.create_index("ix_workspace_members_user_id", "workspace_members", ["user_id"])

    op.bulk_insert(
        tiers,
        [{"name": name.value, **limits} for name, limits in DEFAULT_TIER_LIMITS.items()],
    )


def downgrade():
    op.drop_table("workspace_members")
    op.drop_table("workspaces")
    op.drop_table("users")
    op.drop_table("tiers")
    permission.drop(op.get_bind(), checkfirst=True)
    tier_name.drop(op.get_bind(), checkfirst=True)
