"""initial committee schema

Revision ID: 3a7c1e9d0b42
Revises: 
Create Date: 2026-10-17 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3a7c1e9d0b42"
down_revision = None
branch_labels = None
depends_on = None


def _row_columns():
    return [
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade():
    op.create_table(
        "tenants",
        *_row_columns(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("current_year", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_table(
        "users",
        *_row_columns(),
        sa.Column("username", sa.String(length=80), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=True),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "members",
        *_row_columns(),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("nickname", sa.String(length=100), nullable=True),
        sa.Column("email", sa.String(length=200), nullable=True),
        sa.Column("is_eligible", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "surveys",
        *_row_columns(),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("link_code", sa.String(length=50), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("link_code"),
    )
    op.create_table(
        "survey_items",
        *_row_columns(),
        sa.Column("survey_id", sa.String(length=36), nullable=False),
        sa.Column("role_name", sa.String(length=200), nullable=False),
        sa.Column("max_suggestions", sa.Integer(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["survey_id"], ["surveys.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "commissions",
        *_row_columns(),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("anonymity_mode", sa.String(length=40), nullable=False),
        sa.Column("link_code", sa.String(length=50), nullable=False),
        sa.Column("survey_id", sa.String(length=36), nullable=True),
        sa.Column("finalization_key", sa.String(length=6), nullable=True),
        sa.Column("finalized_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(length=36), nullable=True),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
        sa.ForeignKeyConstraint(["survey_id"], ["surveys.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("link_code"),
    )
    op.create_table(
        "commission_roles",
        *_row_columns(),
        sa.Column("commission_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("max_selections", sa.Integer(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["commission_id"], ["commissions.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "ballots",
        *_row_columns(),
        sa.Column("commission_id", sa.String(length=36), nullable=False),
        sa.Column("role_id", sa.String(length=36), nullable=False),
        sa.Column("signature", sa.String(length=255), nullable=False),
        sa.Column("voter_id", sa.String(length=36), nullable=True),
        sa.ForeignKeyConstraint(["commission_id"], ["commissions.id"]),
        sa.ForeignKeyConstraint(["role_id"], ["commission_roles.id"]),
        sa.ForeignKeyConstraint(["voter_id"], ["members.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "votes",
        *_row_columns(),
        sa.Column("ballot_id", sa.String(length=36), nullable=False),
        sa.Column("member_id", sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(["ballot_id"], ["ballots.id"]),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "survey_votes",
        *_row_columns(),
        sa.Column("survey_id", sa.String(length=36), nullable=False),
        sa.Column("survey_item_id", sa.String(length=36), nullable=True),
        sa.Column("role_name", sa.String(length=200), nullable=False),
        sa.Column("member_id", sa.String(length=36), nullable=True),
        sa.Column("vote_count", sa.Integer(), nullable=False),
        sa.Column("suggestions", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(["survey_id"], ["surveys.id"]),
        sa.ForeignKeyConstraint(["survey_item_id"], ["survey_items.id"]),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "audit_logs",
        *_row_columns(),
        sa.Column("tenant_id", sa.String(length=36), nullable=True),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("actor_id", sa.String(length=36), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade():
    op.drop_table("audit_logs")
    op.drop_table("survey_votes")
    op.drop_table("votes")
    op.drop_table("ballots")
    op.drop_table("commission_roles")
    op.drop_table("commissions")
    op.drop_table("survey_items")
    op.drop_table("surveys")
    op.drop_table("members")
    op.drop_table("users")
    op.drop_table("tenants")
