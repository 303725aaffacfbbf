"""initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "breeds",
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("species", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("temperament", sa.String(length=32), nullable=False),
        sa.Column("conservation_status", sa.String(length=32), nullable=False),
        sa.Column("origin", sa.String(length=255), nullable=True),
        sa.Column("native_region", sa.String(length=255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("key_characteristics_json", sa.JSON(), nullable=False),
        sa.Column("adaptability", sa.String(length=255), nullable=True),
        sa.Column("avg_milk_yield_min", sa.Float(), nullable=True),
        sa.Column("avg_milk_yield_max", sa.Float(), nullable=True),
        sa.Column("milk_yield_unit", sa.String(length=16), nullable=True),
        sa.Column("avg_body_weight_min", sa.Float(), nullable=True),
        sa.Column("avg_body_weight_max", sa.Float(), nullable=True),
        sa.Column("body_weight_unit", sa.String(length=16), nullable=True),
        sa.Column("stock_img_url", sa.String(length=1024), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("name"),
    )
    op.create_index("ix_breeds_created_at", "breeds", ["created_at"], unique=False)

    op.create_table(
        "breed_origins",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("breed", sa.String(length=128), nullable=False),
        sa.Column("parent_breed", sa.String(length=128), nullable=False),
        sa.Column("contribution_percentage", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("breed <> parent_breed", name="ck_breed_origins_no_self_loop"),
        sa.ForeignKeyConstraint(["breed"], ["breeds.name"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_breed"], ["breeds.name"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("breed", "parent_breed", name="uq_breed_origins_breed_parent"),
    )
    op.create_index("ix_breed_origins_breed", "breed_origins", ["breed"], unique=False)
    op.create_index("ix_breed_origins_parent_breed", "breed_origins", ["parent_breed"], unique=False)
    op.create_index("ix_breed_origins_created_at", "breed_origins", ["created_at"], unique=False)

    op.create_table(
        "cattle_scans",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("image_url", sa.String(length=1024), nullable=False),
        sa.Column("predictions_json", sa.JSON(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("location_accuracy_m", sa.Float(), nullable=True),
        sa.Column("submitter_id", sa.String(length=255), nullable=True),
        sa.Column("is_helpful", sa.Boolean(), nullable=True),
        sa.Column("flagged_for_inspection", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("inspection_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_cattle_scans_submitter_id", "cattle_scans", ["submitter_id"], unique=False)
    op.create_index("ix_cattle_scans_created_at", "cattle_scans", ["created_at"], unique=False)

    op.create_table(
        "confirmed_cattle_breeds",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("scan_id", sa.String(length=36), nullable=True),
        sa.Column("image_url", sa.String(length=1024), nullable=False),
        sa.Column("breed", sa.String(length=128), nullable=False),
        sa.Column("confirmed_by_user_id", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["scan_id"], ["cattle_scans.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["breed"], ["breeds.name"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_confirmed_cattle_breeds_scan_id", "confirmed_cattle_breeds", ["scan_id"], unique=True)
    op.create_index("ix_confirmed_cattle_breeds_breed", "confirmed_cattle_breeds", ["breed"], unique=False)
    op.create_index(
        "ix_confirmed_cattle_breeds_confirmed_by_user_id",
        "confirmed_cattle_breeds",
        ["confirmed_by_user_id"],
        unique=False,
    )
    op.create_index("ix_confirmed_cattle_breeds_created_at", "confirmed_cattle_breeds", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_confirmed_cattle_breeds_created_at", table_name="confirmed_cattle_breeds")
    op.drop_index("ix_confirmed_cattle_breeds_confirmed_by_user_id", table_name="confirmed_cattle_breeds")
    op.drop_index("ix_confirmed_cattle_breeds_breed", table_name="confirmed_cattle_breeds")
    op.drop_index("ix_confirmed_cattle_breeds_scan_id", table_name="confirmed_cattle_breeds")
    op.drop_table("confirmed_cattle_breeds")
    op.drop_index("ix_cattle_scans_created_at", table_name="cattle_scans")
    op.drop_index("ix_cattle_scans_submitter_id", table_name="cattle_scans")
    op.drop_table("cattle_scans")
    op.drop_index("ix_breed_origins_created_at", table_name="breed_origins")
    op.drop_index("ix_breed_origins_parent_breed", table_name="breed_origins")
    op.drop_index("ix_breed_origins_breed", table_name="breed_origins")
    op.drop_table("breed_origins")
    op.drop_index("ix_breeds_created_at", table_name="breeds")
    op.drop_table("breeds")
