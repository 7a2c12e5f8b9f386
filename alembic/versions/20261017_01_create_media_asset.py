"""Create media_asset table."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261017_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "media_asset",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("source", sa.String(length=16), nullable=False),
        sa.Column("path", sa.String(length=512)),
        sa.Column("file_name", sa.String(length=255)),
        sa.Column("disk", sa.String(length=64)),
        sa.Column("url", sa.String(length=1000)),
        sa.Column("thumbnail_path", sa.String(length=512)),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("date", sa.Date()),
        sa.Column("meta", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )
    op.create_index("ix_media_asset_kind", "media_asset", ["kind"])
    op.create_index("ix_media_asset_file_name", "media_asset", ["file_name"])


def downgrade() -> None:
    op.drop_index("ix_media_asset_file_name", table_name="media_asset")
    op.drop_index("ix_media_asset_kind", table_name="media_asset")
    op.drop_table("media_asset")
