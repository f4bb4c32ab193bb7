"""Create the sites and files tables."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20250310_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create site metadata and file payload tables."""

    op.create_table(
        "sites",
        sa.Column("id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("index_path", sa.Text(), nullable=True),
        sa.Column(
            "file_count", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "total_bytes", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "files",
        sa.Column("key", sa.Text(), nullable=False),
        sa.Column("site_id", sa.String(length=255), nullable=False),
        sa.Column("path", sa.Text(), nullable=False),
        sa.Column("blob", sa.LargeBinary(), nullable=True),
        sa.Column("type", sa.String(length=255), nullable=True),
        sa.Column("size", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("key"),
    )
    op.create_index("ix_files_site_id", "files", ["site_id"], unique=False)


def downgrade() -> None:
    """Drop all localweb tables."""

    op.drop_index("ix_files_site_id", table_name="files")
    op.drop_table("files")
    op.drop_table("sites")
