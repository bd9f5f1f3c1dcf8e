"""Initial archive metadata schema.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-16 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "archive",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("hash", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_archive"),
        sa.UniqueConstraint("hash", name="uq_archive_archive_hash"),
    )
    op.create_table(
        "archive_source",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("archive_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("url", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(
            ["archive_id"],
            ["archive.id"],
            name="fk_archive_source_archive_source_archive_id_archive",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_archive_source"),
    )
    op.create_index(
        "ix_archive_source_archive_id",
        "archive_source",
        ["archive_id"],
        unique=False,
    )
    op.create_table(
        "archive_image",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("archive_id", sa.Integer(), nullable=False),
        sa.Column("filename", sa.String(), nullable=False),
        sa.Column("page_number", sa.Integer(), nullable=False),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(
            ["archive_id"],
            ["archive.id"],
            name="fk_archive_image_archive_image_archive_id_archive",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_archive_image"),
        sa.UniqueConstraint(
            "archive_id",
            "page_number",
            name="uq_archive_image_archive_image_archive_id",
        ),
    )
    op.create_table(
        "tag",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("namespace", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_tag"),
        sa.UniqueConstraint("namespace", "name", name="uq_tag_tag_namespace"),
    )
    op.create_table(
        "archive_tag",
        sa.Column("archive_id", sa.Integer(), nullable=False),
        sa.Column("tag_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["archive_id"],
            ["archive.id"],
            name="fk_archive_tag_archive_tag_archive_id_archive",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["tag_id"],
            ["tag.id"],
            name="fk_archive_tag_archive_tag_tag_id_tag",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("archive_id", "tag_id", name="pk_archive_tag"),
    )
    op.create_index("ix_archive_tag_tag_id", "archive_tag", ["tag_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_archive_tag_tag_id", table_name="archive_tag")
    op.drop_table("archive_tag")
    op.drop_table("tag")
    op.drop_table("archive_image")
    op.drop_index("ix_archive_source_archive_id", table_name="archive_source")
    op.drop_table("archive_source")
    op.drop_table("archive")
