"""
# Nombre de archivo: 20261019_01_coordinacion.py
# Ubicación de archivo: db/alembic/versions/20261019_01_coordinacion.py
# Descripción: Crea tablas posts, squads, users y app_config
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "posts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("location", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lng", sa.Float(), nullable=True),
        sa.Column("contact", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("user_name", sa.String(length=200), nullable=True),
        sa.Column("user_photo", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.Column("resolved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(length=16), nullable=True),
        sa.Column("assigned_to", sa.JSON(), nullable=True),
        sa.Column("history", sa.JSON(), nullable=True),
    )
    op.create_index("ix_posts_category", "posts", ["category"])
    op.create_index("ix_posts_user_id", "posts", ["user_id"])
    op.create_index("ix_posts_created_at", "posts", ["created_at"])

    op.create_table(
        "squads",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("leader_name", sa.String(length=200), nullable=False),
        sa.Column("leader_dni", sa.String(length=64), nullable=False),
        sa.Column("leader_phone", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("lodging_location", sa.String(length=255), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("members_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("intervention_zone", sa.String(length=255), nullable=False),
        sa.Column("location_link", sa.Text(), nullable=True),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lng", sa.Float(), nullable=True),
        sa.Column("equipment", sa.JSON(), nullable=False),
        sa.Column("skills", sa.JSON(), nullable=False),
        sa.Column("mission", sa.JSON(), nullable=False),
    )

    op.create_table(
        "users",
        sa.Column("uid", sa.String(length=128), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("display_name", sa.String(length=200), nullable=False, server_default="Usuario Nuevo"),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="user"),
    )

    op.create_table(
        "app_config",
        sa.Column("key", sa.String(length=32), primary_key=True),
        sa.Column("sheet_url", sa.Text(), nullable=True),
        sa.Column("updated_by", sa.String(length=255), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("app_config")
    op.drop_table("users")
    op.drop_table("squads")
    op.drop_index("ix_posts_created_at", table_name="posts")
    op.drop_index("ix_posts_user_id", table_name="posts")
    op.drop_index("ix_posts_category", table_name="posts")
    op.drop_table("posts")
