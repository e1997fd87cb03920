"""blob store

Revision ID: 202610181200
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202610181200"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "blobs",
        sa.Column("key", sa.String(length=120), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )


def downgrade():
    op.drop_table("blobs")
