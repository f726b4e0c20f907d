"""Create scenes table

Revision ID: 20261019_scenes
Revises:
Create Date: 2026-10-19

Scenes group upstream usernames per game. Player lists are stored as a
JSON array in display order.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261019_scenes"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "scenes",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=False, server_default=""),
        sa.Column("game_id", sa.String(), nullable=False),
        sa.Column("game_name", sa.String(), nullable=False, server_default=""),
        sa.Column("players", sa.JSON(), nullable=False),
        sa.Column(
            "submitted_by", sa.String(), nullable=False, server_default="anonymous"
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_scenes_game_id", "scenes", ["game_id"])


def downgrade() -> None:
    op.drop_index("ix_scenes_game_id", table_name="scenes")
    op.drop_table("scenes")
