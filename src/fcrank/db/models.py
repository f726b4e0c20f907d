# src/fcrank/db/models.py

"""Database models for the FC Rank application."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

Base = declarative_base()


# ===============================================
# Mixins for Common Columns
# ===============================================


class TimestampMixin:
    """Mixin providing created_at and updated_at timestamp columns."""

    created_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        default=None,
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=True,
    )


# ===============================================
# Scenes
# ===============================================


class Scene(Base, TimestampMixin):
    """A named group of players for one game, e.g. a regional community.

    ``players`` holds upstream usernames in display order.
    """

    __tablename__ = "scenes"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, default="", nullable=False)
    game_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    game_name: Mapped[str] = mapped_column(String, default="", nullable=False)
    players: Mapped[list[str]] = mapped_column(
        JSON, default=lambda: [], nullable=False
    )
    submitted_by: Mapped[str] = mapped_column(
        String, default="anonymous", nullable=False
    )

    def __init__(self, id: str, name: str, game_id: str, **kw: Any):
        super().__init__(**kw)
        self.id = id
        self.name = name
        self.game_id = game_id
