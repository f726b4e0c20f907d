# src/fcrank/schemas/cache.py

"""Pydantic schemas for the player cache."""

from datetime import datetime

from pydantic import BaseModel, Field

from .profile import GameInfo, UpstreamProfile


class CacheEntry(BaseModel):
    """A cached upstream profile plus its bookkeeping.

    ``expires_at`` is fixed when the entry is stored; ``hit_count`` and
    ``last_accessed_at`` change on every cache hit.
    """

    key: str = Field(..., description="Lowercased username")
    username: str
    profile: UpstreamProfile
    country: str = "Unknown"
    game_info: dict[str, GameInfo] = Field(default_factory=dict)
    cached_at: datetime
    expires_at: datetime
    hit_count: int = Field(0, ge=0)
    last_accessed_at: datetime


class CacheStats(BaseModel):
    """Point-in-time cache statistics."""

    total_entries: int
    hit_count: int
    miss_count: int
    hit_rate: int = Field(..., description="Hits as a rounded percentage of lookups")
    size_bytes: int
    size_display: str
    oldest_entry: datetime | None = None
    newest_entry: datetime | None = None


class CachedPlayerRead(BaseModel):
    """Summary of a cached player, as listed per game."""

    username: str
    country: str
    cached_at: datetime
    hit_count: int
    last_accessed_at: datetime


class GameCacheListing(BaseModel):
    game_id: str
    cached_players: int
    players: list[CachedPlayerRead]


class CacheActionResult(BaseModel):
    message: str
    removed_count: int = 0
    timestamp: datetime
