# src/fcrank/schemas/search.py

"""Search and pagination schemas for snapshot queries."""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class SearchFilters(BaseModel):
    """Optional filters applied to a snapshot's player list.

    Name and country match case-insensitively on a substring.
    """

    name: str | None = None
    min_score: float | None = None
    max_score: float | None = None
    min_rank: int | None = Field(None, ge=1)
    max_rank: int | None = Field(None, ge=1)
    country: str | None = None


class PagedResponse(BaseModel, Generic[T]):
    """Page-numbered response wrapper.

    Attributes:
        items: List of items for the current page
        total: Total number of records matching the filters
        page: 1-indexed page number
        page_size: Maximum number of records per page
        total_pages: Number of pages available
    """

    items: list[T]
    total: int = Field(..., description="Total records matching filters")
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)


class PlayerSummaryStats(BaseModel):
    total_players: int = 0
    average_score: int = 0
    median_score: float = 0
    top_score: float = 0
    bottom_score: float = 0


class GameSummary(BaseModel):
    """Overview of one game's snapshot."""

    game_id: str
    game_name: str
    total_players: int
    total_available: int
    fetched_at: datetime
    is_stale: bool
    stats: PlayerSummaryStats


class PlayerNotFoundResponse(BaseModel):
    detail: str
    suggestions: list[str] = Field(default_factory=list)
