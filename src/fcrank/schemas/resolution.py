# src/fcrank/schemas/resolution.py

"""Schemas produced by scene resolution and single-player lookups."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, computed_field

from .profile import ProfileLookup, UpstreamProfile
from .scene import SceneRead


class DataSource(str, Enum):
    """Where a resolved player's data came from."""

    SNAPSHOT = "snapshot"
    LIVE = "live"
    UNRESOLVED = "unresolved"


class ResolvedPlayer(BaseModel):
    """One scene member after resolution.

    Attributes:
        rank_position: Snapshot position, or 0 when unknown
        source: Provenance of the data
    """

    username: str
    rank_position: int = Field(0, ge=0, description="0 = unknown/unranked")
    score: float = 0
    total_matches: int = 0
    country: str = "Unknown"
    source: DataSource
    last_updated: datetime | None = None


class ResolutionSummary(BaseModel):
    """Counts describing how a scene was resolved."""

    total_requested: int = 0
    snapshot_count: int = 0
    live_count: int = 0
    unresolved_count: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def found_count(self) -> int:
        return self.snapshot_count + self.live_count


class SceneResolution(BaseModel):
    """Result of resolving every member of a scene."""

    scene: SceneRead
    players: list[ResolvedPlayer]
    summary: ResolutionSummary
    mode: str = Field("hybrid", description="hybrid, live-only or cached")


class LivePlayerResult(BaseModel):
    username: str
    profile: UpstreamProfile | None = None
    found: bool = False
    error: str | None = None


class LiveSceneResult(BaseModel):
    """Raw live lookups for every member of a scene."""

    scene: SceneRead
    players: list[LivePlayerResult]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def found_count(self) -> int:
        return sum(1 for p in self.players if p.found)


class PlayerLookup(BaseModel):
    """A single cache-then-upstream player lookup."""

    username: str
    profile: UpstreamProfile | None = None
    found: bool = False
    cached: bool = False
    error: str | None = None


class BatchLookupRequest(BaseModel):
    usernames: list[str]


class BatchLookupStats(BaseModel):
    total_requested: int
    users_found: int
    users_not_found: int


class BatchLookupResponse(BaseModel):
    """Live lookups for an explicit list of usernames."""

    results: list[ProfileLookup]
    stats: BatchLookupStats
