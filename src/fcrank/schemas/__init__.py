# src/fcrank/schemas/__init__.py

"""Pydantic schemas for API validation and serialization."""

from .cache import CacheEntry, CacheStats, CachedPlayerRead
from .profile import GameInfo, ProfileLookup, RankingPage, UpstreamProfile
from .resolution import (
    DataSource,
    LiveSceneResult,
    PlayerLookup,
    ResolutionSummary,
    ResolvedPlayer,
    SceneResolution,
)
from .scene import SceneBase, SceneCreate, SceneRead
from .search import GameSummary, PagedResponse, SearchFilters
from .snapshot import PlayerRecord, Snapshot
from .statistics import GameStatistics

__all__ = [
    # Cache
    "CacheEntry",
    "CacheStats",
    "CachedPlayerRead",
    # Upstream profiles
    "GameInfo",
    "ProfileLookup",
    "RankingPage",
    "UpstreamProfile",
    # Resolution
    "DataSource",
    "LiveSceneResult",
    "PlayerLookup",
    "ResolutionSummary",
    "ResolvedPlayer",
    "SceneResolution",
    # Scene
    "SceneBase",
    "SceneCreate",
    "SceneRead",
    # Search
    "GameSummary",
    "PagedResponse",
    "SearchFilters",
    # Snapshot
    "PlayerRecord",
    "Snapshot",
    # Statistics
    "GameStatistics",
]
