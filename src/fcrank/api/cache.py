# src/fcrank/api/cache.py

"""API endpoints for inspecting and maintaining the player cache."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from fcrank.dependencies import get_cache
from fcrank.schemas.cache import (
    CacheActionResult,
    CachedPlayerRead,
    CacheStats,
    GameCacheListing,
)
from fcrank.services.player_cache import PlayerCache

router = APIRouter(prefix="/cache", tags=["Cache"])


@router.get("/stats", response_model=CacheStats)
async def read_cache_stats(cache: PlayerCache = Depends(get_cache)) -> CacheStats:
    return cache.stats()


@router.get("/game/{game_id}", response_model=GameCacheListing)
async def read_cached_players(
    game_id: str, cache: PlayerCache = Depends(get_cache)
) -> GameCacheListing:
    """Cached players with stats for a game, most recently accessed first."""
    entries = cache.get_for_game(game_id)
    return GameCacheListing(
        game_id=game_id,
        cached_players=len(entries),
        players=[
            CachedPlayerRead(
                username=e.username,
                country=e.country,
                cached_at=e.cached_at,
                hit_count=e.hit_count,
                last_accessed_at=e.last_accessed_at,
            )
            for e in entries
        ],
    )


@router.post("/clear", response_model=CacheActionResult)
async def clear_cache(cache: PlayerCache = Depends(get_cache)) -> CacheActionResult:
    removed = len(cache)
    cache.clear()
    return CacheActionResult(
        message="Cache cleared successfully",
        removed_count=removed,
        timestamp=datetime.now(timezone.utc),
    )


@router.post("/cleanup", response_model=CacheActionResult)
async def cleanup_cache(cache: PlayerCache = Depends(get_cache)) -> CacheActionResult:
    removed = cache.cleanup()
    return CacheActionResult(
        message=f"Removed {removed} expired cache entries",
        removed_count=removed,
        timestamp=datetime.now(timezone.utc),
    )
