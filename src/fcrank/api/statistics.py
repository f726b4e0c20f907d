# src/fcrank/api/statistics.py

"""API endpoints for per-game statistics."""

from fastapi import APIRouter, Depends

from fcrank.dependencies import get_store
from fcrank.exceptions import GameDataNotFoundError
from fcrank.schemas.statistics import GameListing, GameStatistics
from fcrank.services import statistics_service
from fcrank.services.snapshot_store import SnapshotStore

router = APIRouter(prefix="/statistics", tags=["Statistics"])


@router.get("/games", response_model=list[GameListing])
async def read_statistics_games(
    store: SnapshotStore = Depends(get_store),
) -> list[GameListing]:
    return [
        GameListing(game_id=game_id, game_name=game_name)
        for game_id, game_name in await store.list_summaries()
    ]


@router.get("/{game_id}", response_model=GameStatistics)
async def read_statistics(
    game_id: str, store: SnapshotStore = Depends(get_store)
) -> GameStatistics:
    """
    Tier distribution, country breakdown and activity figures for a game.

    Raises:
        404 Not Found: If no snapshot has been fetched for the game.
    """
    snapshot = await store.load(game_id)
    if snapshot is None:
        raise GameDataNotFoundError(game_id)
    return statistics_service.generate_statistics(snapshot)
