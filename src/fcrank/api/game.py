# src/fcrank/api/game.py

"""API endpoints for per-game ranking snapshots."""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from fcrank.config import Settings
from fcrank.dependencies import get_fetcher, get_settings, get_store
from fcrank.exceptions import GameDataNotFoundError
from fcrank.schemas.search import (
    GameSummary,
    PagedResponse,
    PlayerNotFoundResponse,
    SearchFilters,
)
from fcrank.schemas.snapshot import PlayerRecord, Snapshot
from fcrank.schemas.statistics import GameListing
from fcrank.services import search_service
from fcrank.services.rankings import RankingsFetcher
from fcrank.services.snapshot_store import SnapshotStore

# - prefix="/games": All routes defined here will be prefixed with /games
# - tags=["Games"]: Groups these endpoints under "Games" in the API docs
router = APIRouter(prefix="/games", tags=["Games"])


async def _require_snapshot(store: SnapshotStore, game_id: str) -> Snapshot:
    snapshot = await store.load(game_id)
    if snapshot is None:
        raise GameDataNotFoundError(game_id)
    return snapshot


def _summary(snapshot: Snapshot, store: SnapshotStore, settings: Settings) -> GameSummary:
    return GameSummary(
        game_id=snapshot.game_id,
        game_name=snapshot.game_name,
        total_players=snapshot.total_players,
        total_available=snapshot.total_available,
        fetched_at=snapshot.fetched_at,
        is_stale=store.is_stale(snapshot, settings.snapshot_stale_hours),
        stats=search_service.get_player_stats(snapshot.players),
    )


@router.get("/", response_model=list[GameListing])
async def read_games(store: SnapshotStore = Depends(get_store)) -> list[GameListing]:
    """List every game with a saved snapshot."""
    return [
        GameListing(game_id=game_id, game_name=game_name)
        for game_id, game_name in await store.list_summaries()
    ]


@router.get("/{game_id}", response_model=GameSummary)
async def read_game(
    game_id: str,
    store: SnapshotStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> GameSummary:
    """
    Retrieve a game's snapshot summary.

    Stale snapshots are still served, flagged with **is_stale**.

    Raises:
        404 Not Found: If no snapshot has been fetched for the game.
    """
    snapshot = await _require_snapshot(store, game_id)
    return _summary(snapshot, store, settings)


@router.post("/{game_id}/refresh", response_model=GameSummary)
async def refresh_game(
    game_id: str,
    game_name: str | None = Query(None, description="Display name for the game"),
    fetcher: RankingsFetcher = Depends(get_fetcher),
    store: SnapshotStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> GameSummary:
    """
    Fetch the full rankings for a game from upstream and replace its snapshot.

    Raises:
        502 Bad Gateway: If upstream fails before any players arrive.
    """
    snapshot = await fetcher.refresh(game_id, game_name)
    return _summary(snapshot, store, settings)


@router.get("/{game_id}/search", response_model=PagedResponse[PlayerRecord])
async def search_players(
    game_id: str,
    name: str | None = Query(None, description="Case-insensitive name substring"),
    min_score: float | None = Query(None),
    max_score: float | None = Query(None),
    min_rank: int | None = Query(None, ge=1),
    max_rank: int | None = Query(None, ge=1),
    country: str | None = Query(None, description="Case-insensitive country substring"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    store: SnapshotStore = Depends(get_store),
) -> PagedResponse[PlayerRecord]:
    """
    Search a game's players.

    - **name**: Substring of the player name
    - **min_score** / **max_score**: Score bounds
    - **min_rank** / **max_rank**: Ranking position bounds
    - **country**: Substring of the country name
    - **page** / **page_size**: Pagination (1-indexed)
    """
    snapshot = await _require_snapshot(store, game_id)
    filters = SearchFilters(
        name=name,
        min_score=min_score,
        max_score=max_score,
        min_rank=min_rank,
        max_rank=max_rank,
        country=country,
    )
    return search_service.search_players(snapshot.players, filters, page, page_size)


@router.get(
    "/{game_id}/players/{player_name}",
    response_model=PlayerRecord,
    responses={404: {"model": PlayerNotFoundResponse}},
)
async def read_player(
    game_id: str, player_name: str, store: SnapshotStore = Depends(get_store)
) -> PlayerRecord | JSONResponse:
    """
    Find a player by exact (case-insensitive) name.

    A miss returns 404 with up to five partial-name suggestions.
    """
    snapshot = await _require_snapshot(store, game_id)
    player = search_service.find_player_by_name(snapshot.players, player_name)
    if player is None:
        suggestions = search_service.find_players_by_partial_name(
            snapshot.players, player_name, limit=5
        )
        body = PlayerNotFoundResponse(
            detail="Player not found", suggestions=[p.name for p in suggestions]
        )
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content=body.model_dump()
        )
    return player


@router.get("/{game_id}/countries", response_model=list[str])
async def read_countries(
    game_id: str, store: SnapshotStore = Depends(get_store)
) -> list[str]:
    """Distinct countries represented in a game's snapshot."""
    snapshot = await _require_snapshot(store, game_id)
    return search_service.get_unique_countries(snapshot.players)


@router.get("/{game_id}/top", response_model=list[PlayerRecord])
async def read_top_players(
    game_id: str,
    count: int = Query(10, ge=1, le=500, description="Number of players"),
    store: SnapshotStore = Depends(get_store),
) -> list[PlayerRecord]:
    """The best-ranked players of a game."""
    snapshot = await _require_snapshot(store, game_id)
    return search_service.get_top_players(snapshot.players, count)
