# src/fcrank/services/rankings.py

"""Build and refresh per-game ranking snapshots from upstream data."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fcrank.schemas.common import clamp_tier, tier_to_score
from fcrank.schemas.profile import RankingPage, UpstreamProfile
from fcrank.schemas.snapshot import PlayerRecord, Snapshot
from fcrank.services.snapshot_store import SnapshotStore
from fcrank.services.upstream_client import FightcadeClient

logger = logging.getLogger(__name__)

# Games offered by the fetch script when no game ID is given.
POPULAR_GAMES = {
    "sfiii3nr1": "Street Fighter III: 3rd Strike",
    "sfa3": "Street Fighter Alpha 3",
    "sf2ce": "Street Fighter II Champion Edition",
    "kof98": "King of Fighters 98",
    "kof2002": "King of Fighters 2002",
}


def to_player_record(
    profile: UpstreamProfile, game_id: str, position: int
) -> PlayerRecord:
    """Convert one upstream ranking entry into a snapshot record."""
    info = profile.game(game_id)
    tier = clamp_tier(info.rank if info else None)
    return PlayerRecord(
        name=profile.name or "Unknown",
        score=tier_to_score(tier),
        rank_position=position,
        tier=tier,
        total_matches=info.num_matches if info else 0,
        time_played=info.time_played if info else 0,
        country=profile.country,
    )


def build_snapshot(
    game_id: str,
    game_name: str,
    page: RankingPage,
    fetched_at: datetime | None = None,
) -> Snapshot:
    """Turn a bulk rankings fetch into a snapshot.

    Positions follow upstream order, starting at 1.
    """
    players = tuple(
        to_player_record(profile, game_id, index + 1)
        for index, profile in enumerate(page.players)
    )
    return Snapshot(
        game_id=game_id,
        game_name=game_name,
        players=players,
        fetched_at=fetched_at or datetime.now(timezone.utc),
        total_players=len(players),
        total_available=max(page.total_count, len(players)),
    )


class RankingsFetcher:
    """Fetches a game's complete rankings and saves them as a snapshot."""

    def __init__(
        self,
        client: FightcadeClient,
        store: SnapshotStore,
        max_players: int = 100_000,
    ) -> None:
        self._client = client
        self._store = store
        self._max_players = max_players

    async def refresh(self, game_id: str, game_name: str | None = None) -> Snapshot:
        """Fetch, build and save a fresh snapshot for ``game_id``.

        A truncated fetch still produces a (smaller) snapshot. Errors on the
        first page propagate and leave any previous snapshot in place.
        """
        game_name = game_name or POPULAR_GAMES.get(game_id, game_id)
        logger.info("Refreshing rankings for %s (%s)", game_name, game_id)

        page = await self._client.fetch_all_pages(game_id, self._max_players)
        snapshot = build_snapshot(game_id, game_name, page)
        await self._store.save(snapshot)

        if page.truncated:
            logger.warning(
                "Saved partial snapshot for %s: %d of %d players",
                game_id,
                snapshot.total_players,
                snapshot.total_available,
                extra={"game_id": game_id},
            )
        return snapshot
