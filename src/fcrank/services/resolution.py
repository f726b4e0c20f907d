# src/fcrank/services/resolution.py

"""Resolve the members of a scene against snapshot, cache and upstream data.

Hybrid resolution prefers the bulk snapshot, which is cheap and carries
real ranking positions, and only asks upstream about players the snapshot
does not know. Live lookups go through the player cache first. Live data
exposes a coarse tier rather than a global position, so live players are
reported with ``rank_position=0``.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable

from fcrank.exceptions import (
    UpstreamError,
    UpstreamTransportError,
    UpstreamUnavailableError,
)
from fcrank.schemas.common import tier_to_score
from fcrank.schemas.profile import UpstreamProfile
from fcrank.schemas.resolution import (
    DataSource,
    LivePlayerResult,
    LiveSceneResult,
    PlayerLookup,
    ResolutionSummary,
    ResolvedPlayer,
    SceneResolution,
)
from fcrank.schemas.scene import SceneRead
from fcrank.schemas.snapshot import PlayerRecord, Snapshot
from fcrank.services.player_cache import PlayerCache
from fcrank.services.search_service import find_player_by_name
from fcrank.services.snapshot_store import SnapshotStore
from fcrank.services.upstream_client import FightcadeClient

logger = logging.getLogger(__name__)

DEFAULT_LIVE_DELAY = 0.1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _unresolved(username: str) -> ResolvedPlayer:
    return ResolvedPlayer(username=username, source=DataSource.UNRESOLVED)


def _from_snapshot(
    username: str, record: PlayerRecord, snapshot: Snapshot
) -> ResolvedPlayer:
    return ResolvedPlayer(
        username=username,
        rank_position=record.rank_position,
        score=record.score,
        total_matches=record.total_matches,
        country=record.country,
        source=DataSource.SNAPSHOT,
        last_updated=snapshot.fetched_at,
    )


def _from_profile(
    username: str,
    profile: UpstreamProfile | None,
    game_id: str,
    fetched_at: datetime,
) -> ResolvedPlayer:
    info = profile.game(game_id) if profile is not None else None
    if profile is None or info is None:
        return _unresolved(username)
    return ResolvedPlayer(
        username=username,
        rank_position=0,
        score=tier_to_score(info.rank),
        total_matches=info.num_matches,
        country=profile.country,
        source=DataSource.LIVE,
        last_updated=fetched_at,
    )


def _sort_by_position(players: list[ResolvedPlayer]) -> None:
    # Known positions ascending, unknown (0) last in their original order.
    players.sort(key=lambda p: (p.rank_position == 0, p.rank_position))


def _summarize(total: int, players: list[ResolvedPlayer]) -> ResolutionSummary:
    summary = ResolutionSummary(total_requested=total)
    for player in players:
        if player.source is DataSource.SNAPSHOT:
            summary.snapshot_count += 1
        elif player.source is DataSource.LIVE:
            summary.live_count += 1
        else:
            summary.unresolved_count += 1
    return summary


class SceneResolver:
    """Resolves scene members using the snapshot store, cache and upstream."""

    def __init__(
        self,
        store: SnapshotStore,
        cache: PlayerCache,
        client: FightcadeClient,
        live_delay: float = DEFAULT_LIVE_DELAY,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._cache = cache
        self._client = client
        self._live_delay = live_delay
        self._clock = clock

    async def _load_snapshot(self, game_id: str) -> Snapshot | None:
        try:
            return await self._store.load(game_id)
        except (OSError, ValueError) as e:
            logger.warning("Snapshot load failed for %s: %s", game_id, e)
            return None

    # ------------------------------------------------------------------
    # Single player
    # ------------------------------------------------------------------

    async def _lookup(
        self, username: str
    ) -> tuple[PlayerLookup, UpstreamError | None]:
        entry = self._cache.get(username)
        if entry is not None:
            return (
                PlayerLookup(
                    username=username, profile=entry.profile, found=True, cached=True
                ),
                None,
            )

        try:
            profile = await self._client.fetch_profile(username)
        except UpstreamError as e:
            logger.warning("Live lookup failed for %s: %s", username, e.message)
            return PlayerLookup(username=username, error=e.message), e

        if profile is not None:
            self._cache.set(username, profile)
        return (
            PlayerLookup(username=username, profile=profile, found=profile is not None),
            None,
        )

    async def lookup_player(self, username: str) -> PlayerLookup:
        """Cache-then-upstream lookup of one user; failures land in ``error``."""
        lookup, _ = await self._lookup(username)
        return lookup

    # ------------------------------------------------------------------
    # Scenes
    # ------------------------------------------------------------------

    async def resolve_hybrid(self, scene: SceneRead) -> SceneResolution:
        """Resolve a scene from the snapshot, falling back to live lookups.

        Raises:
            UpstreamUnavailableError: No snapshot exists and upstream could
                not be reached for any player
        """
        try:
            return await self._resolve_hybrid(scene)
        except UpstreamUnavailableError:
            raise
        except Exception:
            logger.exception(
                "Hybrid resolution failed for scene %s, using snapshot only",
                scene.id,
            )
            return await self.resolve_cached(scene)

    async def _resolve_hybrid(self, scene: SceneRead) -> SceneResolution:
        snapshot = await self._load_snapshot(scene.game_id)
        if snapshot is None:
            logger.info(
                "No snapshot for %s, resolving scene %s from live data only",
                scene.game_id,
                scene.id,
            )

        resolved: dict[int, ResolvedPlayer] = {}
        pending: list[tuple[int, str]] = []
        for index, username in enumerate(scene.players):
            record = (
                find_player_by_name(snapshot.players, username) if snapshot else None
            )
            if record is not None and snapshot is not None:
                resolved[index] = _from_snapshot(username, record, snapshot)
            else:
                pending.append((index, username))

        attempts = 0
        transport_failures = 0
        for position, (index, username) in enumerate(pending):
            lookup, error = await self._lookup(username)
            resolved[index] = _from_profile(
                username, lookup.profile, scene.game_id, self._clock()
            )
            if lookup.cached:
                continue
            attempts += 1
            if isinstance(error, UpstreamTransportError):
                transport_failures += 1
            if position < len(pending) - 1:
                await asyncio.sleep(self._live_delay)

        players = [resolved[i] for i in range(len(scene.players))]
        summary = _summarize(len(scene.players), players)

        if (
            snapshot is None
            and attempts > 0
            and transport_failures == attempts
            and summary.live_count == 0
        ):
            raise UpstreamUnavailableError(scene.id, attempts)

        _sort_by_position(players)
        logger.info(
            "Resolved scene %s: %d snapshot, %d live, %d unresolved",
            scene.id,
            summary.snapshot_count,
            summary.live_count,
            summary.unresolved_count,
            extra={"scene_id": scene.id, "game_id": scene.game_id},
        )
        return SceneResolution(
            scene=scene,
            players=players,
            summary=summary,
            mode="hybrid" if snapshot is not None else "live-only",
        )

    async def resolve_cached(self, scene: SceneRead) -> SceneResolution:
        """Resolve a scene from the snapshot alone, without any network call."""
        snapshot = await self._load_snapshot(scene.game_id)
        players = []
        for username in scene.players:
            record = (
                find_player_by_name(snapshot.players, username) if snapshot else None
            )
            if record is not None and snapshot is not None:
                players.append(_from_snapshot(username, record, snapshot))
            else:
                players.append(_unresolved(username))

        summary = _summarize(len(scene.players), players)
        _sort_by_position(players)
        return SceneResolution(
            scene=scene, players=players, summary=summary, mode="cached"
        )

    async def resolve_live(self, scene: SceneRead) -> LiveSceneResult:
        """Fetch every member's upstream profile concurrently."""
        lookups = await self._client.fetch_profiles(scene.players)
        players = []
        for username in scene.players:
            lookup = lookups[username]
            if lookup.profile is not None:
                self._cache.set(username, lookup.profile)
            players.append(
                LivePlayerResult(
                    username=username,
                    profile=lookup.profile,
                    found=lookup.found,
                    error=lookup.error,
                )
            )
        return LiveSceneResult(scene=scene, players=players)
