# tests/test_resolution.py

"""Tests for hybrid, cached and live scene resolution."""

from datetime import datetime, timezone

import pytest
from fcrank.exceptions import UpstreamUnavailableError
from fcrank.schemas.profile import UpstreamProfile
from fcrank.schemas.resolution import DataSource
from fcrank.schemas.scene import SceneRead
from fcrank.services.player_cache import PlayerCache
from fcrank.services.resolution import SceneResolver
from fcrank.services.snapshot_store import SnapshotStore
from fcrank.services.upstream_client import FightcadeClient

from conftest import GAME_ID, FakeClock, FakeUpstream, make_profile, make_snapshot


def _scene(*players: str) -> SceneRead:
    return SceneRead(
        id="test-scene",
        name="Test Scene",
        game_id=GAME_ID,
        game_name="Street Fighter III: 3rd Strike",
        players=list(players),
        submitted_by="tests",
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


async def _save_snapshot_with_alice_fifth(store: SnapshotStore) -> None:
    await store.save(
        make_snapshot(
            [
                ("P1", 6, "Japan"),
                ("P2", 6, "Japan"),
                ("P3", 5, "Japan"),
                ("P4", 5, "Japan"),
                ("Alice", 5, "Canada"),
            ]
        )
    )


@pytest.mark.asyncio
async def test_hybrid_mixes_snapshot_live_and_unresolved(
    resolver: SceneResolver,
    store: SnapshotStore,
    cache: PlayerCache,
    upstream: FakeUpstream,
):
    """
    Snapshot players keep their position, live players get a tier score
    and position 0, and unknown players are reported as unresolved.
    """
    await _save_snapshot_with_alice_fifth(store)
    upstream.add_user(make_profile("Bob", tier=4, country="Brazil", num_matches=321))

    result = await resolver.resolve_hybrid(_scene("Ghost", "Bob", "alice"))

    assert result.mode == "hybrid"
    assert [(p.username, p.source) for p in result.players] == [
        ("alice", DataSource.SNAPSHOT),
        ("Ghost", DataSource.UNRESOLVED),
        ("Bob", DataSource.LIVE),
    ]

    alice, ghost, bob = result.players
    assert alice.rank_position == 5
    assert alice.score == 1800
    assert alice.country == "Canada"
    assert bob.rank_position == 0
    assert bob.score == 1600
    assert bob.total_matches == 321
    assert bob.country == "Brazil"
    assert ghost.rank_position == 0

    summary = result.summary
    assert summary.total_requested == 3
    assert summary.snapshot_count == 1
    assert summary.live_count == 1
    assert summary.unresolved_count == 1
    assert summary.found_count == 2

    # The live lookup was cached; the snapshot hit never touched upstream.
    assert cache.get("bob") is not None
    assert [r["username"] for r in upstream.requests_for("getuser")] == ["Ghost", "Bob"]


@pytest.mark.asyncio
async def test_cached_profile_avoids_upstream(
    resolver: SceneResolver, cache: PlayerCache, upstream: FakeUpstream
):
    cache.set("Bob", UpstreamProfile.model_validate(make_profile("Bob", tier=6)))

    result = await resolver.resolve_hybrid(_scene("Bob"))

    assert result.players[0].source is DataSource.LIVE
    assert result.players[0].score == 2000
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_live_profile_without_game_stats_is_unresolved(
    resolver: SceneResolver, upstream: FakeUpstream
):
    upstream.add_user(make_profile("Casual", tier=None))

    result = await resolver.resolve_hybrid(_scene("Casual"))

    assert result.players[0].source is DataSource.UNRESOLVED
    assert result.mode == "live-only"


@pytest.mark.asyncio
async def test_live_profile_is_stamped_with_resolver_clock(
    resolver: SceneResolver, upstream: FakeUpstream, clock: FakeClock
):
    upstream.add_user(make_profile("Bob", tier=4))
    clock.advance(minutes=30)

    result = await resolver.resolve_hybrid(_scene("Bob"))

    assert result.players[0].source is DataSource.LIVE
    assert result.players[0].last_updated == clock()


@pytest.mark.asyncio
async def test_live_lookups_are_spaced_by_live_delay(
    store: SnapshotStore,
    cache: PlayerCache,
    upstream_client: FightcadeClient,
    upstream: FakeUpstream,
    monkeypatch,
):
    """Only upstream calls are spaced out, and not after the last one."""
    for name in ("Bob", "Carol", "Dave"):
        upstream.add_user(make_profile(name))
    cache.set("Erin", UpstreamProfile.model_validate(make_profile("Erin")))
    sleeps: list[float] = []

    async def record_sleep(delay: float) -> None:
        sleeps.append(delay)

    monkeypatch.setattr("fcrank.services.resolution.asyncio.sleep", record_sleep)
    resolver = SceneResolver(store, cache, upstream_client, live_delay=0.5)

    result = await resolver.resolve_hybrid(_scene("Bob", "Erin", "Carol", "Dave"))

    assert result.summary.live_count == 4
    assert len(upstream.requests_for("getuser")) == 3
    assert sleeps == [0.5, 0.5]


@pytest.mark.asyncio
async def test_cache_hits_need_no_delay(
    store: SnapshotStore,
    cache: PlayerCache,
    upstream_client: FightcadeClient,
    monkeypatch,
):
    for name in ("Bob", "Carol"):
        cache.set(name, UpstreamProfile.model_validate(make_profile(name)))
    sleeps: list[float] = []

    async def record_sleep(delay: float) -> None:
        sleeps.append(delay)

    monkeypatch.setattr("fcrank.services.resolution.asyncio.sleep", record_sleep)
    resolver = SceneResolver(store, cache, upstream_client, live_delay=0.5)

    result = await resolver.resolve_hybrid(_scene("Bob", "Carol"))

    assert result.summary.live_count == 2
    assert sleeps == []


@pytest.mark.asyncio
async def test_timed_out_lookup_is_unresolved_when_snapshot_exists(
    resolver: SceneResolver, store: SnapshotStore, upstream: FakeUpstream
):
    await _save_snapshot_with_alice_fifth(store)
    upstream.timeout_users.add("bob")

    result = await resolver.resolve_hybrid(_scene("Alice", "Bob"))

    assert result.mode == "hybrid"
    assert [(p.username, p.source) for p in result.players] == [
        ("Alice", DataSource.SNAPSHOT),
        ("Bob", DataSource.UNRESOLVED),
    ]


@pytest.mark.asyncio
async def test_undecodable_snapshot_is_ignored(
    resolver: SceneResolver, store: SnapshotStore
):
    path = store.path_for(GAME_ID)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b'{"game_id": "\xff\xfe"}')

    result = await resolver.resolve_hybrid(_scene("Ghost"))

    assert result.mode == "live-only"
    assert result.players[0].source is DataSource.UNRESOLVED


@pytest.mark.asyncio
async def test_no_snapshot_and_unreachable_upstream_raises(
    resolver: SceneResolver, upstream: FakeUpstream
):
    upstream.down = True

    with pytest.raises(UpstreamUnavailableError):
        await resolver.resolve_hybrid(_scene("Alice", "Bob"))


@pytest.mark.asyncio
async def test_snapshot_still_served_when_upstream_is_down(
    resolver: SceneResolver, store: SnapshotStore, upstream: FakeUpstream
):
    await _save_snapshot_with_alice_fifth(store)
    upstream.down = True

    result = await resolver.resolve_hybrid(_scene("Alice", "Bob"))

    assert result.summary.snapshot_count == 1
    assert result.summary.unresolved_count == 1


@pytest.mark.asyncio
async def test_hybrid_falls_back_to_snapshot_on_unexpected_error(
    resolver: SceneResolver, store: SnapshotStore, monkeypatch
):
    await _save_snapshot_with_alice_fifth(store)

    async def boom(scene):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(resolver, "_resolve_hybrid", boom)

    result = await resolver.resolve_hybrid(_scene("Alice", "Bob"))

    assert result.mode == "cached"
    assert result.summary.snapshot_count == 1


@pytest.mark.asyncio
async def test_sorting_puts_known_positions_first(
    resolver: SceneResolver, store: SnapshotStore
):
    await _save_snapshot_with_alice_fifth(store)

    result = await resolver.resolve_cached(_scene("Nobody", "Alice", "P2", "Other"))

    assert [p.username for p in result.players] == ["P2", "Alice", "Nobody", "Other"]


@pytest.mark.asyncio
async def test_cached_resolution_makes_no_upstream_calls(
    resolver: SceneResolver, store: SnapshotStore, upstream: FakeUpstream
):
    await _save_snapshot_with_alice_fifth(store)

    result = await resolver.resolve_cached(_scene("Alice", "Bob"))

    assert result.mode == "cached"
    assert result.summary.snapshot_count == 1
    assert result.summary.unresolved_count == 1
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_live_resolution_reports_each_member(
    resolver: SceneResolver, cache: PlayerCache, upstream: FakeUpstream
):
    upstream.add_user(make_profile("Alice"))
    upstream.failing_users.add("bob")

    result = await resolver.resolve_live(_scene("Alice", "Bob", "Ghost"))

    assert [p.found for p in result.players] == [True, False, False]
    assert result.players[1].error is not None
    assert result.players[2].error is None
    assert result.found_count == 1
    assert cache.get("alice") is not None


@pytest.mark.asyncio
async def test_lookup_player_uses_cache_on_second_call(
    resolver: SceneResolver, upstream: FakeUpstream
):
    upstream.add_user(make_profile("Alice"))

    first = await resolver.lookup_player("Alice")
    second = await resolver.lookup_player("ALICE")

    assert first.found and not first.cached
    assert second.found and second.cached
    assert len(upstream.requests_for("getuser")) == 1
