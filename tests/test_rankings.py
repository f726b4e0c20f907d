# tests/test_rankings.py

"""Tests for building and refreshing ranking snapshots."""

from datetime import datetime, timezone

import pytest
from fcrank.exceptions import UpstreamTransportError
from fcrank.schemas.profile import RankingPage, UpstreamProfile
from fcrank.services.rankings import RankingsFetcher, build_snapshot, to_player_record
from fcrank.services.snapshot_store import SnapshotStore
from fcrank.services.upstream_client import FightcadeClient

from conftest import GAME_ID, FakeUpstream, make_profile, make_snapshot


def _profile(name: str, **kwargs) -> UpstreamProfile:
    return UpstreamProfile.model_validate(make_profile(name, **kwargs))


def test_player_record_score_follows_tier():
    record = to_player_record(_profile("Alice", tier=4, num_matches=12), GAME_ID, 7)

    assert record.score == 1600
    assert record.tier == 4
    assert record.rank_position == 7
    assert record.total_matches == 12
    assert record.country == "United States"


def test_player_without_game_stats_gets_lowest_tier():
    record = to_player_record(_profile("Newbie", tier=None), GAME_ID, 1)

    assert record.tier == 1
    assert record.score == 1000
    assert record.total_matches == 0


def test_build_snapshot_numbers_positions_in_upstream_order():
    page = RankingPage(
        players=[_profile("First", tier=6), _profile("Second", tier=6)],
        total_count=1000,
    )
    fetched_at = datetime(2026, 3, 1, tzinfo=timezone.utc)

    snapshot = build_snapshot(GAME_ID, "3rd Strike", page, fetched_at)

    assert [(p.name, p.rank_position) for p in snapshot.players] == [
        ("First", 1),
        ("Second", 2),
    ]
    assert snapshot.total_players == 2
    assert snapshot.total_available == 1000
    assert snapshot.fetched_at == fetched_at


@pytest.mark.asyncio
async def test_refresh_saves_snapshot_with_known_game_name(
    upstream: FakeUpstream, upstream_client: FightcadeClient, store: SnapshotStore
):
    upstream.rankings[GAME_ID] = [make_profile(f"p{i}", tier=6) for i in range(30)]
    fetcher = RankingsFetcher(upstream_client, store)

    snapshot = await fetcher.refresh(GAME_ID)

    assert snapshot.game_name == "Street Fighter III: 3rd Strike"
    assert snapshot.total_players == 30
    assert await store.load(GAME_ID) == snapshot


@pytest.mark.asyncio
async def test_refresh_failure_keeps_previous_snapshot(
    upstream: FakeUpstream, upstream_client: FightcadeClient, store: SnapshotStore
):
    previous = make_snapshot([("Alice", 6, "Japan")])
    await store.save(previous)
    upstream.down = True
    fetcher = RankingsFetcher(upstream_client, store)

    with pytest.raises(UpstreamTransportError):
        await fetcher.refresh(GAME_ID)

    assert await store.load(GAME_ID) == previous
