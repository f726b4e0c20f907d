# tests/test_snapshot_store.py

"""Tests for snapshot persistence."""

import json

import pytest
from fcrank.services.snapshot_store import SnapshotStore, atomic_write_json

from conftest import FakeClock, make_snapshot


@pytest.mark.asyncio
async def test_save_then_load_returns_equal_snapshot(store: SnapshotStore):
    snapshot = make_snapshot([("Alice", 6, "Japan"), ("Bob", 4, "Brazil")])

    await store.save(snapshot)
    loaded = await store.load(snapshot.game_id)

    assert loaded == snapshot
    assert store.path_for(snapshot.game_id).name == "sfiii3nr1-rankings.json"


@pytest.mark.asyncio
async def test_load_missing_game_returns_none(store: SnapshotStore):
    assert await store.load("nosuchgame") is None


@pytest.mark.asyncio
async def test_save_replaces_previous_snapshot(store: SnapshotStore):
    await store.save(make_snapshot([("Alice", 6, "Japan")]))
    await store.save(make_snapshot([("Bob", 2, "Chile"), ("Carol", 1, "Peru")]))

    loaded = await store.load("sfiii3nr1")

    assert [p.name for p in loaded.players] == ["Bob", "Carol"]


@pytest.mark.asyncio
async def test_corrupt_file_is_treated_as_missing(store: SnapshotStore):
    store.path_for("broken").write_text("{ this is not json")

    assert await store.load("broken") is None


@pytest.mark.asyncio
async def test_undecodable_file_is_treated_as_missing(store: SnapshotStore):
    store.path_for("sfiii3nr1").write_bytes(b'{"game_id": "\xff\xfe"}')

    assert await store.load("sfiii3nr1") is None


@pytest.mark.asyncio
async def test_invalid_structure_is_treated_as_missing(store: SnapshotStore):
    """Players out of rank order fail validation and are not served."""
    payload = make_snapshot([("Alice", 6, "Japan"), ("Bob", 4, "Brazil")]).model_dump(
        mode="json"
    )
    payload["players"].reverse()
    store.path_for("sfiii3nr1").write_text(json.dumps(payload))

    assert await store.load("sfiii3nr1") is None


def test_staleness_uses_threshold(store: SnapshotStore, clock: FakeClock):
    snapshot = make_snapshot([("Alice", 6, "Japan")], fetched_at=clock())

    clock.advance(hours=23)
    assert store.is_stale(snapshot) is False

    clock.advance(hours=2)
    assert store.is_stale(snapshot) is True
    assert store.is_stale(snapshot, threshold_hours=48) is False


@pytest.mark.asyncio
async def test_list_summaries_skips_unreadable_snapshots(store: SnapshotStore):
    await store.save(make_snapshot([("Alice", 6, "Japan")]))
    await store.save(
        make_snapshot([("Kyo", 5, "Japan")], game_id="kof98", game_name="KOF 98")
    )
    store.path_for("broken").write_text("[]")

    assert await store.list_available() == {"sfiii3nr1", "kof98", "broken"}
    assert await store.list_summaries() == [
        ("kof98", "KOF 98"),
        ("sfiii3nr1", "Street Fighter III: 3rd Strike"),
    ]


def test_atomic_write_leaves_no_temp_file(tmp_path):
    target = tmp_path / "nested" / "out.json"

    atomic_write_json(target, {"ok": True})

    assert json.loads(target.read_text()) == {"ok": True}
    assert [p.name for p in target.parent.iterdir()] == ["out.json"]
