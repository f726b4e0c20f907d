# tests/test_api_statistics.py

"""Tests for the Statistics API endpoints."""

import pytest
from fcrank.services.snapshot_store import SnapshotStore
from httpx import AsyncClient

from conftest import GAME_ID, make_snapshot


@pytest.mark.asyncio
async def test_statistics_for_game(async_client: AsyncClient, store: SnapshotStore):
    await store.save(
        make_snapshot([("Daigo", 6, "Japan"), ("Justin", 6, "United States")])
    )

    games = await async_client.get("/statistics/games")
    response = await async_client.get(f"/statistics/{GAME_ID}")

    assert [g["game_id"] for g in games.json()] == [GAME_ID]
    assert response.status_code == 200
    data = response.json()
    assert data["total_players"] == 2
    assert data["total_countries"] == 2
    assert data["average_tier"] == "S"
    assert len(data["tier_distribution"]) == 6


@pytest.mark.asyncio
async def test_statistics_without_snapshot_returns_404(async_client: AsyncClient):
    response = await async_client.get("/statistics/kof98")

    assert response.status_code == 404
