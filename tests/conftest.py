# tests/conftest.py

"""Pytest configuration and fixtures."""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator

import httpx
import pytest
from fcrank.config import Settings
from fcrank.db.session import create_sessionmaker, get_db, init_models
from fcrank.dependencies import Services
from fcrank.main import create_app
from fcrank.schemas.snapshot import PlayerRecord, Snapshot
from fcrank.services.player_cache import PlayerCache
from fcrank.services.rankings import RankingsFetcher
from fcrank.services.resolution import SceneResolver
from fcrank.services.snapshot_store import SnapshotStore
from fcrank.services.upstream_client import FightcadeClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
UPSTREAM_URL = "http://upstream.test/api/"
GAME_ID = "sfiii3nr1"


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeUpstream:
    """In-memory stand-in for the upstream ranking API.

    Serves ``searchrankings`` from :attr:`rankings` and ``getuser`` from
    :attr:`users`, and records every request body it receives.
    """

    def __init__(self) -> None:
        self.rankings: dict[str, list[dict]] = {}
        self.total_counts: dict[str, int] = {}
        self.users: dict[str, dict] = {}
        self.user_status: dict[str, str] = {}
        self.ranking_status = "OK"
        self.failing_users: set[str] = set()
        self.timeout_users: set[str] = set()
        self.failing_offsets: set[int] = set()
        self.down = False
        self.requests: list[dict] = []

    def add_user(self, user: dict) -> None:
        self.users[user["name"].lower()] = user

    def requests_for(self, operation: str) -> list[dict]:
        return [r for r in self.requests if r["req"] == operation]

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        if self.down:
            raise httpx.ConnectError("connection refused", request=request)

        if body["req"] == "searchrankings":
            if body["offset"] in self.failing_offsets:
                return httpx.Response(500)
            if self.ranking_status != "OK":
                return httpx.Response(200, json={"res": self.ranking_status})
            players = self.rankings.get(body["gameid"], [])
            page = players[body["offset"] : body["offset"] + body["limit"]]
            count = self.total_counts.get(body["gameid"], len(players))
            return httpx.Response(
                200, json={"res": "OK", "results": {"results": page, "count": count}}
            )

        if body["req"] == "getuser":
            key = body["username"].lower()
            if key in self.timeout_users:
                raise httpx.ReadTimeout("timed out", request=request)
            if key in self.failing_users:
                return httpx.Response(500)
            if key in self.user_status:
                return httpx.Response(200, json={"res": self.user_status[key]})
            user = self.users.get(key)
            if user is None:
                return httpx.Response(200, json={"res": "ERROR_USER_NOT_FOUND"})
            return httpx.Response(200, json={"res": "OK", "user": user})

        return httpx.Response(400)


def make_profile(
    name: str,
    tier: int | None = 3,
    game_id: str = GAME_ID,
    country: Any = "United States",
    num_matches: int = 100,
    time_played: int = 3600,
) -> dict:
    """Build an upstream profile payload; ``tier=None`` omits the game."""
    gameinfo = {}
    if tier is not None:
        gameinfo[game_id] = {
            "rank": tier,
            "num_matches": num_matches,
            "time_played": time_played,
        }
    return {"name": name, "country": country, "gameinfo": gameinfo}


def make_snapshot(
    players: list[tuple[str, int, str]],
    game_id: str = GAME_ID,
    game_name: str = "Street Fighter III: 3rd Strike",
    fetched_at: datetime | None = None,
) -> Snapshot:
    """Build a snapshot from ``(name, tier, country)`` tuples in rank order."""
    records = tuple(
        PlayerRecord(
            name=name,
            score=1000 + (tier - 1) * 200,
            rank_position=index + 1,
            tier=tier,
            total_matches=(index + 1) * 500,
            time_played=(index + 1) * 7200,
            country=country,
        )
        for index, (name, tier, country) in enumerate(players)
    )
    return Snapshot(
        game_id=game_id,
        game_name=game_name,
        players=records,
        fetched_at=fetched_at or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc),
        total_players=len(records),
        total_available=len(records),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        data_dir=tmp_path / "data",
        database_url=TEST_DATABASE_URL,
        api_url=UPSTREAM_URL,
        page_delay=0,
        live_delay=0,
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
async def upstream_client(
    upstream: FakeUpstream,
) -> AsyncGenerator[FightcadeClient, None]:
    """A FightcadeClient wired to the in-memory upstream."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
    client = FightcadeClient(
        api_url=UPSTREAM_URL, page_size=100, page_delay=0, http_client=http_client
    )
    yield client
    await http_client.aclose()


@pytest.fixture
def store(settings: Settings, clock: FakeClock) -> SnapshotStore:
    return SnapshotStore(settings.data_dir, clock=clock)


@pytest.fixture
def cache(settings: Settings, clock: FakeClock) -> PlayerCache:
    return PlayerCache(settings.cache_file, max_size=100, ttl_hours=24, clock=clock)


@pytest.fixture
def resolver(
    store: SnapshotStore,
    cache: PlayerCache,
    upstream_client: FightcadeClient,
    clock: FakeClock,
) -> SceneResolver:
    return SceneResolver(store, cache, upstream_client, live_delay=0, clock=clock)


@pytest.fixture
def services(
    settings: Settings,
    store: SnapshotStore,
    cache: PlayerCache,
    upstream_client: FightcadeClient,
    resolver: SceneResolver,
) -> Services:
    return Services(
        settings=settings,
        store=store,
        cache=cache,
        client=upstream_client,
        resolver=resolver,
        fetcher=RankingsFetcher(upstream_client, store),
    )


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """A fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with create_sessionmaker(engine)() as session:
        yield session


@pytest.fixture
async def async_client(
    settings: Settings, services: Services, engine: AsyncEngine, db_session: AsyncSession
) -> AsyncGenerator[AsyncClient, None]:
    """Fixture to provide an async test client for the API."""
    app = create_app(settings)
    app.state.services = services
    app.state.sessionmaker = create_sessionmaker(engine)

    # Override the get_db dependency to share the test session
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
