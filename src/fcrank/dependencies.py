# src/fcrank/dependencies.py

"""Application components and the FastAPI dependencies that hand them out.

Components are built once, in the application lifespan, and stored on
``app.state.services``. Route handlers receive them through ``Depends``.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from fcrank.config import Settings
from fcrank.services.player_cache import PlayerCache
from fcrank.services.rankings import RankingsFetcher
from fcrank.services.resolution import SceneResolver
from fcrank.services.snapshot_store import SnapshotStore
from fcrank.services.upstream_client import FightcadeClient


@dataclass
class Services:
    settings: Settings
    store: SnapshotStore
    cache: PlayerCache
    client: FightcadeClient
    resolver: SceneResolver
    fetcher: RankingsFetcher

    @classmethod
    def build(cls, settings: Settings) -> Services:
        """Construct every component from ``settings``."""
        store = SnapshotStore(settings.data_dir)
        cache = PlayerCache(
            settings.cache_file,
            max_size=settings.cache_max_size,
            ttl_hours=settings.cache_ttl_hours,
        )
        client = FightcadeClient(
            api_url=settings.api_url,
            timeout=settings.upstream_timeout,
            page_size=settings.page_size,
            page_delay=settings.page_delay,
        )
        return cls(
            settings=settings,
            store=store,
            cache=cache,
            client=client,
            resolver=SceneResolver(store, cache, client, live_delay=settings.live_delay),
            fetcher=RankingsFetcher(client, store, max_players=settings.max_players),
        )


def get_services(request: Request) -> Services:
    return request.app.state.services  # type: ignore[no-any-return]


def get_settings(request: Request) -> Settings:
    return get_services(request).settings


def get_store(request: Request) -> SnapshotStore:
    return get_services(request).store


def get_cache(request: Request) -> PlayerCache:
    return get_services(request).cache


def get_client(request: Request) -> FightcadeClient:
    return get_services(request).client


def get_resolver(request: Request) -> SceneResolver:
    return get_services(request).resolver


def get_fetcher(request: Request) -> RankingsFetcher:
    return get_services(request).fetcher
