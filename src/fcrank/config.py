# src/fcrank/config.py

"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_API_URL = "https://www.fightcade.com/api/"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class Settings:
    """Application settings.

    Every value has a development default so the service starts with no
    environment at all. Values are read once, at process start.
    """

    data_dir: Path = Path("./data")
    database_url: str = "sqlite+aiosqlite:///./fcrank.db"
    db_echo: bool = False

    # Upstream ranking API
    api_url: str = DEFAULT_API_URL
    upstream_timeout: float = 15.0
    page_size: int = 100
    page_delay: float = 2.0
    live_delay: float = 0.1
    max_players: int = 100_000

    # Player cache
    cache_max_size: int = 10_000
    cache_ttl_hours: float = 24.0
    cache_save_interval_minutes: float = 30.0

    snapshot_stale_hours: float = 24.0
    log_level: str = "INFO"

    @property
    def cache_file(self) -> Path:
        return self.data_dir / "player-cache.json"

    @property
    def scenes_file(self) -> Path:
        return self.data_dir / "scenes.json"

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from the current process environment."""
        return cls(
            data_dir=Path(os.getenv("FCRANK_DATA_DIR", "./data")),
            database_url=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./fcrank.db"),
            db_echo=_env_bool("DB_ECHO"),
            api_url=os.getenv("FIGHTCADE_API_URL", DEFAULT_API_URL),
            upstream_timeout=float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "15")),
            page_size=int(os.getenv("UPSTREAM_PAGE_SIZE", "100")),
            page_delay=float(os.getenv("UPSTREAM_PAGE_DELAY_SECONDS", "2.0")),
            live_delay=float(os.getenv("LIVE_LOOKUP_DELAY_SECONDS", "0.1")),
            max_players=int(os.getenv("UPSTREAM_MAX_PLAYERS", "100000")),
            cache_max_size=int(os.getenv("PLAYER_CACHE_MAX_SIZE", "10000")),
            cache_ttl_hours=float(os.getenv("PLAYER_CACHE_TTL_HOURS", "24")),
            cache_save_interval_minutes=float(
                os.getenv("PLAYER_CACHE_SAVE_INTERVAL_MINUTES", "30")
            ),
            snapshot_stale_hours=float(os.getenv("SNAPSHOT_STALE_HOURS", "24")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
