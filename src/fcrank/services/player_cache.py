# src/fcrank/services/player_cache.py

"""Bounded, expiring in-memory cache of upstream player profiles.

The cache lives on the event loop thread. Its map is only mutated by plain
synchronous code, so lookups and inserts never interleave with each other;
the only suspension points are the disk reads and writes in
:meth:`PlayerCache.persist` and :meth:`PlayerCache.restore`, which run in a
worker thread on a copy of the data.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError as PydanticValidationError

from fcrank.exceptions import CachePersistenceError
from fcrank.schemas.cache import CacheEntry, CacheStats
from fcrank.schemas.profile import UpstreamProfile
from fcrank.services.snapshot_store import atomic_write_json

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 10_000
DEFAULT_TTL_HOURS = 24.0
DEFAULT_SAVE_INTERVAL_MINUTES = 30.0

# Fraction of capacity dropped when an insert hits the size limit.
EVICTION_FRACTION = 0.1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_key(username: str) -> str:
    return username.strip().lower()


def _counter(value: Any) -> int:
    """Coerce a persisted hit/miss counter, falling back to zero."""
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError, OverflowError):
        return 0


def format_size(size_bytes: int) -> str:
    """Render a byte count as bytes, KB or MB."""
    if size_bytes < 1024:
        return f"{size_bytes} bytes"
    if size_bytes < 1024 * 1024:
        return f"{round(size_bytes / 1024)} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


class PlayerCache:
    """Maps usernames (case-insensitively) to cached upstream profiles.

    Capacity and TTL are fixed at construction. Every :meth:`get` counts as
    either a hit or a miss; :meth:`has` is implemented on top of :meth:`get`
    and therefore has the same side effects.
    """

    def __init__(
        self,
        cache_file: Path,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl_hours: float = DEFAULT_TTL_HOURS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        if ttl_hours <= 0:
            raise ValueError("ttl_hours must be positive")

        self._entries: dict[str, CacheEntry] = {}
        self._cache_file = Path(cache_file)
        self._max_size = max_size
        self._ttl = timedelta(hours=ttl_hours)
        self._clock = clock
        self._hit_count = 0
        self._miss_count = 0
        self._auto_save_task: asyncio.Task | None = None

        try:
            self._cache_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CachePersistenceError(str(self._cache_file.parent), str(e)) from e

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, username: str) -> CacheEntry | None:
        """Return the live entry for ``username`` or None on a miss.

        An expired entry is removed and reported as a miss.
        """
        key = normalize_key(username)
        entry = self._entries.get(key)
        now = self._clock()

        if entry is None:
            self._miss_count += 1
            return None

        if now > entry.expires_at:
            logger.debug("Cache entry expired for %s, removing", username)
            del self._entries[key]
            self._miss_count += 1
            return None

        entry.hit_count += 1
        entry.last_accessed_at = now
        self._hit_count += 1
        logger.debug(
            "Cache hit for %s",
            username,
            extra={"username": username, "hit_count": entry.hit_count},
        )
        return entry

    def has(self, username: str) -> bool:
        """Equivalent to ``get(username) is not None``, including side effects."""
        return self.get(username) is not None

    def get_bulk(self, usernames: list[str]) -> dict[str, CacheEntry | None]:
        return {username: self.get(username) for username in usernames}

    def get_for_game(self, game_id: str) -> list[CacheEntry]:
        """Entries with stats for ``game_id``, most recently accessed first.

        This is a listing, not a lookup: counters are left untouched.
        """
        now = self._clock()
        entries = [
            entry
            for entry in self._entries.values()
            if game_id in entry.game_info and now <= entry.expires_at
        ]
        entries.sort(key=lambda e: e.last_accessed_at, reverse=True)
        return entries

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set(self, username: str, profile: UpstreamProfile) -> CacheEntry:
        """Store ``profile`` under ``username``, evicting if the cache is full."""
        key = normalize_key(username)
        now = self._clock()

        if key not in self._entries and len(self._entries) >= self._max_size:
            self._evict_least_recent(
                max(1, math.floor(self._max_size * EVICTION_FRACTION))
            )

        entry = CacheEntry(
            key=key,
            username=profile.name or username,
            profile=profile,
            country=profile.country,
            game_info=dict(profile.gameinfo),
            cached_at=now,
            expires_at=now + self._ttl,
            hit_count=0,
            last_accessed_at=now,
        )
        self._entries[key] = entry
        logger.debug(
            "Cached profile for %s",
            username,
            extra={"username": username, "expires_at": entry.expires_at.isoformat()},
        )
        return entry

    def _evict_least_recent(self, count: int) -> None:
        # Approximate LRU: full scan sorted by last access time.
        victims = sorted(self._entries.values(), key=lambda e: e.last_accessed_at)
        for entry in victims[:count]:
            del self._entries[entry.key]
        logger.info(
            "Evicted %d least recently accessed cache entries",
            min(count, len(victims)),
            extra={"capacity": self._max_size},
        )

    def cleanup(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        expired = [key for key, e in self._entries.items() if e.expires_at < now]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info("Cache cleanup removed %d expired entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        """Remove all entries and reset the hit/miss counters."""
        self._entries.clear()
        self._hit_count = 0
        self._miss_count = 0
        logger.info("Player cache cleared")

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def stats(self) -> CacheStats:
        entries = list(self._entries.values())
        total_requests = self._hit_count + self._miss_count
        hit_rate = (
            int(self._hit_count * 100 / total_requests + 0.5) if total_requests else 0
        )
        size_bytes = len(
            json.dumps([e.model_dump(mode="json") for e in entries]).encode("utf-8")
        )
        return CacheStats(
            total_entries=len(entries),
            hit_count=self._hit_count,
            miss_count=self._miss_count,
            hit_rate=hit_rate,
            size_bytes=size_bytes,
            size_display=format_size(size_bytes),
            oldest_entry=min((e.cached_at for e in entries), default=None),
            newest_entry=max((e.cached_at for e in entries), default=None),
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _serialize(self) -> dict[str, Any]:
        return {
            "entries": [e.model_dump(mode="json") for e in self._entries.values()],
            "stats": {
                "hit_count": self._hit_count,
                "miss_count": self._miss_count,
                "saved_at": self._clock().isoformat(),
            },
        }

    async def persist(self) -> None:
        """Write every entry and both counters to the cache file."""
        payload = self._serialize()
        try:
            await asyncio.to_thread(atomic_write_json, self._cache_file, payload)
        except OSError as e:
            logger.error("Failed to save player cache to %s: %s", self._cache_file, e)
            return
        logger.info(
            "Player cache saved to disk: %d entries",
            len(payload["entries"]),
            extra={"path": str(self._cache_file)},
        )

    async def restore(self) -> int:
        """Replace in-memory state with the cache file's contents.

        Entries that expired while the process was down are dropped right
        away. A missing or corrupt file leaves the cache empty. Returns the
        number of entries kept.
        """
        raw = await asyncio.to_thread(self._read_cache_file)
        self._entries = {}
        self._hit_count = 0
        self._miss_count = 0
        if raw is None:
            return 0

        skipped = 0
        for item in raw.get("entries") or []:
            try:
                entry = CacheEntry.model_validate(item)
            except PydanticValidationError:
                skipped += 1
                continue
            self._entries[entry.key] = entry

        stats = raw.get("stats")
        if isinstance(stats, dict):
            self._hit_count = _counter(stats.get("hit_count"))
            self._miss_count = _counter(stats.get("miss_count"))
        elif stats is not None:
            logger.warning("Ignoring malformed cache stats in %s", self._cache_file)

        if skipped:
            logger.warning("Skipped %d invalid cache entries on restore", skipped)
        self.cleanup()
        logger.info("Player cache restored: %d entries", len(self._entries))
        return len(self._entries)

    def _read_cache_file(self) -> dict[str, Any] | None:
        if not self._cache_file.exists():
            logger.info("No existing cache file at %s, starting fresh", self._cache_file)
            return None
        try:
            raw = json.loads(self._cache_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("Corrupt player cache file %s: %s", self._cache_file, e)
            return None
        if not isinstance(raw, dict) or not isinstance(raw.get("entries", []), list):
            logger.error("Unexpected player cache layout in %s", self._cache_file)
            return None
        return raw

    # ------------------------------------------------------------------
    # Background maintenance
    # ------------------------------------------------------------------

    def start_auto_save(
        self, interval_minutes: float = DEFAULT_SAVE_INTERVAL_MINUTES
    ) -> None:
        """Periodically run :meth:`cleanup` then :meth:`persist`."""
        if self._auto_save_task is not None and not self._auto_save_task.done():
            return
        self._auto_save_task = asyncio.create_task(
            self._auto_save_loop(interval_minutes * 60)
        )
        logger.info("Player cache auto-save enabled every %s minutes", interval_minutes)

    async def stop_auto_save(self) -> None:
        if self._auto_save_task is None:
            return
        self._auto_save_task.cancel()
        try:
            await self._auto_save_task
        except asyncio.CancelledError:
            pass
        self._auto_save_task = None

    async def _auto_save_loop(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                self.cleanup()
                await self.persist()
            except Exception:
                logger.exception("Player cache auto-save tick failed")
