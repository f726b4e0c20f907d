# src/fcrank/services/snapshot_store.py

"""Durable storage for per-game ranking snapshots.

One JSON file per game lives in the data directory. Writes go to a
temporary file that is renamed over the target, so a concurrent reader
sees either the previous snapshot or the new one, never a partial file.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError as PydanticValidationError

from fcrank.schemas.snapshot import Snapshot

logger = logging.getLogger(__name__)

SNAPSHOT_SUFFIX = "-rankings.json"
DEFAULT_STALE_HOURS = 24.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def atomic_write_json(path: Path, payload: Any) -> None:
    """Write ``payload`` as JSON to ``path`` via a temp file and rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp, path)


class SnapshotStore:
    """Loads and saves :class:`Snapshot` files keyed by game ID."""

    def __init__(
        self, data_dir: Path, clock: Callable[[], datetime] = _utcnow
    ) -> None:
        self._data_dir = Path(data_dir)
        self._clock = clock
        self._data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, game_id: str) -> Path:
        return self._data_dir / f"{game_id}{SNAPSHOT_SUFFIX}"

    async def save(self, snapshot: Snapshot) -> None:
        """Persist ``snapshot``, replacing any earlier one for its game."""
        path = self.path_for(snapshot.game_id)
        payload = snapshot.model_dump(mode="json")
        await asyncio.to_thread(atomic_write_json, path, payload)
        logger.info(
            "Saved snapshot for %s (%d players)",
            snapshot.game_id,
            snapshot.total_players,
            extra={"game_id": snapshot.game_id, "path": str(path)},
        )

    async def load(self, game_id: str) -> Snapshot | None:
        """Return the saved snapshot for ``game_id``, or None.

        Missing, unreadable and structurally invalid files all count as
        "no snapshot"; the latter two are logged.
        """
        return await asyncio.to_thread(self._load_sync, game_id)

    def _load_sync(self, game_id: str) -> Snapshot | None:
        path = self.path_for(game_id)
        if not path.exists():
            return None
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return Snapshot.model_validate(raw)
        except PydanticValidationError as e:
            logger.error(
                "Invalid snapshot structure in %s (%d errors)",
                path,
                e.error_count(),
                extra={"game_id": game_id},
            )
        # ValueError covers both JSON and UTF-8 decode failures.
        except (OSError, ValueError) as e:
            logger.error("Unreadable snapshot file %s: %s", path, e)
        return None

    def is_stale(
        self, snapshot: Snapshot, threshold_hours: float = DEFAULT_STALE_HOURS
    ) -> bool:
        """True when the snapshot is older than ``threshold_hours``."""
        return self._clock() - snapshot.fetched_at > timedelta(hours=threshold_hours)

    async def list_available(self) -> set[str]:
        """Game IDs that have a snapshot file on disk."""
        return await asyncio.to_thread(self._list_sync)

    def _list_sync(self) -> set[str]:
        try:
            names = os.listdir(self._data_dir)
        except FileNotFoundError:
            return set()
        return {
            name[: -len(SNAPSHOT_SUFFIX)]
            for name in names
            if name.endswith(SNAPSHOT_SUFFIX)
        }

    async def list_summaries(self) -> list[tuple[str, str]]:
        """``(game_id, game_name)`` for every snapshot that loads cleanly."""
        summaries = []
        for game_id in sorted(await self.list_available()):
            snapshot = await self.load(game_id)
            if snapshot is None:
                logger.warning("Skipping unreadable snapshot for %s", game_id)
                continue
            summaries.append((snapshot.game_id, snapshot.game_name))
        return summaries
