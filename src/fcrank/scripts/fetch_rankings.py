# src/fcrank/scripts/fetch_rankings.py

"""Fetch full rankings for one game (or every popular game) into snapshots.

Usage:
  fcrank-fetch                      # list popular games
  fcrank-fetch sfiii3nr1            # fetch one game
  fcrank-fetch sf2ce "SF II CE"     # fetch with a custom display name
  fcrank-fetch all                  # fetch every popular game
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from fcrank.config import Settings
from fcrank.exceptions import FCRankError
from fcrank.services.rankings import POPULAR_GAMES, RankingsFetcher
from fcrank.services.snapshot_store import SnapshotStore
from fcrank.services.upstream_client import FightcadeClient

logger = logging.getLogger("fcrank.scripts.fetch_rankings")

ALL_GAMES = "all"


def _print_games() -> None:
    print("Available games to fetch:")
    for game_id, name in POPULAR_GAMES.items():
        print(f"  {game_id} - {name}")
    print(f"\nUse '{ALL_GAMES}' to fetch every game listed above.")


async def fetch_one(fetcher: RankingsFetcher, game_id: str, game_name: str | None) -> int:
    try:
        snapshot = await fetcher.refresh(game_id, game_name)
    except FCRankError as e:
        logger.error("Error fetching data for %s: %s", game_id, e.message)
        return 1

    print(f"Game: {snapshot.game_name}")
    print(f"Total Players: {snapshot.total_players} of {snapshot.total_available}")
    print(f"Last Updated: {snapshot.fetched_at.isoformat()}")
    if snapshot.players:
        top = snapshot.players[0]
        print(f"Top Player: {top.name} ({top.score:g})")
    return 0


async def fetch_all(fetcher: RankingsFetcher, delay: float) -> int:
    """Fetch every popular game; one failure does not stop the rest."""
    failures = 0
    for index, (game_id, name) in enumerate(POPULAR_GAMES.items()):
        if index:
            await asyncio.sleep(delay)
        try:
            await fetcher.refresh(game_id, name)
        except FCRankError as e:
            failures += 1
            logger.error("Failed to fetch %s: %s", name, e.message)
            continue
        print(f"Fetched {name}")
    print(f"Finished: {len(POPULAR_GAMES) - failures}/{len(POPULAR_GAMES)} games")
    return 1 if failures else 0


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    async with FightcadeClient(
        api_url=settings.api_url,
        timeout=settings.upstream_timeout,
        page_size=settings.page_size,
        page_delay=settings.page_delay,
    ) as client:
        fetcher = RankingsFetcher(
            client, SnapshotStore(settings.data_dir), max_players=settings.max_players
        )
        if args.game_id == ALL_GAMES:
            return await fetch_all(fetcher, settings.page_delay)
        return await fetch_one(fetcher, args.game_id, args.game_name)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Fetch upstream rankings snapshots.")
    ap.add_argument("game_id", nargs="?", help=f"Game ID, or '{ALL_GAMES}'")
    ap.add_argument("game_name", nargs="?", help="Display name for the game")
    args = ap.parse_args(argv)

    if not args.game_id:
        _print_games()
        return 0

    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    try:
        return asyncio.run(_run(args, settings))
    except KeyboardInterrupt:
        print("Fetch interrupted by user")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
