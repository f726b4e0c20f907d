# src/fcrank/services/search_service.py

"""Linear-scan queries over a snapshot's player list."""

from __future__ import annotations

import math
from collections.abc import Sequence

from fcrank.schemas.search import PagedResponse, PlayerSummaryStats, SearchFilters
from fcrank.schemas.snapshot import PlayerRecord


def _contains(haystack: str | None, needle: str) -> bool:
    return bool(haystack) and needle in str(haystack).lower()


def search_players(
    players: Sequence[PlayerRecord],
    filters: SearchFilters,
    page: int = 1,
    page_size: int = 50,
) -> PagedResponse[PlayerRecord]:
    """Filter ``players`` and return one page of matches."""
    matches = list(players)

    if filters.name:
        name = filters.name.strip().lower()
        matches = [p for p in matches if name in p.name.lower()]
    if filters.min_score is not None:
        matches = [p for p in matches if p.score >= filters.min_score]
    if filters.max_score is not None:
        matches = [p for p in matches if p.score <= filters.max_score]
    if filters.min_rank is not None:
        matches = [p for p in matches if p.rank_position >= filters.min_rank]
    if filters.max_rank is not None:
        matches = [p for p in matches if p.rank_position <= filters.max_rank]
    if filters.country:
        country = filters.country.strip().lower()
        matches = [p for p in matches if _contains(p.country, country)]

    total = len(matches)
    start = (page - 1) * page_size
    return PagedResponse[PlayerRecord](
        items=matches[start : start + page_size],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size),
    )


def find_player_by_name(
    players: Sequence[PlayerRecord], name: str
) -> PlayerRecord | None:
    """Exact, case-insensitive, whitespace-trimmed name match."""
    wanted = name.strip().lower()
    for player in players:
        if player.name.lower() == wanted:
            return player
    return None


def find_players_by_partial_name(
    players: Sequence[PlayerRecord], partial: str, limit: int = 10
) -> list[PlayerRecord]:
    wanted = partial.strip().lower()
    return [p for p in players if wanted in p.name.lower()][:limit]


def get_top_players(
    players: Sequence[PlayerRecord], count: int = 10
) -> list[PlayerRecord]:
    return sorted(players, key=lambda p: p.rank_position)[:count]


def get_unique_countries(players: Sequence[PlayerRecord]) -> list[str]:
    """Sorted distinct country names, excluding unknowns."""
    return sorted({p.country for p in players if p.country and p.country != "Unknown"})


def get_player_stats(players: Sequence[PlayerRecord]) -> PlayerSummaryStats:
    if not players:
        return PlayerSummaryStats()

    by_score = sorted(players, key=lambda p: p.score, reverse=True)
    total = sum(p.score for p in players)
    return PlayerSummaryStats(
        total_players=len(players),
        average_score=round(total / len(players)),
        median_score=by_score[len(players) // 2].score,
        top_score=by_score[0].score,
        bottom_score=by_score[-1].score,
    )
