# src/fcrank/services/statistics_service.py

"""Aggregate statistics over one game's snapshot."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone

from fcrank.schemas.common import MAX_TIER, MIN_TIER, tier_letter
from fcrank.schemas.snapshot import PlayerRecord, Snapshot
from fcrank.schemas.statistics import (
    AdvancedStats,
    CountryStats,
    GameStatistics,
    TierDistribution,
    TopPlayer,
)

# Chart colours per tier, E..S
TIER_COLORS = ("#a55eea", "#eb4d4b", "#f9ca24", "#45b7d1", "#4ecdc4", "#ff6b6b")

ACTIVE_MATCH_THRESHOLD = 1000
# Countries smaller than this are ignored when picking the top elite country.
MIN_COUNTRY_SIZE_FOR_ELITE = 10
TOP_PLAYERS_PER_COUNTRY = 10


def _percent(part: int, whole: int) -> float:
    return round(part * 100 / whole, 1) if whole else 0.0


def _tier_distribution(players: tuple[PlayerRecord, ...]) -> list[TierDistribution]:
    counts: dict[int, int] = defaultdict(int)
    for player in players:
        counts[player.tier] += 1
    return [
        TierDistribution(
            tier=tier,
            letter=tier_letter(tier),
            count=counts[tier],
            percentage=_percent(counts[tier], len(players)),
            color=TIER_COLORS[tier - 1],
        )
        for tier in range(MIN_TIER, MAX_TIER + 1)
    ]


def generate_statistics(snapshot: Snapshot) -> GameStatistics:
    """Compute tier, country and activity statistics for ``snapshot``."""
    players = snapshot.players
    total = len(players)

    by_country: dict[str, list[PlayerRecord]] = defaultdict(list)
    for player in players:
        by_country[player.country or "Unknown"].append(player)

    country_stats: list[CountryStats] = []
    top_by_country: dict[str, list[PlayerRecord]] = {}
    for country, members in by_country.items():
        ranked = sorted(members, key=lambda p: p.rank_position)
        best = ranked[0]
        country_stats.append(
            CountryStats(
                country=country,
                player_count=len(members),
                average_score=round(sum(p.score for p in members) / len(members)),
                top_player=TopPlayer(
                    name=best.name, rank_position=best.rank_position, score=best.score
                ),
                elite_players=sum(1 for p in members if p.tier == MAX_TIER),
                percentage=_percent(len(members), total),
            )
        )
        top_by_country[country] = ranked[:TOP_PLAYERS_PER_COUNTRY]
    country_stats.sort(key=lambda c: c.player_count, reverse=True)

    total_matches = sum(p.total_matches for p in players)
    eligible = [c for c in country_stats if c.player_count >= MIN_COUNTRY_SIZE_FOR_ELITE]
    eligible.sort(key=lambda c: c.elite_players / c.player_count, reverse=True)

    average_tier = (
        tier_letter(round(sum(p.tier for p in players) / total)) if total else "Unknown"
    )

    return GameStatistics(
        game_id=snapshot.game_id,
        game_name=snapshot.game_name,
        total_players=total,
        total_countries=len(by_country),
        average_tier=average_tier,
        total_matches=total_matches,
        total_hours_played=round(sum(p.time_played for p in players) / 3600),
        tier_distribution=_tier_distribution(players),
        country_stats=country_stats,
        top_players_by_country=top_by_country,
        advanced=AdvancedStats(
            active_players_count=sum(
                1 for p in players if p.total_matches > ACTIVE_MATCH_THRESHOLD
            ),
            avg_matches_per_player=round(total_matches / total) if total else 0,
            elite_player_count=sum(1 for p in players if p.tier == MAX_TIER),
            elite_countries_count=sum(1 for c in country_stats if c.elite_players > 0),
            top_elite_country=eligible[0].country if eligible else "Unknown",
        ),
        generated_at=datetime.now(timezone.utc),
    )
