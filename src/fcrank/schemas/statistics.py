# src/fcrank/schemas/statistics.py

"""Schemas for per-game statistics."""

from datetime import datetime

from pydantic import BaseModel, Field

from .snapshot import PlayerRecord


class TierDistribution(BaseModel):
    tier: int = Field(..., ge=1, le=6)
    letter: str
    count: int
    percentage: float
    color: str


class TopPlayer(BaseModel):
    name: str
    rank_position: int
    score: float


class CountryStats(BaseModel):
    country: str
    player_count: int
    average_score: int
    top_player: TopPlayer
    elite_players: int = Field(..., description="S-tier players")
    percentage: float


class AdvancedStats(BaseModel):
    active_players_count: int = Field(..., description="Players with >1000 matches")
    avg_matches_per_player: int
    elite_player_count: int
    elite_countries_count: int
    top_elite_country: str


class GameStatistics(BaseModel):
    """Aggregate statistics for one game's snapshot."""

    game_id: str
    game_name: str
    total_players: int
    total_countries: int
    average_tier: str
    total_matches: int
    total_hours_played: int
    tier_distribution: list[TierDistribution]
    country_stats: list[CountryStats]
    top_players_by_country: dict[str, list[PlayerRecord]]
    advanced: AdvancedStats
    generated_at: datetime


class GameListing(BaseModel):
    game_id: str
    game_name: str
