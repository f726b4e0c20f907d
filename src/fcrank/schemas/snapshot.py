# src/fcrank/schemas/snapshot.py

"""Pydantic schemas for persisted per-game ranking snapshots."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PlayerRecord(BaseModel):
    """Single entry of a rankings snapshot.

    Attributes:
        name: Upstream username
        score: ELO-like score derived from the tier
        rank_position: Position in the bulk ranking list (1-indexed)
        tier: Upstream tier (1 = E ... 6 = S)
        total_matches: Ranked matches played
        time_played: Seconds played
        country: Country display name
    """

    name: str
    score: float
    rank_position: int = Field(..., ge=1, description="Position in rankings (1-indexed)")
    tier: int = Field(..., ge=1, le=6)
    total_matches: int = Field(0, ge=0)
    time_played: int = Field(0, ge=0)
    country: str = "Unknown"

    model_config = ConfigDict(frozen=True)


class Snapshot(BaseModel):
    """A full point-in-time ranking list for one game.

    Snapshots are never edited: a refresh builds and saves a new one.
    """

    game_id: str = Field(..., min_length=1)
    game_name: str
    players: tuple[PlayerRecord, ...] = ()
    fetched_at: datetime
    total_players: int = Field(..., ge=0)
    total_available: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_ordering(self) -> "Snapshot":
        positions = [p.rank_position for p in self.players]
        if positions != sorted(positions):
            raise ValueError("players must be ordered by rank_position")
        return self
