# src/fcrank/schemas/profile.py

"""Pydantic models for payloads returned by the upstream ranking API.

Only the fields the rest of the application reads are modelled; anything
else upstream sends is dropped during validation so the cache contract
stays stable when upstream grows new fields.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import clamp_tier


class GameInfo(BaseModel):
    """Per-game statistics attached to an upstream profile.

    Attributes:
        rank: Upstream tier (1..6), NOT a global ranking position
        num_matches: Ranked matches played in this game
        time_played: Seconds played in this game
    """

    rank: int = Field(1, description="Upstream tier (1 = E ... 6 = S)")
    num_matches: int = Field(0, ge=0)
    time_played: int = Field(0, ge=0)

    model_config = ConfigDict(extra="ignore")

    @field_validator("rank", mode="before")
    @classmethod
    def _coerce_rank(cls, value: Any) -> int:
        try:
            return clamp_tier(int(value)) if value is not None else 1
        except (TypeError, ValueError):
            return 1

    @field_validator("num_matches", "time_played", mode="before")
    @classmethod
    def _coerce_counter(cls, value: Any) -> int:
        if value is None:
            return 0
        return max(0, int(value))


class UpstreamProfile(BaseModel):
    """A player profile as returned by upstream 'getuser' or 'searchrankings'."""

    name: str = ""
    country: str = "Unknown"
    gameinfo: dict[str, GameInfo] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")

    @field_validator("country", mode="before")
    @classmethod
    def _normalize_country(cls, value: Any) -> str:
        # Upstream sends either a plain string or {"iso_code": .., "full_name": ..}
        if isinstance(value, dict):
            value = value.get("full_name") or value.get("name")
        if not value:
            return "Unknown"
        return str(value)

    @field_validator("gameinfo", mode="before")
    @classmethod
    def _drop_empty_gameinfo(cls, value: Any) -> Any:
        if not value:
            return {}
        if isinstance(value, dict):
            return {k: v for k, v in value.items() if isinstance(v, dict)}
        return value

    def game(self, game_id: str) -> GameInfo | None:
        """Return this profile's stats for ``game_id``, if it has played it."""
        return self.gameinfo.get(game_id)


class RankingPage(BaseModel):
    """One (or an accumulated run of) 'searchrankings' results."""

    players: list[UpstreamProfile] = Field(default_factory=list)
    total_count: int = Field(0, ge=0, description="Total players upstream reports")
    truncated: bool = Field(
        False, description="True when a failure cut a multi-page fetch short"
    )


class ProfileLookup(BaseModel):
    """Outcome of one username in a batch profile fetch."""

    username: str
    profile: UpstreamProfile | None = None
    found: bool = False
    error: str | None = None
