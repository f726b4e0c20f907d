# src/fcrank/schemas/scene.py

"""Pydantic schemas for the Scene resource."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ===============================================
# Base Schema: Defines shared attributes for creation
# ===============================================
class SceneBase(BaseModel):
    """Shared properties for a scene."""

    name: str = Field(..., min_length=1)
    description: str = ""
    game_id: str = Field(..., min_length=1)
    game_name: str = ""
    players: list[str] = Field(default_factory=list)

    @field_validator("players")
    @classmethod
    def _strip_players(cls, value: list[str]) -> list[str]:
        # Keep the submitted order, drop blanks and case-insensitive repeats
        seen: set[str] = set()
        cleaned: list[str] = []
        for name in value:
            name = name.strip()
            if name and name.lower() not in seen:
                seen.add(name.lower())
                cleaned.append(name)
        return cleaned


# ===============================================
# Create Schema: Adds the caller-chosen slug
# ===============================================
class SceneCreate(SceneBase):
    """Properties to receive via API on create."""

    id: str = Field(..., min_length=1, max_length=64, pattern=r"^[a-z0-9][a-z0-9-]*$")
    submitted_by: str = "anonymous"


# ===============================================
# Read Schema: Defines attributes for returning data
# ===============================================
class SceneRead(SceneBase):
    """Properties to return to the client."""

    id: str
    submitted_by: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SceneStats(BaseModel):
    total_scenes: int
    total_players: int
    games_with_scenes: int
    average_players_per_scene: int


class SceneGame(BaseModel):
    game_id: str
    game_name: str
    scene_count: int


class SubmissionInfo(BaseModel):
    """Instructions shown to people who want a new scene listed."""

    email: str
    format: str
    example: str


class SceneList(BaseModel):
    scenes: list[SceneRead]
    stats: SceneStats
