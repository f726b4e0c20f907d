# src/fcrank/services/scene_registry.py

"""Business logic for scene registration and lookup."""

from __future__ import annotations

import asyncio
import json
import logging
from collections import Counter
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fcrank.db import models
from fcrank.exceptions import DuplicateSceneError, SceneNotFoundError
from fcrank.schemas import scene as scene_schema

logger = logging.getLogger(__name__)

SUBMISSION_EMAIL = "cdb@voidtalker.com"


async def list_scenes(db: AsyncSession) -> list[models.Scene]:
    result = await db.execute(select(models.Scene).order_by(models.Scene.name))
    return list(result.scalars().all())


async def scenes_for_game(db: AsyncSession, game_id: str) -> list[models.Scene]:
    query = (
        select(models.Scene)
        .where(models.Scene.game_id == game_id)
        .order_by(models.Scene.name)
    )
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_scene(db: AsyncSession, scene_id: str) -> models.Scene:
    """
    Fetch a scene by ID.

    Raises:
        SceneNotFoundError: If no scene has this ID
    """
    scene = await db.get(models.Scene, scene_id)
    if scene is None:
        raise SceneNotFoundError(scene_id)
    return scene


async def create_scene(
    db: AsyncSession, scene_in: scene_schema.SceneCreate
) -> models.Scene:
    """
    Register a new scene.

    Raises:
        DuplicateSceneError: If the scene ID is already taken
    """
    if await db.get(models.Scene, scene_in.id) is not None:
        raise DuplicateSceneError(scene_in.id)

    scene = models.Scene(**scene_in.model_dump())
    db.add(scene)
    await db.commit()
    await db.refresh(scene)
    logger.info(
        "Registered scene %s",
        scene.id,
        extra={"scene_id": scene.id, "game_id": scene.game_id},
    )
    return scene


async def available_games(db: AsyncSession) -> list[scene_schema.SceneGame]:
    """Games that have at least one scene, with their scene counts."""
    scenes = await list_scenes(db)
    counts = Counter(scene.game_id for scene in scenes)
    names = {scene.game_id: scene.game_name for scene in scenes}
    return [
        scene_schema.SceneGame(game_id=game_id, game_name=names[game_id], scene_count=n)
        for game_id, n in sorted(counts.items())
    ]


async def scene_stats(db: AsyncSession) -> scene_schema.SceneStats:
    scenes = await list_scenes(db)
    total_players = sum(len(scene.players) for scene in scenes)
    return scene_schema.SceneStats(
        total_scenes=len(scenes),
        total_players=total_players,
        games_with_scenes=len({scene.game_id for scene in scenes}),
        average_players_per_scene=round(total_players / len(scenes)) if scenes else 0,
    )


def _read_seed_file(path: Path) -> list[dict]:
    if not path.exists():
        return []
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.error("Unreadable scenes file %s: %s", path, e)
        return []
    scenes = raw.get("scenes") if isinstance(raw, dict) else None
    if not isinstance(scenes, list):
        logger.error("Invalid scenes file %s: missing scenes array", path)
        return []
    return scenes


async def seed_from_file(db: AsyncSession, path: Path) -> int:
    """
    Import scenes from a JSON seed file.

    Scenes whose ID is already registered are left untouched. Invalid
    entries are skipped and logged. Returns the number of scenes added.
    """
    raw_scenes = await asyncio.to_thread(_read_seed_file, path)
    added = 0
    for raw in raw_scenes:
        try:
            scene_in = scene_schema.SceneCreate.model_validate(
                {
                    **raw,
                    "game_id": raw.get("game_id") or raw.get("gameId"),
                    "game_name": raw.get("game_name") or raw.get("gameName") or "",
                    "submitted_by": raw.get("submitted_by")
                    or raw.get("submittedBy")
                    or "anonymous",
                }
            )
        except PydanticValidationError as e:
            logger.warning(
                "Skipping invalid scene in %s: %s", path, e.errors()[0]["msg"]
            )
            continue
        if await db.get(models.Scene, scene_in.id) is not None:
            continue
        db.add(models.Scene(**scene_in.model_dump()))
        added += 1

    if added:
        await db.commit()
        logger.info("Imported %d scenes from %s", added, path)
    return added


def submission_info() -> scene_schema.SubmissionInfo:
    return scene_schema.SubmissionInfo(
        email=SUBMISSION_EMAIL,
        format=(
            "Please include:\n"
            '- Scene Name (e.g., "California FGC")\n'
            '- Game (e.g., "Street Fighter III: 3rd Strike")\n'
            "- Player List (comma-separated Fightcade usernames)\n"
            "- Brief Description (optional)\n"
            "- Your Name/Community (for attribution)"
        ),
        example=(
            "Subject: New Scene Submission\n\n"
            "Scene Name: California FGC\n"
            "Game: Street Fighter III: 3rd Strike\n"
            "Players: Player1, Player2, Player3, Player4\n"
            "Description: West Coast warriors representing the Golden State!\n"
            "Submitted by: YourName"
        ),
    )
