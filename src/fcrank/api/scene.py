# src/fcrank/api/scene.py

"""API endpoints for scenes and their resolved player data."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from fcrank.db.models import Scene
from fcrank.db.session import get_db
from fcrank.dependencies import get_resolver
from fcrank.schemas import scene as scene_schema
from fcrank.schemas.resolution import LiveSceneResult, SceneResolution
from fcrank.services import scene_registry
from fcrank.services.resolution import SceneResolver

router = APIRouter(prefix="/scenes", tags=["Scenes"])


async def _load_scene(db: AsyncSession, scene_id: str) -> scene_schema.SceneRead:
    scene = await scene_registry.get_scene(db, scene_id)
    return scene_schema.SceneRead.model_validate(scene)


@router.get("/", response_model=scene_schema.SceneList)
async def read_scenes(db: AsyncSession = Depends(get_db)) -> scene_schema.SceneList:
    """List every scene with aggregate scene statistics."""
    scenes = await scene_registry.list_scenes(db)
    return scene_schema.SceneList(
        scenes=[scene_schema.SceneRead.model_validate(s) for s in scenes],
        stats=await scene_registry.scene_stats(db),
    )


@router.post(
    "/",
    response_model=scene_schema.SceneRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_scene(
    scene_in: scene_schema.SceneCreate, db: AsyncSession = Depends(get_db)
) -> Scene:
    """
    Register a new scene.

    - **id**: URL-safe slug, e.g. ``california-fgc``
    - **players**: Upstream usernames, in display order

    Raises:
        409 Conflict: If a scene with the same ID already exists.
    """
    return await scene_registry.create_scene(db, scene_in)


@router.get("/games", response_model=list[scene_schema.SceneGame])
async def read_scene_games(
    db: AsyncSession = Depends(get_db),
) -> list[scene_schema.SceneGame]:
    """Games that have at least one scene."""
    return await scene_registry.available_games(db)


@router.get("/submission-info", response_model=scene_schema.SubmissionInfo)
async def read_submission_info() -> scene_schema.SubmissionInfo:
    return scene_registry.submission_info()


@router.get("/game/{game_id}", response_model=list[scene_schema.SceneRead])
async def read_scenes_for_game(
    game_id: str, db: AsyncSession = Depends(get_db)
) -> list[Scene]:
    return await scene_registry.scenes_for_game(db, game_id)


@router.get("/{scene_id}", response_model=SceneResolution)
async def read_scene(
    scene_id: str,
    db: AsyncSession = Depends(get_db),
    resolver: SceneResolver = Depends(get_resolver),
) -> SceneResolution:
    """
    Resolve a scene from the stored snapshot only (no upstream calls).

    Players missing from the snapshot are reported as unresolved.
    """
    scene = await _load_scene(db, scene_id)
    return await resolver.resolve_cached(scene)


@router.get("/{scene_id}/hybrid", response_model=SceneResolution)
async def read_scene_hybrid(
    scene_id: str,
    db: AsyncSession = Depends(get_db),
    resolver: SceneResolver = Depends(get_resolver),
) -> SceneResolution:
    """
    Resolve a scene from the snapshot, with live lookups for the rest.

    Raises:
        404 Not Found: If the scene doesn't exist.
        503 Service Unavailable: No snapshot and upstream unreachable.
    """
    scene = await _load_scene(db, scene_id)
    return await resolver.resolve_hybrid(scene)


@router.get("/{scene_id}/live", response_model=LiveSceneResult)
async def read_scene_live(
    scene_id: str,
    db: AsyncSession = Depends(get_db),
    resolver: SceneResolver = Depends(get_resolver),
) -> LiveSceneResult:
    """Fetch every scene member's profile directly from upstream."""
    scene = await _load_scene(db, scene_id)
    return await resolver.resolve_live(scene)
