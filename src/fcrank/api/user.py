# src/fcrank/api/user.py

"""API endpoints for live upstream user lookups."""

from fastapi import APIRouter, Depends

from fcrank.dependencies import get_client, get_resolver
from fcrank.exceptions import BatchSizeError, UserNotFoundError
from fcrank.schemas.resolution import (
    BatchLookupRequest,
    BatchLookupResponse,
    BatchLookupStats,
    PlayerLookup,
)
from fcrank.services.resolution import SceneResolver
from fcrank.services.upstream_client import FightcadeClient

router = APIRouter(prefix="/users", tags=["Users"])

MAX_BATCH_SIZE = 50


@router.get("/{username}", response_model=PlayerLookup)
async def read_user(
    username: str, resolver: SceneResolver = Depends(get_resolver)
) -> PlayerLookup:
    """
    Look up one user, serving from the player cache when possible.

    Raises:
        404 Not Found: If upstream has no such user or could not be asked.
    """
    lookup = await resolver.lookup_player(username)
    if not lookup.found:
        raise UserNotFoundError(username, reason=lookup.error)
    return lookup


@router.post("/batch", response_model=BatchLookupResponse)
async def read_users_batch(
    batch: BatchLookupRequest, client: FightcadeClient = Depends(get_client)
) -> BatchLookupResponse:
    """
    Look up 1 to 50 users live, concurrently.

    Individual failures are reported per user and never fail the batch.
    """
    if not 1 <= len(batch.usernames) <= MAX_BATCH_SIZE:
        raise BatchSizeError(len(batch.usernames), MAX_BATCH_SIZE)

    lookups = await client.fetch_profiles(batch.usernames)
    results = [lookups[name] for name in batch.usernames]
    found = sum(1 for r in results if r.found)
    return BatchLookupResponse(
        results=results,
        stats=BatchLookupStats(
            total_requested=len(results),
            users_found=found,
            users_not_found=len(results) - found,
        ),
    )
