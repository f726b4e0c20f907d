# src/fcrank/exceptions.py

"""Custom exception hierarchy for FC Rank.

This module provides a structured exception hierarchy that enables:
1. Proper HTTP status code mapping in API endpoints
2. Detailed error context for logging and debugging
3. A clear line between upstream failures and local lookups that found nothing
"""

from __future__ import annotations


class FCRankError(Exception):
    """Base exception for all FC Rank errors.

    Attributes:
        message: Human-readable error description
        details: Optional dict with additional context for logging/debugging
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


# =============================================================================
# Resource Not Found Errors (HTTP 404)
# =============================================================================


class ResourceNotFoundError(FCRankError):
    """Base class for resource not found errors."""

    pass


class GameDataNotFoundError(ResourceNotFoundError):
    """Raised when no rankings snapshot has been fetched for a game."""

    def __init__(self, game_id: str) -> None:
        super().__init__(
            message=f"Game data not found for '{game_id}'. Try fetching it first.",
            details={"game_id": game_id},
        )


class SceneNotFoundError(ResourceNotFoundError):
    """Raised when a scene ID is not registered."""

    def __init__(self, scene_id: str) -> None:
        super().__init__(
            message=f"Scene '{scene_id}' not found",
            details={"scene_id": scene_id},
        )


class UserNotFoundError(ResourceNotFoundError):
    """Raised when the upstream service has no user with the given name."""

    def __init__(self, username: str, reason: str | None = None) -> None:
        details: dict = {"username": username}
        if reason:
            details["reason"] = reason
        super().__init__(message=f"User '{username}' not found", details=details)


# =============================================================================
# Validation Errors (HTTP 422 / 409)
# =============================================================================


class ValidationError(FCRankError):
    """Base class for validation errors."""

    pass


class BatchSizeError(ValidationError):
    """Raised when a batch lookup is empty or exceeds the allowed size."""

    def __init__(self, count: int, maximum: int) -> None:
        super().__init__(
            message=f"Batch must contain between 1 and {maximum} usernames, "
            f"got {count}",
            details={"count": count, "maximum": maximum},
        )


class DuplicateSceneError(ValidationError):
    """Raised when registering a scene whose ID is already taken."""

    def __init__(self, scene_id: str) -> None:
        super().__init__(
            message=f"Scene '{scene_id}' already exists",
            details={"scene_id": scene_id},
        )


# =============================================================================
# Upstream Errors (HTTP 502 / 503)
# =============================================================================


class UpstreamError(FCRankError):
    """Base class for failures talking to the upstream ranking service."""

    pass


class UpstreamTransportError(UpstreamError):
    """Network failure, timeout or non-2xx HTTP status from upstream."""

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            message=f"Upstream request '{operation}' failed: {reason}",
            details={"operation": operation, "reason": reason},
        )


class UpstreamAPIError(UpstreamError):
    """Upstream answered, but with a non-OK application status."""

    def __init__(self, operation: str, status: str) -> None:
        self.status = status
        super().__init__(
            message=f"Upstream API error for '{operation}': {status}",
            details={"operation": operation, "status": status},
        )


class UpstreamUnavailableError(UpstreamError):
    """Raised when no live lookup could reach the upstream service at all."""

    def __init__(self, scene_id: str, attempted: int) -> None:
        super().__init__(
            message=f"Upstream ranking service unreachable while resolving "
            f"scene '{scene_id}'",
            details={"scene_id": scene_id, "attempted": attempted},
        )


# =============================================================================
# Persistence Errors
# =============================================================================


class CachePersistenceError(FCRankError):
    """Raised when the cache storage location cannot be prepared."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            message=f"Cannot use cache location {path}: {reason}",
            details={"path": path, "reason": reason},
        )
