# src/fcrank/services/upstream_client.py

"""Client for the Fightcade ranking API.

Every operation is a JSON POST of ``{"req": <operation>, ...params}`` to a
single endpoint. Responses carry an application status in ``res``; anything
other than ``"OK"`` is an API error, distinct from transport failures.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from fcrank.config import DEFAULT_API_URL
from fcrank.exceptions import UpstreamAPIError, UpstreamError, UpstreamTransportError
from fcrank.schemas.common import tier_letter
from fcrank.schemas.profile import ProfileLookup, RankingPage, UpstreamProfile

logger = logging.getLogger(__name__)

SEARCH_RANKINGS = "searchrankings"
GET_USER = "getuser"
USER_NOT_FOUND = "ERROR_USER_NOT_FOUND"
USER_AGENT = "FC-Rank-Search/1.0.0"


class FightcadeClient:
    """Async client for the upstream ranking service.

    The underlying ``httpx.AsyncClient`` can be injected (tests pass one
    built on ``httpx.MockTransport``); otherwise one is created and owned
    by this instance and closed by :meth:`aclose`.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 15.0,
        page_size: int = 100,
        page_delay: float = 2.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_url = api_url
        self._page_size = page_size
        self._page_delay = page_delay
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": USER_AGENT},
        )

    @property
    def page_size(self) -> int:
        return self._page_size

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> FightcadeClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _post(self, operation: str, params: dict[str, Any]) -> dict[str, Any]:
        """Send one request and return the decoded body.

        Raises:
            UpstreamTransportError: network failure, timeout, non-2xx, bad JSON
        """
        body = {"req": operation, **params}
        try:
            response = await self._client.post(self._api_url, json=body)
        except httpx.TimeoutException as e:
            raise UpstreamTransportError(operation, f"timed out ({e!r})") from e
        except httpx.HTTPError as e:
            raise UpstreamTransportError(operation, str(e) or type(e).__name__) from e

        if not response.is_success:
            raise UpstreamTransportError(
                operation, f"HTTP {response.status_code} {response.reason_phrase}"
            )
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamTransportError(operation, "response was not JSON") from e
        if not isinstance(data, dict):
            raise UpstreamTransportError(operation, "response was not a JSON object")
        return data

    # ------------------------------------------------------------------
    # Rankings
    # ------------------------------------------------------------------

    async def fetch_page(
        self,
        game_id: str,
        by_elo: bool = False,
        recent: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> RankingPage:
        """Fetch one page of a game's rankings.

        An empty page is a normal result; errors are raised.

        Raises:
            UpstreamTransportError: The request could not be completed
            UpstreamAPIError: Upstream answered with a non-OK status
        """
        limit = limit or self._page_size
        data = await self._post(
            SEARCH_RANKINGS,
            {
                "gameid": game_id,
                "byElo": by_elo,
                "recent": recent,
                "limit": limit,
                "offset": offset,
            },
        )
        if data.get("res") != "OK":
            raise UpstreamAPIError(SEARCH_RANKINGS, str(data.get("res")))

        results = data.get("results") or {}
        try:
            page = RankingPage(
                players=results.get("results") or [],
                total_count=results.get("count") or 0,
            )
        except PydanticValidationError as e:
            raise UpstreamAPIError(SEARCH_RANKINGS, "malformed rankings payload") from e

        logger.debug(
            "Rankings page for %s: %d of %d players",
            game_id,
            len(page.players),
            page.total_count,
            extra={"game_id": game_id, "offset": offset, "limit": limit},
        )
        return page

    async def fetch_all_pages(
        self, game_id: str, max_players: int = 100_000
    ) -> RankingPage:
        """Fetch a game's full ranking list page by page.

        Pages are requested strictly one after another, since each offset
        depends on how many players have arrived. The loop stops on an
        empty page, a short page, once upstream's total count is reached,
        or at ``max_players``.

        A failure after at least one page returns what was accumulated with
        ``truncated=True``. A failure on the first page is raised.
        """
        players: list[UpstreamProfile] = []
        total_count = 0
        truncated = False
        offset = 0

        logger.info(
            "Fetching all rankings for %s (max %d)",
            game_id,
            max_players,
            extra={"game_id": game_id},
        )

        while len(players) < max_players:
            if offset:
                await asyncio.sleep(self._page_delay)
            try:
                page = await self.fetch_page(
                    game_id, limit=self._page_size, offset=offset
                )
            except UpstreamError as e:
                if not players:
                    raise
                logger.warning(
                    "Rankings fetch for %s stopped early after %d players: %s",
                    game_id,
                    len(players),
                    e.message,
                    extra={"game_id": game_id, "offset": offset},
                )
                truncated = True
                break

            if not page.players:
                break

            players.extend(page.players)
            total_count = page.total_count
            logger.info(
                "Fetched %d of %d players for %s",
                len(players),
                total_count,
                game_id,
            )

            if len(page.players) < self._page_size:
                break
            if len(players) >= total_count:
                break
            offset += self._page_size

        players = players[:max_players]
        self._log_tier_distribution(game_id, players)
        return RankingPage(
            players=players,
            total_count=max(total_count, len(players)),
            truncated=truncated,
        )

    @staticmethod
    def _log_tier_distribution(game_id: str, players: list[UpstreamProfile]) -> None:
        if not logger.isEnabledFor(logging.INFO):
            return
        counts: Counter[int] = Counter()
        for player in players:
            info = player.game(game_id)
            counts[info.rank if info else 1] += 1
        summary = ", ".join(
            f"{tier_letter(tier)}: {count}" for tier, count in sorted(counts.items())
        )
        logger.info("Tier distribution for %s: %s", game_id, summary or "empty")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def fetch_profile(self, username: str) -> UpstreamProfile | None:
        """Look up one user. Returns None when upstream has no such user.

        Raises:
            UpstreamTransportError: The request could not be completed
            UpstreamAPIError: Any non-OK status other than "user not found"
        """
        data = await self._post(GET_USER, {"username": username})
        status = data.get("res")
        if status == USER_NOT_FOUND:
            logger.debug("Upstream has no user %s", username)
            return None
        if status != "OK":
            raise UpstreamAPIError(GET_USER, str(status))

        user = data.get("user") or data.get("results")
        if not user:
            return None
        try:
            return UpstreamProfile.model_validate(user)
        except PydanticValidationError as e:
            raise UpstreamAPIError(GET_USER, "malformed user payload") from e

    async def fetch_profiles(self, usernames: list[str]) -> dict[str, ProfileLookup]:
        """Look up many users concurrently.

        One failing lookup never fails the batch: it is reported with
        ``found=False`` and an ``error`` message. The result follows the
        order of ``usernames``.
        """

        async def _lookup(username: str) -> ProfileLookup:
            try:
                profile = await self.fetch_profile(username)
            except UpstreamError as e:
                logger.warning("Failed to fetch user %s: %s", username, e.message)
                return ProfileLookup(username=username, error=e.message)
            return ProfileLookup(
                username=username, profile=profile, found=profile is not None
            )

        results = await asyncio.gather(*(_lookup(name) for name in usernames))
        found = sum(1 for r in results if r.found)
        logger.info("Fetched %d/%d users", found, len(usernames))
        return {result.username: result for result in results}
