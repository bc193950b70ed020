"""Client for the Spotify for Creators episode API."""

import asyncio
import json
from typing import Any, Optional

import aiohttp

from ..constants.config import (
    DEBUG_RAW_EXCERPT,
    DEFAULT_API_BASE_URL,
    DEFAULT_REQUEST_TIMEOUT,
    ERROR_BODY_EXCERPT,
    OVERVIEW_PATH,
    UPDATE_PATH,
    UPDATE_QUERY,
)
from ..exceptions import ApiError, MalformedResponse, TransportError
from ..utils.log import get_logger

logger = get_logger("api")


class EpisodeApiClient:
    """
    Fetch and update episodes, one request at a time.

    Use as an async context manager so the underlying aiohttp session is closed:

        async with EpisodeApiClient(cookie) as client:
            data = await client.fetch(episode_id)
    """

    def __init__(
        self,
        cookie_string: str,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        debug: bool = False,
    ):
        if not cookie_string:
            raise ValueError("cookie_string is required")
        self.cookie_string = cookie_string
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.debug = debug
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "EpisodeApiClient":
        # Cookie header is sent verbatim; response cookies are discarded
        self._session = aiohttp.ClientSession(
            headers={"Cookie": self.cookie_string},
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            cookie_jar=aiohttp.DummyCookieJar(),
        )
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("EpisodeApiClient must be used as an async context manager")
        return self._session

    def overview_url(self, episode_id: str) -> str:
        return self.base_url + OVERVIEW_PATH.format(episode_id=episode_id)

    def update_url(self, episode_id: str) -> str:
        return self.base_url + UPDATE_PATH.format(episode_id=episode_id)

    async def fetch(self, episode_id: str) -> dict[str, Any]:
        """
        Fetch the current state of an episode from the overview endpoint.

        Args:
            episode_id: Episode identifier

        Returns:
            Parsed JSON object describing the episode

        Raises:
            ApiError: If the response status is not 200
            MalformedResponse: If the body is not a JSON object
            TransportError: If no response was received
        """
        try:
            async with self.session.get(self.overview_url(episode_id)) as response:
                status = response.status
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Failed to get episode data for {episode_id}: {e}") from e

        logger.debug("GET /overview HTTP Status: %s", status)

        if status != 200:
            raise ApiError(status, episode_id, body[:ERROR_BODY_EXCERPT])

        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise MalformedResponse(episode_id) from e

        if not isinstance(data, dict):
            raise MalformedResponse(episode_id, "Episode data is not a JSON object")

        if self.debug:
            logger.debug("Debug: Response length: %d bytes", len(body))
            logger.debug("Debug: First %d chars: %s", DEBUG_RAW_EXCERPT, body[:DEBUG_RAW_EXCERPT])

        return data

    async def update(self, episode_id: str, payload: dict[str, Any]) -> None:
        """
        Submit a partial update for an episode.

        Args:
            episode_id: Episode identifier
            payload: Fields to change; fields left out are kept by the API

        Raises:
            ApiError: If the response status is not 200
            TransportError: If no response was received
        """
        data = json.dumps(payload)
        logger.debug("Update Payload: %s...", data[:200])

        try:
            async with self.session.post(
                self.update_url(episode_id),
                params=UPDATE_QUERY,
                data=data,
                headers={"Content-Type": "application/json"},
            ) as response:
                status = response.status
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Failed to update episode {episode_id}: {e}") from e

        logger.debug("POST /update HTTP Status: %s", status)

        if status != 200:
            if body:
                logger.debug("Error Response: %s", body)
            raise ApiError(status, episode_id, body[:ERROR_BODY_EXCERPT])
