"""
TVMaze API client

Read-only access to the three TVMaze endpoints the sync needs. Every call
returns a tagged RemoteResult instead of raising, so callers can tell a
missing show apart from an unreachable API.

API documentation: https://www.tvmaze.com/api
"""
from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from program_guide.schemas import RemoteEpisode, RemoteShow
from program_guide.services.sync_types import Found, NotFound, RemoteResult, Unavailable


logger = logging.getLogger(__name__)

_EPISODE_LIST = TypeAdapter(list[RemoteEpisode])


class TVMazeClient:
    """Synchronous TVMaze client holding one HTTP connection pool per run."""

    def __init__(
        self,
        base_url: str = "https://api.tvmaze.com",
        *,
        timeout: float = 30.0,
        user_agent: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if user_agent:
            headers["User-Agent"] = user_agent
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    def __enter__(self) -> "TVMazeClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _get_json(self, path: str) -> RemoteResult[Any]:
        logger.debug("GET %s", path)
        try:
            response = self._client.get(path)
        except httpx.HTTPError as exc:
            logger.warning("Request to %s failed: %s: %s", path, type(exc).__name__, exc)
            return Unavailable(f"{type(exc).__name__}: {exc}")

        if response.status_code == 404:
            logger.info("TVMaze returned 404 for %s", path)
            return NotFound()
        if not response.is_success:
            logger.warning("TVMaze returned HTTP %s for %s", response.status_code, path)
            return Unavailable(f"HTTP {response.status_code}")

        try:
            return Found(response.json())
        except ValueError as exc:
            logger.warning("Invalid JSON from %s: %s", path, exc)
            return Unavailable("invalid JSON payload")

    def get_show_updates(self) -> Found[dict[int, int]] | Unavailable:
        """
        Fetch the last update timestamp of every show.

        Returns:
            Found with a show id -> epoch seconds map, or Unavailable when the
            endpoint could not be read (a 404 counts as unavailable here)
        """
        result = self._get_json("/updates/shows")
        if isinstance(result, NotFound):
            return Unavailable("HTTP 404")
        if isinstance(result, Unavailable):
            return result

        payload = result.value
        if not isinstance(payload, dict):
            logger.warning("Unexpected bulk update payload type: %s", type(payload).__name__)
            return Unavailable("unexpected payload")
        try:
            updates = {int(show_id): int(updated) for show_id, updated in payload.items()}
        except (TypeError, ValueError) as exc:
            logger.warning("Malformed bulk update payload: %s", exc)
            return Unavailable("malformed payload")

        logger.info("Fetched update timestamps for %s shows", len(updates))
        return Found(updates)

    def get_show(self, show_id: int) -> RemoteResult[RemoteShow]:
        """Fetch show detail by TVMaze id."""
        result = self._get_json(f"/shows/{show_id}")
        if not isinstance(result, Found):
            return result
        try:
            return Found(RemoteShow.model_validate(result.value))
        except ValidationError as exc:
            logger.warning("Invalid show payload for %s: %s", show_id, exc)
            return Unavailable("invalid show payload")

    def get_episodes(self, show_id: int) -> RemoteResult[list[RemoteEpisode]]:
        """Fetch the full episode list of a show."""
        result = self._get_json(f"/shows/{show_id}/episodes")
        if not isinstance(result, Found):
            return result
        try:
            return Found(_EPISODE_LIST.validate_python(result.value))
        except ValidationError as exc:
            logger.warning("Invalid episode payload for %s: %s", show_id, exc)
            return Unavailable("invalid episode payload")
