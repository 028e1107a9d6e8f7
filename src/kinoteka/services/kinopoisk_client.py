"""Kinopoisk API client for searching film metadata."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from kinoteka.config import settings
from kinoteka.errors import GatewayError
from kinoteka.schemas.candidate import CandidateMovie

logger = logging.getLogger(__name__)


class KinopoiskClient:
    """Client for the unofficial Kinopoisk keyword search API."""

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize Kinopoisk client.

        Args:
            api_key: API key (uses settings if not provided)
            api_url: Keyword search endpoint (uses settings if not provided)
            timeout: Request timeout in seconds (uses settings if not provided)
        """
        self.api_key = api_key or settings.kinopoisk_api_key
        self.api_url = api_url or settings.kinopoisk_api_url
        self.timeout = timeout or settings.kinopoisk_timeout
        if not self.api_key:
            logger.warning("Kinopoisk API key not configured")

    async def search_films(self, keyword: str) -> list[CandidateMovie]:
        """
        Search for films by keyword.

        Args:
            keyword: Film title or part of it

        Returns:
            Candidate films in API order (empty list if nothing matched)

        Raises:
            GatewayError: The API answered with an error, was unreachable or
                returned films that cannot be read
        """
        headers = {
            "X-API-KEY": self.api_key,
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    self.api_url, params={"keyword": keyword}, headers=headers
                )
                response.raise_for_status()
                data: dict[str, Any] = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Kinopoisk search error for '{keyword}': {e}")
            raise GatewayError(
                f"Kinopoisk API error: {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Kinopoisk search error for '{keyword}': {e}")
            raise GatewayError(f"Kinopoisk API is unreachable: {e}") from e

        films = data.get("films") or []
        if not films:
            logger.info(f"No Kinopoisk results for: {keyword}")
        try:
            return [CandidateMovie.model_validate(film) for film in films]
        except ValidationError as e:
            logger.error(f"Unreadable Kinopoisk results for '{keyword}': {e}")
            raise GatewayError("Kinopoisk API returned malformed data") from e
