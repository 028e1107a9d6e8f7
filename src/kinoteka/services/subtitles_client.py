"""OpenSubtitles API client for finding and downloading subtitle files."""

import asyncio
import logging
from typing import Any

import httpx

from kinoteka.config import settings
from kinoteka.schemas.candidate import SubtitleMatch
from kinoteka.schemas.movie import SelectedSubtitle

logger = logging.getLogger(__name__)


def best_match(data: dict[str, Any]) -> SubtitleMatch | None:
    """
    Pick the most downloaded entry that has at least one file.

    Raises:
        KeyError, ValidationError: The chosen entry's file is malformed
    """
    entries = []
    for entry in data.get("data") or []:
        attrs = entry.get("attributes") or {}
        if attrs.get("files"):
            entries.append(attrs)
    if not entries:
        return None

    best = max(entries, key=lambda attrs: attrs.get("download_count") or 0)
    file = best["files"][0]
    return SubtitleMatch(
        file_id=file["file_id"],
        file_name=file["file_name"],
        language=best.get("language"),
        release=best.get("release"),
    )


class OpenSubtitlesClient:
    """
    Client for the OpenSubtitles REST API.

    Every network leg (search, download link, file body) is bounded by the
    same wall-clock timeout. Timeouts and failures are logged and reported as
    "not found"; no method raises.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        language: str | None = None,
    ) -> None:
        self.api_key = api_key or settings.opensubtitles_api_key
        self.api_url = (api_url or settings.opensubtitles_api_url).rstrip("/")
        self.timeout = timeout or settings.subtitles_timeout
        self.language = language or settings.subtitles_language
        if not self.api_key:
            logger.warning("OpenSubtitles API key not configured")

    def _headers(self) -> dict[str, str]:
        return {
            "Api-Key": self.api_key,
            "Content-Type": "application/json",
            "User-Agent": settings.opensubtitles_user_agent,
        }

    async def search(self, title: str, year: int | str) -> SubtitleMatch | None:
        """
        Find the most downloaded subtitle file for a film.

        Args:
            title: Film title
            year: Release year

        Returns:
            Best match or None if nothing was found, the request failed or timed out
        """
        try:
            match = await asyncio.wait_for(self._search(f"{title} {year}"), timeout=self.timeout)
        except TimeoutError:
            logger.error(f"Subtitle search for '{title}' timed out after {self.timeout}s")
            return None
        except Exception as e:
            logger.error(f"Subtitle search error for '{title}': {e}")
            return None

        if match is None:
            logger.info(f"No subtitles found for: {title} ({year})")
        return match

    async def _search(self, query: str) -> SubtitleMatch | None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(
                f"{self.api_url}/subtitles",
                params={"query": query, "languages": self.language},
                headers=self._headers(),
            )
            response.raise_for_status()
            return best_match(response.json())

    async def download(self, file_id: int) -> str | None:
        """
        Download a subtitle file body.

        Resolves a signed download link first, then fetches the file.

        Args:
            file_id: OpenSubtitles file id

        Returns:
            File text, or None if either leg failed or timed out
        """
        try:
            link = await asyncio.wait_for(self._request_link(file_id), timeout=self.timeout)
        except TimeoutError:
            logger.error(f"Subtitle download link request timed out after {self.timeout}s")
            return None
        except Exception as e:
            logger.error(f"Subtitle download link error for file {file_id}: {e}")
            return None

        if not link:
            logger.warning(f"No download link returned for file {file_id}")
            return None

        try:
            return await asyncio.wait_for(self._fetch_body(link), timeout=self.timeout)
        except TimeoutError:
            logger.error(f"Subtitle file download timed out after {self.timeout}s")
            return None
        except Exception as e:
            logger.error(f"Subtitle file download error for file {file_id}: {e}")
            return None

    async def _request_link(self, file_id: int) -> str | None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.api_url}/download",
                json={"file_id": file_id},
                headers=self._headers(),
            )
            response.raise_for_status()
            return response.json().get("link")

    async def _fetch_body(self, link: str) -> str:
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            response = await client.get(link)
            response.raise_for_status()
            return response.text

    async def find_and_download(self, title: str, year: int | str) -> SelectedSubtitle | None:
        """Search then download; None unless a non-empty file body was obtained."""
        if not title or not year:
            return None

        match = await self.search(title, year)
        if not match:
            return None

        content = await self.download(match.file_id)
        if not content:
            return None
        return SelectedSubtitle(file_name=match.file_name, content=content)
