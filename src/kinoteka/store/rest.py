"""PostgREST client for the hosted store."""

import logging
import re
from typing import Any, Sequence

import httpx

from kinoteka.config import settings
from kinoteka.errors import StoreError
from kinoteka.store.base import Filter, Order, RemoteStore, Row, SelectResult

logger = logging.getLogger(__name__)

CONTENT_RANGE_TOTAL = re.compile(r"/(\d+)$")


def encode_filter(f: Filter) -> str:
    """Encode a predicate as a PostgREST query value."""
    if f.op == "eq":
        return f"eq.{f.value}"
    if f.op == "in":
        values = ",".join(_quote(v) for v in f.value)
        return f"in.({values})"
    if f.op == "ilike":
        # PostgREST uses * in place of SQL %.
        return f"ilike.{str(f.value).replace('%', '*')}"
    raise ValueError(f"Unsupported filter operator: {f.op}")


def _quote(value: Any) -> str:
    text = str(value)
    if any(ch in text for ch in ',()"'):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return text


def parse_content_range(header: str | None) -> int | None:
    """Extract the total from a `Content-Range: 0-9/42` header."""
    if not header:
        return None
    match = CONTENT_RANGE_TOTAL.search(header)
    return int(match.group(1)) if match else None


class PostgrestStore(RemoteStore):
    """RemoteStore backed by a PostgREST (Supabase) REST endpoint."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize the store client.

        Args:
            base_url: Project URL (uses settings if not provided)
            api_key: Anonymous API key (uses settings if not provided)
            timeout: Request timeout in seconds (uses settings if not provided)
        """
        self.base_url = (base_url or settings.store_url).rstrip("/")
        self.api_key = api_key or settings.store_api_key
        self.timeout = timeout or settings.store_timeout
        if not self.api_key:
            logger.warning("Store API key not configured")

    @property
    def rest_url(self) -> str:
        return f"{self.base_url}/rest/v1"

    def _headers(self, **extra: str) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: list[tuple[str, str]] | None = None,
        headers: dict[str, str] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        url = f"{self.rest_url}/{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method, url, params=params, headers=headers, json=json
                )
        except httpx.HTTPError as e:
            logger.error(f"Store request {method} {path} failed: {e}")
            raise StoreError(f"Network error: {e}") from e

        if response.status_code >= 400:
            raise self._error_from(response)
        return response

    def _error_from(self, response: httpx.Response) -> StoreError:
        message = f"HTTP {response.status_code}"
        code = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or message
            code = body.get("code")
        logger.warning(f"Store error {response.status_code}: {message}")
        return StoreError(message, code=code, status=response.status_code)

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: Order | None = None,
        offset: int | None = None,
        limit: int | None = None,
        count: bool = False,
        head: bool = False,
    ) -> SelectResult:
        params = [("select", columns)]
        params.extend((f.column, encode_filter(f)) for f in filters)
        if order:
            params.append(("order", f"{order.column}.{'asc' if order.ascending else 'desc'}"))

        extra: dict[str, str] = {}
        if count or head:
            extra["Prefer"] = "count=exact"
        if limit is not None:
            start = offset or 0
            extra["Range-Unit"] = "items"
            extra["Range"] = f"{start}-{start + limit - 1}"

        response = await self._request(
            "HEAD" if head else "GET", table, params=params, headers=self._headers(**extra)
        )
        total = parse_content_range(response.headers.get("Content-Range")) if (count or head) else None
        rows = [] if head else response.json()
        return SelectResult(rows=rows, count=total)

    async def insert(self, table: str, values: Row, columns: str = "*") -> Row:
        response = await self._request(
            "POST",
            table,
            params=[("select", columns)],
            headers=self._headers(Prefer="return=representation"),
            json=values,
        )
        rows = response.json()
        if not rows:
            raise StoreError(f"Insert into {table} returned no rows")
        return rows[0]

    async def update(self, table: str, values: Row, filters: Sequence[Filter]) -> list[Row]:
        response = await self._request(
            "PATCH",
            table,
            params=[(f.column, encode_filter(f)) for f in filters],
            headers=self._headers(Prefer="return=representation"),
            json=values,
        )
        return response.json()

    async def delete(self, table: str, filters: Sequence[Filter]) -> None:
        await self._request(
            "DELETE",
            table,
            params=[(f.column, encode_filter(f)) for f in filters],
            headers=self._headers(),
        )

    async def rpc(self, function: str, params: dict[str, Any]) -> Any:
        response = await self._request(
            "POST", f"rpc/{function}", headers=self._headers(), json=params
        )
        if not response.content:
            return None
        return response.json()
