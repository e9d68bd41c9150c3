from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from checkx_core.utils.trace import Trace

logger = logging.getLogger(__name__)

NEWSDATA_LATEST_URL = "https://newsdata.io/api/1/latest"
NEWSDATA_MAX_SIZE = 10


class EvidenceUnavailable(Exception):
    """News search could not produce results (no key, HTTP/network error, bad payload)."""


class NewsDataClient:
    def __init__(
        self,
        *,
        api_key: str | None,
        timeout_s: float = 10.0,
        language: str = "en",
        concurrency: int = 4,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.language = language
        self._sem = asyncio.Semaphore(max(1, min(int(concurrency or 4), 16)))
        self._client = client or httpx.AsyncClient(
            timeout=float(timeout_s),
            follow_redirects=True,
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
            headers={"X-Client-Source": "checkx"},
        )

    def enabled(self) -> bool:
        return bool(self.api_key)

    async def close(self) -> None:
        if not self._client.is_closed:
            await self._client.aclose()

    async def latest(self, *, query: str, size: int) -> list[dict[str, Any]]:
        """
        Latest-news search. Returns the raw `results` entries.

        Raises EvidenceUnavailable on any failure so callers have a single
        exception type to handle.
        """
        if not self.api_key:
            raise EvidenceUnavailable("NewsData API key is not configured")

        # Key goes in a header so it never appears in logged request URLs.
        headers = {"X-ACCESS-KEY": self.api_key}
        params = {
            "q": query,
            "language": self.language,
            "size": max(1, min(int(size), NEWSDATA_MAX_SIZE)),
        }

        async with self._sem:
            Trace.event("newsdata.request", {"url": NEWSDATA_LATEST_URL, "q": query, "size": params["size"]})
            try:
                r = await self._client.get(NEWSDATA_LATEST_URL, params=params, headers=headers)
            except httpx.HTTPError as e:
                logger.warning("[NewsData] Request failed: %s", type(e).__name__)
                raise EvidenceUnavailable(f"NewsData request failed: {type(e).__name__}") from e

            try:
                r.raise_for_status()
            except httpx.HTTPStatusError as e:
                if e.response is not None:
                    logger.warning(
                        "[NewsData] HTTP error %s. Response: %s",
                        e.response.status_code,
                        (e.response.text or "")[:300],
                    )
                raise EvidenceUnavailable(f"NewsData HTTP {r.status_code}") from e

            try:
                data = r.json()
            except ValueError as e:
                raise EvidenceUnavailable("NewsData returned invalid JSON") from e

        Trace.event("newsdata.response", {"status_code": r.status_code, "text": r.text})

        if not isinstance(data, dict):
            raise EvidenceUnavailable("NewsData payload is not an object")
        if str(data.get("status") or "").lower() == "error":
            raise EvidenceUnavailable(f"NewsData error: {data.get('results')}")

        results = data.get("results")
        if results is None:
            return []
        if not isinstance(results, list):
            raise EvidenceUnavailable("NewsData results is not a list")
        return [item for item in results if isinstance(item, dict)]
