"""NASA NeoWs client — fetches the date-grouped near-Earth object feed."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from meteorwatch.config import Settings, get_settings
from meteorwatch.errors import FetchFailure
from meteorwatch.normalizer import extract_catalog

logger = logging.getLogger(__name__)

SOURCE = "neows"


class NeoFeedClient:
    """Async NeoWs feed client. The API key comes from NASA_API_KEY."""

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        self.settings = settings or get_settings()
        self._client = client or httpx.AsyncClient(
            timeout=self.settings.http_timeout_s,
            follow_redirects=True,
        )

    async def _query(self, params: dict[str, str]) -> Any:
        try:
            resp = await self._client.get(self.settings.neo_feed_url, params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            raise FetchFailure(SOURCE, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise FetchFailure(SOURCE, str(exc) or type(exc).__name__) from exc
        except ValueError as exc:
            raise FetchFailure(SOURCE, f"invalid JSON: {exc}") from exc

    async def fetch_feed(self, start_date: str | None = None, end_date: str | None = None) -> Any:
        """Raw feed response. Without dates NeoWs returns the next 7 days."""
        params = {"api_key": self.settings.nasa_api_key}
        if start_date:
            params["start_date"] = start_date
        if end_date:
            params["end_date"] = end_date
        logger.info("Fetching NeoWs feed (start=%s end=%s)", start_date, end_date)
        return await self._query(params)

    async def fetch_catalog(self, start_date: str | None = None, end_date: str | None = None) -> dict[str, Any]:
        """The ``near_earth_objects`` mapping of date → raw entries."""
        payload = await self.fetch_feed(start_date, end_date)
        catalog = extract_catalog(payload)
        logger.info(
            "NeoWs feed: %d days, %d objects",
            len(catalog),
            sum(len(v) for v in catalog.values() if isinstance(v, list)),
        )
        return catalog


# Singleton
_client: NeoFeedClient | None = None


def get_client() -> NeoFeedClient:
    global _client
    if _client is None:
        _client = NeoFeedClient()
    return _client
