"""wheretheiss.at client — live ISS position telemetry."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from meteorwatch.config import Settings, get_settings
from meteorwatch.errors import FetchFailure
from meteorwatch.models import PositionSnapshot
from meteorwatch.normalizer import to_float

logger = logging.getLogger(__name__)

SOURCE = "wheretheiss"


def to_snapshot(payload: Any) -> PositionSnapshot:
    """Convert a wheretheiss.at satellite record into a PositionSnapshot.

    Missing or non-numeric fields come through as None rather than failing.
    """
    if not isinstance(payload, Mapping):
        raise FetchFailure(SOURCE, "unexpected payload shape")
    timestamp = to_float(payload.get("timestamp"))
    visibility = payload.get("visibility")
    return PositionSnapshot(
        latitude=to_float(payload.get("latitude")),
        longitude=to_float(payload.get("longitude")),
        altitude=to_float(payload.get("altitude")),
        velocity=to_float(payload.get("velocity")),
        timestamp=int(timestamp) if timestamp is not None else None,
        visibility=str(visibility) if visibility is not None else None,
    )


class IssClient:
    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        self.settings = settings or get_settings()
        self._client = client or httpx.AsyncClient(
            timeout=self.settings.http_timeout_s,
            follow_redirects=True,
        )

    async def fetch_position(self) -> PositionSnapshot:
        try:
            resp = await self._client.get(self.settings.iss_position_url)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as exc:
            raise FetchFailure(SOURCE, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise FetchFailure(SOURCE, str(exc) or type(exc).__name__) from exc
        except ValueError as exc:
            raise FetchFailure(SOURCE, f"invalid JSON: {exc}") from exc
        return to_snapshot(payload)


# Singleton
_client: IssClient | None = None


def get_client() -> IssClient:
    global _client
    if _client is None:
        _client = IssClient()
    return _client
