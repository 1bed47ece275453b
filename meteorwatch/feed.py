"""Meteor feed service — owns the loading flag and feed status around the normalizer.

Every refresh rebuilds the ranked feed from scratch. A failed fetch keeps the
previous items and records the error; an empty catalog is its own status so
presentation can tell "no data" apart from "still loading".
"""

from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable

from meteorwatch.carousel import build_card
from meteorwatch.config import Settings, get_settings
from meteorwatch.errors import EmptyCatalog, FetchFailure
from meteorwatch.models import CardView, FeedState, FeedStatus, NearEarthObject
from meteorwatch.normalizer import normalize

logger = logging.getLogger(__name__)

CatalogFetch = Callable[[], Awaitable[Any]]


class MeteorFeed:
    def __init__(self, fetch_catalog: CatalogFetch, settings: Settings | None = None):
        self._fetch_catalog = fetch_catalog
        self.settings = settings or get_settings()
        self.items: list[NearEarthObject] = []
        self.status = FeedStatus.LOADING
        self.loading = True
        self.error: str | None = None
        self.refreshed_at: float | None = None

    def _rank(self, raw: Any) -> list[NearEarthObject]:
        ranked = normalize(
            raw,
            limit=self.settings.feed_limit,
            scaling_constant=self.settings.threat_scaling_constant,
        )
        if not ranked:
            raise EmptyCatalog("no usable near-Earth objects in catalog")
        return ranked

    def begin_refresh(self) -> FeedState:
        """Mark a fetch as in flight. Items from the last refresh stay visible."""
        self.loading = True
        self.status = FeedStatus.LOADING
        return self.snapshot()

    async def refresh(self) -> FeedState:
        """Fetch, normalize and swap in a new ranked feed."""
        self.begin_refresh()
        try:
            raw = await self._fetch_catalog()
            self.items = self._rank(raw)
            self.status = FeedStatus.READY
            self.error = None
            logger.info("Meteor feed refreshed: %d objects", len(self.items))
        except EmptyCatalog as exc:
            self.items = []
            self.status = FeedStatus.EMPTY
            self.error = None
            logger.info("Meteor feed empty: %s", exc)
        except FetchFailure as exc:
            # Keep whatever we had before
            self.status = FeedStatus.READY if self.items else FeedStatus.ERROR
            self.error = exc.message
            logger.warning("Meteor fetch error: %s", exc)
        finally:
            self.loading = False
            self.refreshed_at = time.time()
        return self.snapshot()

    def cards(self) -> list[CardView]:
        s = self.settings
        return [
            build_card(meteor, i, small_max=s.threat_small_max, medium_max=s.threat_medium_max)
            for i, meteor in enumerate(self.items)
        ]

    def snapshot(self) -> FeedState:
        return FeedState(
            status=self.status,
            loading=self.loading,
            items=list(self.items),
            cards=self.cards(),
            error=self.error,
        )
