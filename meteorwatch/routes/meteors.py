"""REST endpoints for the ranked meteor feed: /api/meteors, /api/meteors/refresh."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from meteorwatch import nasa
from meteorwatch.feed import MeteorFeed
from meteorwatch.models import FeedState

logger = logging.getLogger(__name__)

router = APIRouter()

# Shared feed for REST reads; WebSocket screens build their own
_feed: MeteorFeed | None = None


async def _fetch_catalog() -> dict:
    return await nasa.get_client().fetch_catalog()


def get_feed() -> MeteorFeed:
    global _feed
    if _feed is None:
        _feed = MeteorFeed(_fetch_catalog)
    return _feed


def reset_feed() -> None:
    global _feed
    _feed = None


@router.get("/api/meteors", response_model=FeedState)
async def get_meteors():
    feed = get_feed()
    if feed.refreshed_at is None:
        return await feed.refresh()
    return feed.snapshot()


@router.post("/api/meteors/refresh", response_model=FeedState)
async def refresh_meteors():
    return await get_feed().refresh()
