"""WebSocket screens — one connection is one screen activation.

/ws/meteors  ranked feed + carousel; client sends prev / next / refresh / ping
/ws/iss      live ISS position, polled until the client disconnects
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from meteorwatch import iss, nasa
from meteorwatch.carousel import CarouselController, run_transition
from meteorwatch.config import get_settings
from meteorwatch.feed import MeteorFeed
from meteorwatch.models import CarouselState, PositionSnapshot, WSMessage, WSMessageType
from meteorwatch.poller import PositionPoller

logger = logging.getLogger(__name__)

router = APIRouter()

# Animation frame cadence pushed to the client (~60 fps)
FRAME_MS = 16.0


def _dump(msg_type: WSMessageType, data: Any = None) -> dict:
    return WSMessage(type=msg_type, data=data).model_dump(mode="json")


def _read_message(raw: str) -> dict:
    try:
        message = json.loads(raw)
    except ValueError:
        return {}
    return message if isinstance(message, dict) else {}


@router.websocket("/ws/meteors")
async def meteor_screen(ws: WebSocket):
    await ws.accept()
    settings = get_settings()
    feed = MeteorFeed(nasa.get_client().fetch_catalog, settings)
    carousel = CarouselController(
        duration_ms=settings.carousel_duration_ms,
        small_max=settings.threat_small_max,
        medium_max=settings.threat_medium_max,
    )
    animation: asyncio.Task | None = None
    logger.info("Meteor screen connected")

    async def send(msg_type: WSMessageType, data: Any = None) -> None:
        await ws.send_json(_dump(msg_type, data))

    async def push_carousel(state: CarouselState) -> None:
        await send(WSMessageType.CAROUSEL, state.model_dump(mode="json"))

    async def push_frame(state: CarouselState) -> None:
        # Runs in the animation task, nothing awaits its result
        try:
            await push_carousel(state)
        except Exception:
            logger.warning("Failed to send WS message")

    def stop_animation() -> None:
        if animation is not None and not animation.done():
            animation.cancel()

    async def refresh() -> None:
        await send(WSMessageType.FEED, feed.begin_refresh().model_dump(mode="json"))
        state = await feed.refresh()
        if state.error is None:
            stop_animation()
            carousel.load(feed.items)
        await send(WSMessageType.FEED, state.model_dump(mode="json"))
        if state.error:
            await send(WSMessageType.ERROR, state.error)
        await push_carousel(carousel.state())

    try:
        await refresh()
        while True:
            message = _read_message(await ws.receive_text())
            kind = message.get("type")

            if kind in ("prev", "next"):
                moved = carousel.prev() if kind == "prev" else carousel.next()
                if moved:
                    await push_carousel(carousel.state())
                    animation = asyncio.create_task(
                        run_transition(carousel, push_frame, frame_ms=FRAME_MS)
                    )

            elif kind == "refresh":
                await refresh()

            elif kind == "ping":
                await send(WSMessageType.PONG)

            else:
                await send(WSMessageType.ERROR, f"Unknown message type: {kind}")

    except WebSocketDisconnect:
        logger.info("Meteor screen disconnected")
    except Exception:
        logger.exception("Meteor screen error")
    finally:
        stop_animation()
        if animation is not None:
            await asyncio.gather(animation, return_exceptions=True)


@router.websocket("/ws/iss")
async def iss_screen(ws: WebSocket):
    await ws.accept()
    settings = get_settings()
    poller = PositionPoller(iss.get_client().fetch_position)
    logger.info("ISS screen connected")

    async def on_update(snapshot: PositionSnapshot) -> None:
        try:
            await ws.send_json(_dump(WSMessageType.POSITION, snapshot.model_dump(mode="json")))
        except Exception:
            logger.warning("Failed to send WS message")

    async def on_error(message: str) -> None:
        try:
            await ws.send_json(_dump(WSMessageType.ERROR, message))
        except Exception:
            logger.warning("Failed to send WS message")

    handle = poller.start(on_update, settings.iss_poll_interval_ms, on_error)
    try:
        while True:
            message = _read_message(await ws.receive_text())
            if message.get("type") == "ping":
                await ws.send_json(_dump(WSMessageType.PONG))
    except WebSocketDisconnect:
        logger.info("ISS screen disconnected")
    except Exception:
        logger.exception("ISS screen error")
    finally:
        handle.stop()
