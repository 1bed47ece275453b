"""Meteor card carousel — navigation and slide-animation state machine.

Holds the ranked feed plus ``index`` / ``phase`` / ``pending_index`` and two
animation tracks:

    current card:   0          → -direction * width   (slides out)
    incoming card:  dir * width → 0                   (slides in)

Both tracks advance together from ``tick()``; when progress reaches 1 the
transition completes and the index moves. While a transition is in flight
``prev()`` / ``next()`` are ignored (not queued), so at most one slide ever
runs at a time.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from meteorwatch.config import CAROUSEL_DURATION_MS, THREAT_MEDIUM_MAX, THREAT_SMALL_MAX
from meteorwatch.models import (
    CardView,
    CardVisuals,
    CarouselState,
    NearEarthObject,
    Phase,
    SizeClass,
)

logger = logging.getLogger(__name__)

# Card backgrounds, picked by index % len
BACKGROUND_PALETTE = ("meteor_bg1.png", "meteor_bg2.png", "meteor_bg3.png")
SPEED_ANIMATION = "meteor_speed3.gif"

SIZE_PX = {
    SizeClass.SMALL: 100,
    SizeClass.MEDIUM: 150,
    SizeClass.LARGE: 200,
}

ChangeCallback = Callable[[CarouselState], None] | None


def size_class_for(
    threat_score: float,
    small_max: float = THREAT_SMALL_MAX,
    medium_max: float = THREAT_MEDIUM_MAX,
) -> SizeClass:
    if threat_score <= small_max:
        return SizeClass.SMALL
    if threat_score <= medium_max:
        return SizeClass.MEDIUM
    return SizeClass.LARGE


def visuals_for(
    meteor: NearEarthObject,
    index: int,
    palette: Sequence[str] = BACKGROUND_PALETTE,
    small_max: float = THREAT_SMALL_MAX,
    medium_max: float = THREAT_MEDIUM_MAX,
) -> CardVisuals:
    """Background by position, visual size by threat score."""
    size_class = size_class_for(meteor.threat_score, small_max, medium_max)
    return CardVisuals(
        background=palette[index % len(palette)],
        animation=SPEED_ANIMATION,
        size_class=size_class,
        size=SIZE_PX[size_class],
    )


def _fmt(value: object) -> str:
    return "N/A" if value is None else str(value)


def card_lines(meteor: NearEarthObject) -> list[str]:
    """Detail rows shown under the card title."""
    return [
        f"Closest to Earth – {_fmt(meteor.close_approach_date)}",
        f"Minimum Diameter (KM) – {_fmt(meteor.diameter_min_km)}",
        f"Maximum Diameter (KM) – {_fmt(meteor.diameter_max_km)}",
        f"Velocity (KM/H) – {_fmt(meteor.relative_velocity_kph)}",
        f"Missing Earth by (KM) – {_fmt(meteor.miss_distance_km)}",
    ]


def build_card(
    meteor: NearEarthObject,
    index: int,
    palette: Sequence[str] = BACKGROUND_PALETTE,
    small_max: float = THREAT_SMALL_MAX,
    medium_max: float = THREAT_MEDIUM_MAX,
) -> CardView:
    return CardView(
        index=index,
        title=meteor.name,
        lines=card_lines(meteor),
        visuals=visuals_for(meteor, index, palette, small_max, medium_max),
        meteor=meteor,
    )


@dataclass
class Track:
    """One animated horizontal offset, linearly interpolated."""

    start: float = 0.0
    end: float = 0.0
    value: float = 0.0

    def set(self, value: float) -> None:
        self.start = self.end = self.value = value

    def aim(self, start: float, end: float) -> None:
        self.start, self.end, self.value = start, end, start

    def at(self, progress: float) -> None:
        self.value = self.start + (self.end - self.start) * progress


class CarouselController:
    """Owns CarouselState. Only prev/next/tick/complete/load mutate it."""

    def __init__(
        self,
        items: Sequence[NearEarthObject] = (),
        *,
        width: float = 1.0,
        duration_ms: float = CAROUSEL_DURATION_MS,
        palette: Sequence[str] = BACKGROUND_PALETTE,
        small_max: float = THREAT_SMALL_MAX,
        medium_max: float = THREAT_MEDIUM_MAX,
        on_change: ChangeCallback = None,
    ):
        if duration_ms <= 0:
            raise ValueError("duration_ms must be positive")
        if not palette:
            raise ValueError("palette must not be empty")
        self.width = width
        self.duration_ms = float(duration_ms)
        self.palette = tuple(palette)
        self.small_max = small_max
        self.medium_max = medium_max
        self.on_change = on_change

        self.current = Track()
        self.incoming = Track()
        self.items: tuple[NearEarthObject, ...] = ()
        self.index = 0
        self.phase = Phase.IDLE
        self.pending_index: int | None = None
        self._elapsed_ms = 0.0
        self.load(items)

    # --- data ---

    def load(self, items: Sequence[NearEarthObject]) -> None:
        """Swap in a freshly ranked feed and rewind to the first card."""
        self.items = tuple(items)
        self.index = 0
        self.phase = Phase.IDLE
        self.pending_index = None
        self._elapsed_ms = 0.0
        self._rest_tracks()

    # --- navigation ---

    @property
    def animating(self) -> bool:
        return self.phase is Phase.ANIMATING

    @property
    def can_prev(self) -> bool:
        return not self.animating and self.index > 0

    @property
    def can_next(self) -> bool:
        return not self.animating and self.index < len(self.items) - 1

    def prev(self) -> bool:
        if not self.can_prev:
            return False
        return self._start_slide(-1, self.index - 1)

    def next(self) -> bool:
        if not self.can_next:
            return False
        return self._start_slide(1, self.index + 1)

    def _start_slide(self, direction: int, target: int) -> bool:
        if self.animating:
            return False
        self.phase = Phase.ANIMATING
        self.pending_index = target
        self._elapsed_ms = 0.0
        self.current.aim(0.0, -direction * self.width)
        self.incoming.aim(direction * self.width, 0.0)
        logger.debug("Slide %d → %d", self.index, target)
        self._emit()
        return True

    # --- animation ---

    @property
    def progress(self) -> float:
        if not self.animating:
            return 0.0
        return min(1.0, self._elapsed_ms / self.duration_ms)

    def tick(self, dt_ms: float) -> bool:
        """Advance both tracks by ``dt_ms``. Returns True when this tick finished the slide."""
        if not self.animating:
            return False
        self._elapsed_ms += max(dt_ms, 0.0)
        p = self.progress
        self.current.at(p)
        self.incoming.at(p)
        if p >= 1.0:
            return self.complete()
        self._emit()
        return False

    def complete(self) -> bool:
        """Settle the in-flight slide. A second call is a no-op and returns False."""
        if not self.animating or self.pending_index is None:
            return False
        self.index = self.pending_index
        self.phase = Phase.IDLE
        self.pending_index = None
        self._elapsed_ms = 0.0
        self._rest_tracks()
        self._emit()
        return True

    def _rest_tracks(self) -> None:
        self.current.set(0.0)
        self.incoming.set(self.width)

    # --- presentation ---

    def card_for(self, index: int) -> CardView | None:
        if not 0 <= index < len(self.items):
            return None
        return build_card(self.items[index], index, self.palette, self.small_max, self.medium_max)

    def dots(self) -> list[bool]:
        return [i == self.index for i in range(len(self.items))]

    def state(self) -> CarouselState:
        return CarouselState(
            index=self.index,
            phase=self.phase,
            pending_index=self.pending_index,
            count=len(self.items),
            current_offset=self.current.value,
            incoming_offset=self.incoming.value,
            progress=self.progress,
            can_prev=self.can_prev,
            can_next=self.can_next,
            dots=self.dots(),
            current=self.card_for(self.index),
            incoming=self.card_for(self.pending_index) if self.pending_index is not None else None,
        )

    def _emit(self) -> None:
        if self.on_change:
            self.on_change(self.state())


FrameCallback = Callable[[CarouselState], Awaitable[None]]


async def run_transition(
    controller: CarouselController,
    on_frame: FrameCallback,
    *,
    frame_ms: float = 16.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Drive the in-flight slide in real time, pushing a frame per tick."""
    while controller.animating:
        await sleep(frame_ms / 1000)
        controller.tick(frame_ms)
        await on_frame(controller.state())
