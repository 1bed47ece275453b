from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# --- Near-Earth object catalog ---

class NearEarthObject(BaseModel):
    """One normalized NeoWs catalog entry. Built once per normalizer run."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    diameter_min_km: float
    diameter_max_km: float
    close_approach_date: str | None = None
    relative_velocity_kph: float | None = None
    miss_distance_km: float | None = Field(default=None, description="None sorts last")
    threat_score: float = Field(ge=0, description="(avg diameter / miss distance) x scaling constant")
    is_potentially_hazardous: bool = False
    nasa_jpl_url: str | None = None


# --- ISS position ---

class PositionSnapshot(BaseModel):
    """Latest ISS telemetry. Replaced wholesale on every successful poll."""

    model_config = ConfigDict(frozen=True)

    latitude: float | None = None
    longitude: float | None = None
    altitude: float | None = Field(default=None, description="km")
    velocity: float | None = Field(default=None, description="km/h")
    timestamp: int | None = None
    visibility: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.latitude is None and self.longitude is None


# --- Carousel ---

class Phase(str, Enum):
    IDLE = "idle"
    ANIMATING = "animating"


class SizeClass(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class CardVisuals(BaseModel):
    background: str
    animation: str
    size_class: SizeClass
    size: int


class CardView(BaseModel):
    index: int
    title: str
    lines: list[str] = []
    visuals: CardVisuals
    meteor: NearEarthObject


class CarouselState(BaseModel):
    index: int = 0
    phase: Phase = Phase.IDLE
    pending_index: int | None = None
    count: int = 0
    current_offset: float = 0.0
    incoming_offset: float = 0.0
    progress: float = 0.0
    can_prev: bool = False
    can_next: bool = False
    dots: list[bool] = []
    current: CardView | None = None
    incoming: CardView | None = None


# --- Feed status ---

class FeedStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"
    ERROR = "error"


class FeedState(BaseModel):
    status: FeedStatus = FeedStatus.LOADING
    loading: bool = True
    items: list[NearEarthObject] = []
    cards: list[CardView] = []
    error: str | None = None


# --- WebSocket message ---

class WSMessageType(str, Enum):
    FEED = "feed"
    CAROUSEL = "carousel"
    POSITION = "position"
    ERROR = "error"
    PONG = "pong"


class WSMessage(BaseModel):
    type: WSMessageType
    data: Any = None


# --- API responses ---

class HealthResponse(BaseModel):
    status: str = "ok"
