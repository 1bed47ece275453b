"""NeoWs feed normalizer — raw date-grouped catalog → ranked list of NearEarthObject.

Pipeline:
1. Flatten the per-date groups (date order, then in-group order)
2. Parse each entry and compute its threat score; entries without usable
   diameters are dropped instead of scoring NaN
3. Stable sort by miss distance, entries without one go last
4. Keep the first ``limit`` entries

Pure functions only — no I/O, no module state.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterator, Mapping

from meteorwatch.config import FEED_LIMIT, THREAT_SCALING_CONSTANT
from meteorwatch.errors import MalformedItem
from meteorwatch.models import NearEarthObject

logger = logging.getLogger(__name__)

# Divisor used when the miss distance is missing (and the floor for tiny ones)
MISS_DISTANCE_FALLBACK_KM = 1.0


def to_float(value: Any) -> float | None:
    """Parse a NeoWs numeric field (often a string). None if unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def _first_approach(item: Mapping[str, Any]) -> Mapping[str, Any]:
    approaches = item.get("close_approach_data")
    if isinstance(approaches, list) and approaches and isinstance(approaches[0], Mapping):
        return approaches[0]
    return {}


def _nested(obj: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if not isinstance(obj, Mapping):
            return None
        obj = obj.get(key)
    return obj


def score(
    diameter_min_km: float,
    diameter_max_km: float,
    miss_distance_km: float | None,
    scaling_constant: float = THREAT_SCALING_CONSTANT,
) -> float:
    """Threat score = (average diameter / miss distance) x scaling constant.

    A missing miss distance divides by 1 km, so the score reduces to
    ``avg_diameter * scaling_constant``.
    """
    avg_diameter = (diameter_min_km + diameter_max_km) / 2
    if miss_distance_km is None:
        divisor = MISS_DISTANCE_FALLBACK_KM
    else:
        divisor = max(miss_distance_km, MISS_DISTANCE_FALLBACK_KM)
    return (avg_diameter / divisor) * scaling_constant


def parse_item(
    item: Any,
    scaling_constant: float = THREAT_SCALING_CONSTANT,
) -> NearEarthObject:
    """Validate one raw catalog entry.

    Raises:
        MalformedItem: if the entry is not a mapping or its diameters are
            missing, non-numeric or negative.
    """
    if not isinstance(item, Mapping):
        raise MalformedItem(f"catalog entry is not an object: {type(item).__name__}")

    diameters = _nested(item, "estimated_diameter", "kilometers") or {}
    d_min = to_float(_nested(diameters, "estimated_diameter_min"))
    d_max = to_float(_nested(diameters, "estimated_diameter_max"))
    if d_min is None or d_max is None or d_min < 0 or d_max < 0:
        raise MalformedItem(f"{item.get('name', '?')}: missing or invalid estimated diameter")

    approach = _first_approach(item)
    miss_km = to_float(_nested(approach, "miss_distance", "kilometers"))
    if miss_km is not None and miss_km < 0:
        miss_km = None
    velocity_kph = to_float(_nested(approach, "relative_velocity", "kilometers_per_hour"))

    date_full = approach.get("close_approach_date_full") or approach.get("close_approach_date")
    name = item.get("name")
    neo_id = item.get("id") or item.get("neo_reference_id") or name

    return NearEarthObject(
        id=str(neo_id) if neo_id is not None else "",
        name=str(name) if name is not None else "Unknown object",
        diameter_min_km=d_min,
        diameter_max_km=d_max,
        close_approach_date=str(date_full) if date_full else None,
        relative_velocity_kph=velocity_kph,
        miss_distance_km=miss_km,
        threat_score=score(d_min, d_max, miss_km, scaling_constant),
        is_potentially_hazardous=bool(item.get("is_potentially_hazardous_asteroid", False)),
        nasa_jpl_url=item.get("nasa_jpl_url"),
    )


def flatten(raw: Mapping[str, Any]) -> Iterator[Any]:
    """Yield raw entries in date-group order, then within-group order."""
    for date_key, group in raw.items():
        if not isinstance(group, list):
            logger.debug("Skipping non-list catalog group %r", date_key)
            continue
        yield from group


def extract_catalog(payload: Any) -> dict[str, Any]:
    """Pull the date-grouped ``near_earth_objects`` mapping out of a feed response."""
    if not isinstance(payload, Mapping):
        return {}
    catalog = payload.get("near_earth_objects")
    return dict(catalog) if isinstance(catalog, Mapping) else {}


def _miss_key(neo: NearEarthObject) -> tuple[bool, float]:
    if neo.miss_distance_km is None:
        return (True, 0.0)
    return (False, neo.miss_distance_km)


def normalize(
    raw: Any,
    *,
    limit: int = FEED_LIMIT,
    scaling_constant: float = THREAT_SCALING_CONSTANT,
) -> list[NearEarthObject]:
    """Flatten, score, rank by closest approach and truncate a raw catalog.

    Returns an empty list for an absent or non-mapping catalog; the caller
    owns the ``loading`` flag that tells that apart from a fetch in flight.
    """
    if not (math.isfinite(scaling_constant) and scaling_constant >= 0):
        raise ValueError(f"scaling_constant must be a non-negative number, got {scaling_constant!r}")
    if not isinstance(raw, Mapping):
        return []

    parsed: list[NearEarthObject] = []
    dropped = 0
    for item in flatten(raw):
        try:
            parsed.append(parse_item(item, scaling_constant))
        except MalformedItem as exc:
            dropped += 1
            logger.debug("Dropping catalog entry: %s", exc)

    if dropped:
        logger.info("Dropped %d malformed catalog entries", dropped)

    # sorted() is stable, so ties and the missing-distance tail keep feed order
    ranked = sorted(parsed, key=_miss_key)
    return ranked[: max(limit, 0)]
