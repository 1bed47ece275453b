import pytest

from meteorwatch.models import NearEarthObject


def raw_neo(name, d_min=0.1, d_max=0.3, miss_km="1000", velocity="45000.5", date="2025-Jan-01 12:00"):
    """Build a NeoWs-shaped feed entry. Pass miss_km=None to omit the miss distance."""
    approach = {
        "close_approach_date_full": date,
        "relative_velocity": {"kilometers_per_hour": velocity},
    }
    if miss_km is not None:
        approach["miss_distance"] = {"kilometers": miss_km}
    return {
        "id": f"id-{name}",
        "name": name,
        "estimated_diameter": {
            "kilometers": {
                "estimated_diameter_min": d_min,
                "estimated_diameter_max": d_max,
            }
        },
        "close_approach_data": [approach],
    }


def make_neo(name, threat_score=10.0, miss_km=1000.0):
    return NearEarthObject(
        id=f"id-{name}",
        name=name,
        diameter_min_km=0.1,
        diameter_max_km=0.3,
        miss_distance_km=miss_km,
        threat_score=threat_score,
    )


@pytest.fixture
def example_catalog():
    return {
        "2025-01-01": [
            raw_neo("A", miss_km="1000"),
            raw_neo("B", miss_km="500"),
        ]
    }


@pytest.fixture
def five_neos():
    return [make_neo(name) for name in "ABCDE"]
