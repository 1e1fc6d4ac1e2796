"""Data readiness - weighted checklist of which data layers a city publishes.

Four categories of named layers, each layer worth a fixed number of points
scaled by its status (available 1.0, partial 0.5, unavailable 0.0).
"""

from typing import Optional

from tqol.schemas.scores import CategoryScore, ReadinessScore
from tqol.scorers.city_registry import CityDataset, CityFacts, get_dataset

# (key, label, layers, points per layer)
READINESS_CATEGORIES: list[tuple[str, str, tuple[str, ...], float]] = [
    ("core", "Core Transit", ("altmo_traces", "bus_stops", "metro_stations"), 15),
    ("infra", "Infrastructure", ("walking_infra", "cycling_infra"), 15),
    ("freq", "Frequency & Ridership", ("metro_frequency", "bus_frequency", "metro_ridership"), 5),
    ("context", "Contextual", ("safety_data", "air_quality"), 5),
]

READINESS_MAX_SCORE = sum(len(layers) * points for _, _, layers, points in READINESS_CATEGORIES)


def score_readiness(facts: CityFacts) -> Optional[ReadinessScore]:
    """Score one city's readiness record; None when it has none."""
    if facts.readiness is None:
        return None

    categories = []
    for key, label, layers, points in READINESS_CATEGORIES:
        earned = sum(points * facts.layer_status(layer).multiplier for layer in layers)
        categories.append(CategoryScore(key=key, label=label, score=earned, max=len(layers) * points))

    return ReadinessScore(
        city_id=facts.city_id,
        total=sum(c.score for c in categories),
        max_score=READINESS_MAX_SCORE,
        categories=categories,
    )


def readiness_ratio(readiness: Optional[ReadinessScore]) -> float:
    """total / max_score, or 0 when there is no record or no maximum."""
    if readiness is None or readiness.max_score <= 0:
        return 0.0
    return readiness.total / readiness.max_score


def compute_readiness_score(city_id: str, dataset: Optional[CityDataset] = None) -> Optional[ReadinessScore]:
    facts = (dataset or get_dataset()).get(city_id)
    if facts is None:
        return None
    return score_readiness(facts)


def compute_all_readiness(dataset: Optional[CityDataset] = None) -> list[ReadinessScore]:
    """Readiness for every city with a record, highest total first."""
    dataset = dataset or get_dataset()
    scores = [s for s in (score_readiness(f) for f in dataset.cities.values()) if s is not None]
    return sorted(scores, key=lambda s: s.total, reverse=True)
