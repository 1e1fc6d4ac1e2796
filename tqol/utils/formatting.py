"""Display helpers shared by the CLI and any reporting layer."""

import math
from typing import Optional

from tqol.schemas.common import ConfidenceTier
from tqol.schemas.scores import ConfidenceBreakdown
from tqol.scorers.city_registry import CityDataset, get_dataset
from tqol.scorers.framework_registry import QoLFramework, get_framework

MISSING_VALUE = "n/a"

CONFIDENCE_FACTOR_LABELS = [
    ("indicator_coverage", "Indicator coverage"),
    ("live_data_freshness", "Live data freshness"),
    ("sensor_coverage", "Sensor coverage"),
    ("transit_data_quality", "Transit data quality"),
    ("data_readiness", "Data readiness"),
    ("altmo_traces", "Altmo traces"),
]


def city_name(city_id: str, dataset: Optional[CityDataset] = None) -> str:
    facts = (dataset or get_dataset()).get(city_id)
    return facts.name if facts else city_id


def city_region_subtitle(city_id: str, dataset: Optional[CityDataset] = None) -> Optional[str]:
    """Member cities of a region, or None for standalone cities."""
    facts = (dataset or get_dataset()).get(city_id)
    return facts.region_cities if facts else None


def fmt_indicator_value(value: Optional[float], unit: str) -> str:
    if value is None:
        return MISSING_VALUE
    if float(value).is_integer():
        return f"{int(value)} {unit}"
    return f"{value:.1f} {unit}"


def bar_percent(score: float, max_value: float = 1.0) -> float:
    """Score as a 0-100 bar width."""
    if max_value <= 0:
        return 0.0
    return max(0.0, min(100.0, score / max_value * 100))


def gap_to_next_grade(composite: float, framework: Optional[QoLFramework] = None) -> Optional[dict]:
    """Points (0-100 scale) a city needs for the next grade; None at the top grade."""
    framework = framework or get_framework()
    next_boundary = framework.next_boundary(framework.grade_for(composite))
    if next_boundary is None:
        return None
    needed = math.ceil(round(next_boundary.min * 100 - composite * 100, 6))
    return {"grade": next_boundary.grade, "points_needed": max(1, needed)}


def grade_label(grade: str, framework: Optional[QoLFramework] = None) -> str:
    """Descriptive label for a grade (e.g. 'B' -> 'Moderate positive')."""
    boundary = (framework or get_framework()).boundary(grade)
    return boundary.label if boundary and boundary.label else grade


def dimension_rank_label(rank: int, total: int) -> str:
    if rank == 1:
        return "Best"
    if rank == total:
        return "Worst"
    suffix = "nd" if rank == 2 else "rd" if rank == 3 else "th"
    return f"{rank}{suffix}"


def confidence_label(tier: ConfidenceTier) -> str:
    return tier.value.capitalize()


def confidence_tooltip_lines(breakdown: ConfidenceBreakdown) -> list[dict]:
    """Factor label/score pairs in display order."""
    return [{"label": label, "score": getattr(breakdown.factors, key)} for key, label in CONFIDENCE_FACTOR_LABELS]
