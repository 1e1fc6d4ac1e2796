"""Confidence Estimator - how complete and current a city's underlying data is.

Independent of the QoL score itself. Six factors, each 0-100:

    indicator_coverage   0.15  measured indicators / full framework size
    live_data_freshness  0.25  live overrides / measured indicators
    sensor_coverage      0.10  PM2.5 + NO2 sensors, saturating at 10
    transit_data_quality 0.20  transit source checklist out of 20
    data_readiness       0.20  readiness total / max score
    altmo_traces         0.10  100 available, 50 partial, else 0

The score weights the unrounded factors and rounds once; the factors are
reported rounded to whole numbers.

Tiers: gold >= 70, silver >= 45, bronze below.
"""

import logging
import math
from typing import Mapping, Optional

from tqol.constants import (
    ALTMO_TRACES_LAYER,
    CONFIDENCE_WEIGHTS,
    GOLD_TIER_THRESHOLD,
    METRO_RIDERSHIP_LAYER,
    SENSOR_SATURATION_COUNT,
    SILVER_TIER_THRESHOLD,
    TRANSIT_BUS_SOURCE_POINTS,
    TRANSIT_MAX_POINTS,
    TRANSIT_METRO_SOURCE_POINTS,
    TRANSIT_OPERATIONAL_LINES_POINTS,
    TRANSIT_RIDERSHIP_POINTS,
    TRANSIT_SUBURBAN_RAIL_POINTS,
)
from tqol.schemas.common import ConfidenceTier, DataStatus
from tqol.schemas.scores import ConfidenceBreakdown, ConfidenceFactors
from tqol.scorers.city_registry import CityDataset, CityFacts, get_dataset
from tqol.scorers.framework_registry import QoLFramework, get_framework
from tqol.scorers.overrides import live_keys
from tqol.scorers.readiness import readiness_ratio, score_readiness

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negative input."""
    return int(math.floor(value + 0.5))


def tier_for_score(score: int) -> ConfidenceTier:
    if score >= GOLD_TIER_THRESHOLD:
        return ConfidenceTier.GOLD
    if score >= SILVER_TIER_THRESHOLD:
        return ConfidenceTier.SILVER
    return ConfidenceTier.BRONZE


def _percent(numerator: float, denominator: float) -> float:
    if denominator <= 0:
        return 0.0
    return max(0.0, min(100.0, numerator / denominator * 100))


def transit_points(facts: CityFacts) -> int:
    """Transit source checklist, out of TRANSIT_MAX_POINTS."""
    points = TRANSIT_BUS_SOURCE_POINTS.get(facts.transit.bus, 0)
    points += TRANSIT_METRO_SOURCE_POINTS.get(facts.transit.metro, 0)
    if facts.transit.suburban_rail:
        points += TRANSIT_SUBURBAN_RAIL_POINTS
    if facts.transit.operational_lines:
        points += TRANSIT_OPERATIONAL_LINES_POINTS
    points += TRANSIT_RIDERSHIP_POINTS[facts.layer_status(METRO_RIDERSHIP_LAYER).value]
    return points


class ConfidenceEstimator:
    """Computes the data-confidence breakdown for a city."""

    def __init__(self, framework: Optional[QoLFramework] = None, dataset: Optional[CityDataset] = None):
        self.framework = framework or get_framework()
        self.dataset = dataset or get_dataset()

    def compute_confidence(
        self,
        city_id: str,
        indicators_available: int,
        overrides: Optional[Mapping[str, Mapping[str, Optional[float]]]] = None,
    ) -> ConfidenceBreakdown:
        """Compute the six confidence factors and their weighted score.

        A city without external facts scores 0 on every fact-based factor.

        Args:
            city_id: City slug
            indicators_available: Measured indicators from the QoL computation
            overrides: Overrides in effect for the QoL computation

        Returns:
            ConfidenceBreakdown with tier, rounded score and factors
        """
        facts = self.dataset.get(city_id)

        framework_keys = set(self.framework.indicator_keys)
        live_count = min(len(live_keys(city_id, overrides) & framework_keys), indicators_available)

        if facts is not None:
            sensors = min(facts.pm25_sensors + facts.no2_sensors, SENSOR_SATURATION_COUNT)
            transit = transit_points(facts)
            ready = readiness_ratio(score_readiness(facts))
            traces_status = facts.layer_status(ALTMO_TRACES_LAYER)
        else:
            sensors, transit, ready = 0, 0, 0.0
            traces_status = DataStatus.UNAVAILABLE

        raw = {
            "indicator_coverage": _percent(indicators_available, self.framework.full_framework_size),
            "live_data_freshness": _percent(live_count, indicators_available),
            "sensor_coverage": _percent(sensors, SENSOR_SATURATION_COUNT),
            "transit_data_quality": _percent(transit, TRANSIT_MAX_POINTS),
            "data_readiness": max(0.0, min(100.0, ready * 100)),
            "altmo_traces": traces_status.multiplier * 100,
        }
        factors = ConfidenceFactors(**{name: round_half_up(value) for name, value in raw.items()})

        weighted = sum(raw[name] * weight for name, weight in CONFIDENCE_WEIGHTS.items())
        score = max(0, min(100, round_half_up(weighted)))
        tier = tier_for_score(score)

        logger.debug(f"Confidence for {city_id}: {score} ({tier.value}) [{factors.model_dump()}]")
        return ConfidenceBreakdown(tier=tier, score=score, factors=factors)


def compute_confidence(
    city_id: str,
    indicators_available: int,
    overrides: Optional[Mapping[str, Mapping[str, Optional[float]]]] = None,
) -> ConfidenceBreakdown:
    """Confidence breakdown against the shipped configuration."""
    return ConfidenceEstimator().compute_confidence(city_id, indicators_available, overrides)
