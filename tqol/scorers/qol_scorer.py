"""
Transport QoL Scorer - dimension aggregation and composite grading.

For each dimension, every indicator value is resolved (override, else
baseline, else missing), normalized against its benchmark, and averaged.
Missing indicators count as 0 in the mean: a city that does not measure an
indicator is scored as if it performed worst-case, never average-case.

    composite = sum(dimension.score * dimension.weight)

The grade is the first boundary (high to low) whose min <= composite.
"""

import logging
from typing import Mapping, Optional

from tqol.schemas.scores import CityQoLScore, DimensionScore, NormalizedIndicator
from tqol.scorers.city_registry import CityDataset, get_dataset
from tqol.scorers.confidence import ConfidenceEstimator
from tqol.scorers.framework_registry import Dimension, QoLFramework, get_framework
from tqol.scorers.normalizer import normalize
from tqol.scorers.overrides import resolve_value
from tqol.utils.scoring_audit import ScoringAuditLog

logger = logging.getLogger(__name__)

Overrides = Mapping[str, Mapping[str, Optional[float]]]


class QoLScorer:
    """Scores cities against a framework and baseline dataset."""

    def __init__(
        self,
        framework: Optional[QoLFramework] = None,
        dataset: Optional[CityDataset] = None,
        audit_log: Optional[ScoringAuditLog] = None,
    ):
        self.framework = framework or get_framework()
        self.dataset = dataset or get_dataset()
        self.audit_log = audit_log
        self.confidence = ConfidenceEstimator(self.framework, self.dataset)

    def _score_dimension(
        self,
        city_id: str,
        dim: Dimension,
        baseline: Mapping[str, Optional[float]],
        overrides: Optional[Overrides],
    ) -> DimensionScore:
        indicators = []
        for ind in dim.indicators:
            value = resolve_value(city_id, ind.key, baseline, overrides)
            normalized = None
            if value is not None:
                normalized = normalize(ind.key, value, ind.effect, self.framework.benchmarks)

            if self.audit_log is not None:
                overridden = bool(overrides) and overrides.get(city_id, {}).get(ind.key) is not None
                self.audit_log.log_value(
                    city_id, ind.key, value, baseline.get(ind.key), overridden, scorer=type(self).__name__
                )

            indicators.append(
                NormalizedIndicator(key=ind.key, label=ind.label, unit=ind.unit, value=value, normalized=normalized)
            )

        available = sum(1 for i in indicators if i.normalized is not None)
        # Guard: a dimension without indicators scores 0
        score = sum(i.normalized or 0.0 for i in indicators) / len(indicators) if indicators else 0.0

        return DimensionScore(
            key=dim.key,
            label=dim.label,
            weight=dim.weight,
            score=score,
            weighted=score * dim.weight,
            available_count=available,
            total_count=len(indicators),
            indicators=indicators,
        )

    def compute_city_qol(self, city_id: str, overrides: Optional[Overrides] = None) -> Optional[CityQoLScore]:
        """Score one city.

        Args:
            city_id: City slug
            overrides: Live or simulated values shadowing the baseline

        Returns:
            CityQoLScore, or None if the city has no baseline record
        """
        facts = self.dataset.get(city_id)
        if facts is None:
            logger.debug(f"No baseline record for city {city_id}")
            return None

        dimensions = [self._score_dimension(city_id, dim, facts.values, overrides) for dim in self.framework.dimensions]

        composite = sum(d.weighted for d in dimensions)
        composite = max(0.0, min(1.0, composite))
        grade = self.framework.grade_for(composite)
        available = sum(d.available_count for d in dimensions)

        breakdown = self.confidence.compute_confidence(city_id, available, overrides)

        logger.debug(f"QoL for {city_id}: composite={composite:.4f} grade={grade} available={available}")
        return CityQoLScore(
            city_id=city_id,
            composite=composite,
            grade=grade,
            dimensions=dimensions,
            confidence=breakdown.tier,
            confidence_breakdown=breakdown,
            indicators_available=available,
            indicators_total=self.framework.full_framework_size,
        )

    def compute_all_qol(self, overrides: Optional[Overrides] = None) -> list[CityQoLScore]:
        """Score every city, highest composite first."""
        scores = [self.compute_city_qol(city_id, overrides) for city_id in self.dataset.city_ids()]
        return sorted((s for s in scores if s is not None), key=lambda s: s.composite, reverse=True)


def compute_city_qol(city_id: str, overrides: Optional[Overrides] = None) -> Optional[CityQoLScore]:
    """Score one city against the shipped configuration."""
    return QoLScorer().compute_city_qol(city_id, overrides)


def compute_all_qol(overrides: Optional[Overrides] = None) -> list[CityQoLScore]:
    """Score every shipped city, highest composite first."""
    return QoLScorer().compute_all_qol(overrides)
