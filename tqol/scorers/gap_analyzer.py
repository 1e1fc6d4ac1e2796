"""
Gap Analyzer - a city's weakest area and what it takes to reach the next grade.

Gap sentences and recommendations are generated from the current indicator
values (including live overrides). Only the data-unlock sentence is static:
it describes data availability, not scores.

Upgrade path: every measured indicator scoring <= 0.7 is simulated at a
realistic target (midpoint between its current value and the benchmark
target) by rescoring with a single-indicator override. Candidates are ranked
by composite gain and picked greedily, at most 3, until the gap to the next
grade boundary is bridged.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from tqol.constants import (
    COMPOUNDING_THRESHOLD,
    UPGRADE_CANDIDATE_MAX_NORMALIZED,
    UPGRADE_MAX_PICKS,
    UPGRADE_MIN_GAIN,
    UPGRADE_MIN_TARGET_CHANGE,
)
from tqol.schemas.common import EffectDirection
from tqol.schemas.scores import CityQoLScore, DimensionScore, GapAnalysis, NormalizedIndicator
from tqol.scorers.city_registry import DEFAULT_DATA_UNLOCK
from tqol.scorers.confidence import round_half_up
from tqol.scorers.narratives import NARRATIVES, get_narrative, join_actions, lower_first, upper_first
from tqol.scorers.overrides import with_city_values
from tqol.scorers.qol_scorer import Overrides, QoLScorer

logger = logging.getLogger(__name__)

TOP_GRADE_MESSAGE = "Already at the highest grade. Maintaining these standards requires continued investment."
NO_DATA_RECOMMENDATION = "Improving data availability would enable targeted recommendations"


@dataclass
class IndicatorImprovement:
    key: str
    label: str
    current_value: float
    target_value: float
    composite_gain: float
    description: str


def realistic_target(current: float, target: float, effect: EffectDirection) -> float:
    """Midpoint between current value and benchmark target, never a regression."""
    mid = (current + target) / 2
    if effect == EffectDirection.NEGATIVE:
        return min(current, mid)
    return max(current, mid)


def points_needed(boundary_min: float, composite: float) -> int:
    """Whole points (0-100 scale) still missing to reach a boundary."""
    return math.ceil(round((boundary_min - composite) * 100, 6))


def _normalized_or_best(ind: NormalizedIndicator) -> float:
    return 1.0 if ind.normalized is None else ind.normalized


class GapAnalyzer:
    """Generates gap analyses by probing single-indicator improvements."""

    def __init__(self, scorer: Optional[QoLScorer] = None):
        self.scorer = scorer or QoLScorer()

    @property
    def framework(self):
        return self.scorer.framework

    def gap_sentence(self, dim: DimensionScore) -> str:
        """Worst measured indicator, with the second worst as context when it is also poor."""
        ranked = sorted(
            (i for i in dim.indicators if i.value is not None and i.normalized is not None),
            key=lambda i: i.normalized,
        )
        if not ranked:
            return f"{dim.label} dimension has insufficient data for analysis"

        worst = ranked[0]
        primary = get_narrative(worst.key, worst.label).gap(worst.value)

        if len(ranked) > 1 and ranked[1].normalized < COMPOUNDING_THRESHOLD:
            second = ranked[1]
            if second.key in NARRATIVES:
                secondary = lower_first(NARRATIVES[second.key].gap(second.value))
            else:
                secondary = f"{second.label} also underperforms"
            return f"{primary}, compounded by {secondary}"

        return primary

    def recommendation(self, city_id: str, ind: Optional[NormalizedIndicator]) -> str:
        if ind is None or ind.value is None:
            return NO_DATA_RECOMMENDATION
        text = get_narrative(ind.key, ind.label).recommendation(ind.value)

        facts = self.scorer.dataset.get(city_id)
        note = facts.region_note(ind.key) if facts else None
        if note:
            text = f"{text}. {note}"
        return text

    def _simulate(self, city_id: str, overrides: Optional[Overrides], key: str, value: float) -> float:
        result = self.scorer.compute_city_qol(city_id, with_city_values(overrides, city_id, {key: value}))
        return result.composite if result else 0.0

    def upgrade_candidates(self, qol: CityQoLScore, overrides: Optional[Overrides] = None) -> list[IndicatorImprovement]:
        """Single-indicator improvements with a positive composite gain, best first."""
        improvements = []
        for dim in qol.dimensions:
            for ind in dim.indicators:
                if ind.value is None or ind.normalized is None:
                    continue
                if ind.normalized > UPGRADE_CANDIDATE_MAX_NORMALIZED:
                    continue
                definition = self.framework.indicator(ind.key)
                bench = self.framework.benchmark(ind.key)
                if definition is None or bench is None:
                    continue

                target = realistic_target(ind.value, bench.target, definition.effect)
                if abs(target - ind.value) < UPGRADE_MIN_TARGET_CHANGE:
                    continue

                gain = self._simulate(qol.city_id, overrides, ind.key, target) - qol.composite
                if gain > UPGRADE_MIN_GAIN:
                    improvements.append(
                        IndicatorImprovement(
                            key=ind.key,
                            label=ind.label,
                            current_value=ind.value,
                            target_value=target,
                            composite_gain=gain,
                            description=get_narrative(ind.key, ind.label).upgrade(ind.value, target),
                        )
                    )

        improvements.sort(key=lambda imp: imp.composite_gain, reverse=True)
        return improvements

    def upgrade_sentence(self, qol: CityQoLScore, overrides: Optional[Overrides] = None) -> str:
        next_boundary = self.framework.next_boundary(qol.grade)
        if next_boundary is None:
            return TOP_GRADE_MESSAGE

        gap = next_boundary.min - qol.composite
        needed = points_needed(next_boundary.min, qol.composite)
        prefix = f"{needed} points from grade {next_boundary.grade}"

        improvements = self.upgrade_candidates(qol, overrides)
        if not improvements:
            return f"{prefix}. Improving data coverage would enable targeted upgrade analysis."

        picked: list[IndicatorImprovement] = []
        total_gain = 0.0
        for imp in improvements:
            picked.append(imp)
            total_gain += imp.composite_gain
            if total_gain >= gap or len(picked) >= UPGRADE_MAX_PICKS:
                break

        gain_points = round_half_up(total_gain * 100)
        actions = upper_first(join_actions([p.description for p in picked]))

        logger.debug(
            f"Upgrade path for {qol.city_id}: {[p.key for p in picked]} gain={total_gain:.4f} gap={gap:.4f}"
        )
        if total_gain >= gap:
            return f"{prefix}. {actions} would bridge this gap (+{gain_points} points)."
        return f"{prefix}. {actions} would add {gain_points} points toward this target."

    def compute_city_gap(self, city_id: str, overrides: Optional[Overrides] = None) -> Optional[GapAnalysis]:
        """Gap analysis for one city, or None if the city has no baseline record."""
        qol = self.scorer.compute_city_qol(city_id, overrides)
        if qol is None:
            return None

        worst_dim = min(qol.dimensions, key=lambda d: d.score)
        worst_ind = min(worst_dim.indicators, key=_normalized_or_best) if worst_dim.indicators else None

        facts = self.scorer.dataset.get(city_id)
        return GapAnalysis(
            city_id=city_id,
            worst_dimension=worst_dim.label,
            worst_indicator=worst_ind.label if worst_ind else "",
            gap_sentence=self.gap_sentence(worst_dim),
            recommendation=self.recommendation(city_id, worst_ind),
            upgrade_sentence=self.upgrade_sentence(qol, overrides),
            data_unlock_sentence=facts.data_unlock if facts else DEFAULT_DATA_UNLOCK,
        )

    def compute_all_gaps(self, overrides: Optional[Overrides] = None) -> list[GapAnalysis]:
        """Gap analyses in QoL rank order (highest composite first)."""
        gaps = [self.compute_city_gap(q.city_id, overrides) for q in self.scorer.compute_all_qol(overrides)]
        return [g for g in gaps if g is not None]


def compute_city_gap(city_id: str, overrides: Optional[Overrides] = None) -> Optional[GapAnalysis]:
    return GapAnalyzer().compute_city_gap(city_id, overrides)


def compute_all_gaps(overrides: Optional[Overrides] = None) -> list[GapAnalysis]:
    return GapAnalyzer().compute_all_gaps(overrides)
