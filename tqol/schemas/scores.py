"""Pydantic result models for QoL scoring, confidence, scenarios, and gaps.

All of these are derived values: pure functions of the baseline dataset, the
benchmark registry, the dimension taxonomy, and the overrides in effect. None
are persisted by the engine.
"""

from typing import Optional

from pydantic import BaseModel, Field

from tqol.schemas.common import ConfidenceTier


class NormalizedIndicator(BaseModel):
    """A single indicator's raw and benchmark-normalized value."""

    key: str = Field(description="Indicator key (e.g., 'pm25_annual')")
    label: str = Field(description="Display label")
    unit: str = Field(description="Unit of the raw value")
    value: Optional[float] = Field(default=None, description="Resolved raw value (override or baseline); None = not measured")
    normalized: Optional[float] = Field(
        default=None, ge=0.0, le=1.0, description="Benchmark-normalized score 0-1; None iff value is None"
    )


class DimensionScore(BaseModel):
    """Weighted score for one dimension.

    score is the mean of the indicators' normalized values with missing
    indicators counted as 0 (worst case), not excluded.
    """

    key: str = Field(description="Dimension key (e.g., 'health')")
    label: str = Field(description="Display label")
    weight: float = Field(ge=0.0, le=1.0, description="Fixed dimension weight")
    score: float = Field(ge=0.0, le=1.0, description="Mean normalized score, missing = 0")
    weighted: float = Field(ge=0.0, description="score * weight")
    available_count: int = Field(ge=0, description="Indicators with a measured value")
    total_count: int = Field(ge=0, description="Indicators defined for the dimension")
    indicators: list[NormalizedIndicator] = Field(default_factory=list, description="Per-indicator breakdown")


class ConfidenceFactors(BaseModel):
    """The six data-confidence sub-factors, each 0-100."""

    indicator_coverage: int = Field(ge=0, le=100, description="Measured indicators vs. full framework size")
    live_data_freshness: int = Field(ge=0, le=100, description="Share of measured indicators backed by live overrides")
    sensor_coverage: int = Field(ge=0, le=100, description="Configured PM2.5 + NO2 sensors (saturates at 10)")
    transit_data_quality: int = Field(ge=0, le=100, description="Transit source checklist (out of 20) scaled to 100")
    data_readiness: int = Field(ge=0, le=100, description="Data readiness total / max score")
    altmo_traces: int = Field(ge=0, le=100, description="100 available, 50 partial, else 0")


class ConfidenceBreakdown(BaseModel):
    """Data confidence signal (0-100, outside the QoL score).

    Weighted sum of six factors:
    coverage 0.15, freshness 0.25, sensors 0.10, transit 0.20, readiness 0.20, traces 0.10.

    Tiers: gold (>=70), silver (>=45), bronze (<45)
    """

    tier: ConfidenceTier = Field(description="gold / silver / bronze")
    score: int = Field(ge=0, le=100, description="Weighted confidence score, rounded")
    factors: ConfidenceFactors = Field(description="Factor breakdown")


class CityQoLScore(BaseModel):
    """Top-level Transport QoL result for one city."""

    city_id: str = Field(description="City slug (e.g., 'bengaluru')")
    composite: float = Field(ge=0.0, description="Sum of weighted dimension scores, 0-1")
    grade: str = Field(description="Ordinal grade from the grade boundaries (A-E)")
    dimensions: list[DimensionScore] = Field(default_factory=list, description="Per-dimension breakdown")
    confidence: ConfidenceTier = Field(description="Confidence tier (same as confidence_breakdown.tier)")
    confidence_breakdown: ConfidenceBreakdown = Field(description="Full confidence breakdown")
    indicators_available: int = Field(ge=0, description="Measured indicators across all dimensions")
    indicators_total: int = Field(ge=0, description="Full target framework size (aspirational, fixed)")

    def indicator(self, key: str) -> Optional[NormalizedIndicator]:
        """Look up an indicator across dimensions."""
        for dim in self.dimensions:
            for ind in dim.indicators:
                if ind.key == key:
                    return ind
        return None

    def indicator_values(self) -> dict[str, Optional[float]]:
        """Return resolved raw values keyed by indicator, in framework order."""
        return {ind.key: ind.value for dim in self.dimensions for ind in dim.indicators}


class IndicatorChange(BaseModel):
    """Baseline vs. scenario value for one indicator."""

    key: str
    label: str
    unit: str
    baseline: Optional[float] = None
    scenario: Optional[float] = None
    delta: Optional[float] = Field(default=None, description="scenario - baseline; None if either side is None")


class ScenarioResult(BaseModel):
    """Outcome of a what-if scenario compared to the baseline."""

    baseline: CityQoLScore
    scenario: CityQoLScore
    delta: float = Field(description="scenario.composite - baseline.composite")
    grade_change: str = Field(description="e.g. 'C -> B'")
    indicator_changes: list[IndicatorChange] = Field(default_factory=list)


class GapAnalysis(BaseModel):
    """Weakest area of a city and what it would take to reach the next grade."""

    city_id: str
    worst_dimension: str = Field(description="Label of the lowest-scoring dimension")
    worst_indicator: str = Field(description="Label of the lowest measured indicator in that dimension")
    gap_sentence: str
    recommendation: str
    upgrade_sentence: str
    data_unlock_sentence: str = Field(description="Static per-city note on what publishing more data unlocks")


class CategoryScore(BaseModel):
    """Readiness points earned in one category."""

    key: str
    label: str
    score: float = Field(ge=0.0)
    max: float = Field(ge=0.0)


class ReadinessScore(BaseModel):
    """Weighted data-layer readiness checklist for a city."""

    city_id: str
    total: float = Field(ge=0.0)
    max_score: float = Field(ge=0.0)
    categories: list[CategoryScore] = Field(default_factory=list)
