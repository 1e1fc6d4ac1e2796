"""Result models and shared enums."""

from tqol.schemas.common import (
    ConfidenceTier,
    DataStatus,
    EffectDirection,
    EffectMode,
    MultiplyRule,
    ValueSource,
)
from tqol.schemas.scores import (
    CategoryScore,
    CityQoLScore,
    ConfidenceBreakdown,
    ConfidenceFactors,
    DimensionScore,
    GapAnalysis,
    IndicatorChange,
    NormalizedIndicator,
    ReadinessScore,
    ScenarioResult,
)

__all__ = [
    # Enums
    "ConfidenceTier",
    "DataStatus",
    "EffectDirection",
    "EffectMode",
    "MultiplyRule",
    "ValueSource",
    # Results
    "CategoryScore",
    "CityQoLScore",
    "ConfidenceBreakdown",
    "ConfidenceFactors",
    "DimensionScore",
    "GapAnalysis",
    "IndicatorChange",
    "NormalizedIndicator",
    "ReadinessScore",
    "ScenarioResult",
]
