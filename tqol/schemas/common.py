"""Shared enums for framework definitions, scenario effects, and data facts."""

from enum import Enum


class EffectDirection(str, Enum):
    """Which direction of a raw indicator value is "good"."""

    POSITIVE = "positive"  # Higher is better (e.g., walking share)
    NEGATIVE = "negative"  # Lower is better (e.g., PM2.5)


class EffectMode(str, Enum):
    """How an intervention effect transforms an indicator."""

    SET = "set"  # indicator = slider value
    DELTA_PER_UNIT = "delta_per_unit"  # indicator += coefficient * (slider - default)
    MULTIPLY = "multiply"  # indicator *= factor(slider)


class MultiplyRule(str, Enum):
    """Factor rules for multiply-mode effects."""

    SLIDER_RATIO = "slider_ratio"
    SHARE_REDUCTION = "share_reduction"
    FOSSIL_SHARE_SHIFT = "fossil_share_shift"


class DataStatus(str, Enum):
    """Availability of a named data layer for a city."""

    AVAILABLE = "available"
    PARTIAL = "partial"
    UNAVAILABLE = "unavailable"

    @property
    def multiplier(self) -> float:
        """Return the readiness credit for this status."""
        return {"available": 1.0, "partial": 0.5, "unavailable": 0.0}[self.value]


class ConfidenceTier(str, Enum):
    """Data-confidence tier, independent of the QoL score itself.

    Thresholds (score 0-100): gold >= 70, silver >= 45, else bronze.
    """

    GOLD = "gold"
    SILVER = "silver"
    BRONZE = "bronze"


class ValueSource(str, Enum):
    """Where a resolved indicator value came from."""

    OVERRIDE = "override"
    BASELINE = "baseline"
    MISSING = "missing"
