"""Framework Registry - dimension taxonomy, indicator benchmarks, grade boundaries.

Loads ``framework.yaml`` once per process. Benchmarks anchor normalization to
fixed reference values, so a city's score never depends on which other cities
are being compared.

Usage:
    from tqol.scorers.framework_registry import get_framework

    framework = get_framework()
    framework.benchmark("pm25_annual")  # Benchmark(worst_ref=100, target=5, ...)
    framework.grade_for(0.52)           # "B"
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml

from tqol.config import get_framework_path
from tqol.schemas.common import EffectDirection

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 1e-6


@dataclass(frozen=True)
class IndicatorDefinition:
    """A single measurable quantity, owned by exactly one dimension."""

    key: str
    label: str
    unit: str
    effect: EffectDirection
    source: str = ""
    description: str = ""


@dataclass(frozen=True)
class Benchmark:
    """Reference pair used to normalize a raw value: worst_ref scores 0, target scores 1."""

    worst_ref: float
    target: float
    source: str = ""

    @property
    def is_degenerate(self) -> bool:
        return self.worst_ref == self.target


@dataclass(frozen=True)
class Dimension:
    """Named group of indicators with a fixed contribution weight."""

    key: str
    label: str
    weight: float
    indicators: tuple[IndicatorDefinition, ...] = ()


@dataclass(frozen=True)
class GradeBoundary:
    grade: str
    min: float
    label: str = ""


@dataclass(frozen=True)
class QoLFramework:
    """The full scoring taxonomy.

    grade_boundaries are kept ordered high to low; the first boundary whose
    ``min`` is <= the composite wins.
    """

    dimensions: tuple[Dimension, ...]
    benchmarks: dict[str, Benchmark] = field(default_factory=dict)
    grade_boundaries: tuple[GradeBoundary, ...] = ()
    full_framework_size: int = 0

    def iter_indicators(self) -> Iterator[tuple[Dimension, IndicatorDefinition]]:
        for dim in self.dimensions:
            for ind in dim.indicators:
                yield dim, ind

    @property
    def indicator_keys(self) -> list[str]:
        return [ind.key for _, ind in self.iter_indicators()]

    def indicator(self, key: str) -> Optional[IndicatorDefinition]:
        for _, ind in self.iter_indicators():
            if ind.key == key:
                return ind
        return None

    def benchmark(self, key: str) -> Optional[Benchmark]:
        return self.benchmarks.get(key)

    def grade_for(self, composite: float) -> str:
        """Map a composite score to its ordinal grade."""
        for boundary in self.grade_boundaries:
            if boundary.min <= composite:
                return boundary.grade
        # Below the lowest boundary (only possible when the lowest min > 0)
        return self.grade_boundaries[-1].grade

    def boundary(self, grade: str) -> Optional[GradeBoundary]:
        for boundary in self.grade_boundaries:
            if boundary.grade == grade:
                return boundary
        return None

    def next_boundary(self, grade: str) -> Optional[GradeBoundary]:
        """Return the boundary one step above ``grade``, or None at the top grade."""
        for idx, boundary in enumerate(self.grade_boundaries):
            if boundary.grade == grade:
                return self.grade_boundaries[idx - 1] if idx > 0 else None
        return None

    def grade_rank(self, grade: str) -> int:
        """Ordinal position of a grade, 0 = best."""
        for idx, boundary in enumerate(self.grade_boundaries):
            if boundary.grade == grade:
                return idx
        return len(self.grade_boundaries)


def build_framework(raw: dict[str, Any]) -> QoLFramework:
    """Build and validate a framework from its YAML-shaped dict.

    Raises:
        ValueError: weights do not sum to 1, duplicate indicator keys,
            an unknown effect direction, or no grade boundaries.
    """
    dimensions: list[Dimension] = []
    seen_keys: set[str] = set()

    for dim_data in raw.get("dimensions", []):
        indicators = []
        for ind_data in dim_data.get("indicators", []):
            key = ind_data["key"]
            if key in seen_keys:
                raise ValueError(f"Indicator key {key!r} is defined more than once")
            seen_keys.add(key)
            try:
                effect = EffectDirection(ind_data.get("effect", "positive"))
            except ValueError:
                raise ValueError(f"Indicator {key!r} has invalid effect {ind_data.get('effect')!r}") from None
            indicators.append(
                IndicatorDefinition(
                    key=key,
                    label=ind_data.get("label", key),
                    unit=ind_data.get("unit", ""),
                    effect=effect,
                    source=ind_data.get("source", ""),
                    description=ind_data.get("description", ""),
                )
            )
        dimensions.append(
            Dimension(
                key=dim_data["key"],
                label=dim_data.get("label", dim_data["key"]),
                weight=float(dim_data["weight"]),
                indicators=tuple(indicators),
            )
        )

    total_weight = sum(d.weight for d in dimensions)
    if abs(total_weight - 1.0) > WEIGHT_TOLERANCE:
        raise ValueError(f"Dimension weights sum to {total_weight}, expected 1.0")

    benchmarks = {
        key: Benchmark(worst_ref=float(b["worst_ref"]), target=float(b["target"]), source=b.get("source", ""))
        for key, b in (raw.get("benchmarks") or {}).items()
    }
    for key in seen_keys:
        if key not in benchmarks:
            logger.warning(f"No benchmark for indicator {key}, it will normalize to neutral")
        elif benchmarks[key].is_degenerate:
            logger.warning(f"Degenerate benchmark for indicator {key} (worst_ref == target)")

    boundaries = [
        GradeBoundary(grade=str(b["grade"]), min=float(b["min"]), label=b.get("label", ""))
        for b in raw.get("grade_boundaries", [])
    ]
    if not boundaries:
        raise ValueError("Framework defines no grade boundaries")
    boundaries.sort(key=lambda b: b.min, reverse=True)

    return QoLFramework(
        dimensions=tuple(dimensions),
        benchmarks=benchmarks,
        grade_boundaries=tuple(boundaries),
        full_framework_size=int(raw.get("full_framework_size") or len(seen_keys)),
    )


def load_framework(path: Optional[Path] = None) -> QoLFramework:
    """Read and validate a framework YAML file."""
    path = path or get_framework_path()
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    framework = build_framework(raw)
    logger.info(
        f"Loaded framework with {len(framework.dimensions)} dimensions, "
        f"{len(framework.indicator_keys)} indicators, {len(framework.grade_boundaries)} grades"
    )
    return framework


# Module-level cache
_framework_cache: Optional[QoLFramework] = None


def get_framework() -> QoLFramework:
    """Return the shipped framework, loading it on first use."""
    global _framework_cache
    if _framework_cache is None:
        _framework_cache = load_framework()
    return _framework_cache


def clear_cache() -> None:
    """Clear cached framework (for testing)."""
    global _framework_cache
    _framework_cache = None
