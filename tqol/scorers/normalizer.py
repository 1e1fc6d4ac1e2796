"""Benchmark-anchored normalization of raw indicator values."""

import logging
from typing import Mapping

from tqol.constants import NEUTRAL_SCORE
from tqol.schemas.common import EffectDirection
from tqol.scorers.framework_registry import Benchmark

logger = logging.getLogger(__name__)


def normalize(
    indicator_key: str,
    value: float,
    effect: EffectDirection,
    benchmarks: Mapping[str, Benchmark],
) -> float:
    """Map a raw value to [0, 1] against the indicator's benchmark.

    Values beyond the target saturate at 1, values worse than worst_ref at 0.
    An indicator with no benchmark, or a degenerate one, scores a neutral 0.5.

    Args:
        indicator_key: Indicator to look up in ``benchmarks``
        value: Raw (non-null) value
        effect: Whether higher (positive) or lower (negative) is better
        benchmarks: Benchmark registry keyed by indicator

    Returns:
        Normalized score in [0, 1]
    """
    bench = benchmarks.get(indicator_key)
    if bench is None or bench.is_degenerate:
        logger.debug(f"Neutral score for {indicator_key}: no usable benchmark")
        return NEUTRAL_SCORE

    if effect == EffectDirection.NEGATIVE:
        raw = (bench.worst_ref - value) / (bench.worst_ref - bench.target)
    else:
        raw = (value - bench.worst_ref) / (bench.target - bench.worst_ref)

    return max(0.0, min(1.0, raw))
