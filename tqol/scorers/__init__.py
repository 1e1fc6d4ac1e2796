"""
Scoring engine: normalization, QoL aggregation, confidence, scenarios, and gap analysis.
"""

from tqol.scorers.confidence import ConfidenceEstimator, compute_confidence
from tqol.scorers.gap_analyzer import GapAnalyzer, compute_all_gaps, compute_city_gap
from tqol.scorers.normalizer import normalize
from tqol.scorers.overrides import QoLOverrides, build_qol_overrides, merge_overrides, with_city_values
from tqol.scorers.qol_scorer import QoLScorer, compute_all_qol, compute_city_qol
from tqol.scorers.readiness import compute_all_readiness, compute_readiness_score
from tqol.scorers.scenario_engine import (
    ScenarioEngine,
    compute_scenario_result,
    get_default_interventions,
    list_presets,
    resolve_preset_for_city,
)

__all__ = [
    # Engines
    "ConfidenceEstimator",
    "GapAnalyzer",
    "QoLScorer",
    "ScenarioEngine",
    # Functions bound to the shipped configuration
    "build_qol_overrides",
    "compute_all_gaps",
    "compute_all_qol",
    "compute_all_readiness",
    "compute_city_gap",
    "compute_city_qol",
    "compute_confidence",
    "compute_readiness_score",
    "compute_scenario_result",
    "get_default_interventions",
    "list_presets",
    "merge_overrides",
    "normalize",
    "resolve_preset_for_city",
    "with_city_values",
    # Types
    "QoLOverrides",
]
