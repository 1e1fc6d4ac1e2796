"""Shared fixtures for engine tests.

Synthetic one-dimension frameworks keep arithmetic checkable by hand; the
shipped YAML configuration is used for the property checks over real cities.
"""

import pytest

from tqol.scorers import city_registry, framework_registry, scenario_engine
from tqol.scorers.city_registry import build_dataset
from tqol.scorers.framework_registry import build_framework
from tqol.scorers.qol_scorer import QoLScorer
from tqol.scorers.scenario_engine import build_scenario_config

SYNTHETIC_BOUNDARIES = [
    {"grade": "A", "min": 0.75, "label": "Top"},
    {"grade": "B", "min": 0.5, "label": "Middle"},
    {"grade": "C", "min": 0.0, "label": "Bottom"},
]


@pytest.fixture(autouse=True)
def _shipped_config(monkeypatch):
    """Always read the shipped config and start from cold caches."""
    monkeypatch.delenv("TQOL_CONFIG_DIR", raising=False)
    framework_registry.clear_cache()
    city_registry.clear_cache()
    scenario_engine.clear_cache()
    yield
    framework_registry.clear_cache()
    city_registry.clear_cache()
    scenario_engine.clear_cache()


@pytest.fixture
def make_framework():
    """Factory: one dimension (weight 1.0) of positive indicators benchmarked 0 -> 100."""

    def _make(keys=("ind_a", "ind_b"), boundaries=None, benchmarks=None, full_framework_size=None):
        return build_framework(
            {
                "full_framework_size": full_framework_size or len(keys),
                "dimensions": [
                    {
                        "key": "dim",
                        "label": "Synthetic",
                        "weight": 1.0,
                        "indicators": [
                            {"key": k, "label": f"Indicator {k[-1].upper()}", "unit": "pts", "effect": "positive"}
                            for k in keys
                        ],
                    }
                ],
                "benchmarks": (
                    benchmarks
                    if benchmarks is not None
                    else {k: {"worst_ref": 0, "target": 100} for k in keys}
                ),
                "grade_boundaries": boundaries or SYNTHETIC_BOUNDARIES,
            }
        )

    return _make


@pytest.fixture
def make_dataset():
    """Factory: a dataset with one city ("testville") holding the given values."""

    def _make(values, city_id="testville", **extra):
        return build_dataset({"cities": {city_id: {"name": "Testville", "values": values, **extra}}})

    return _make


@pytest.fixture
def synthetic_framework(make_framework):
    return make_framework()


@pytest.fixture
def synthetic_scorer(make_framework, make_dataset):
    """Two indicators at 50 against 0 -> 100, weight 1.0."""
    return QoLScorer(framework=make_framework(), dataset=make_dataset({"ind_a": 50, "ind_b": 50}))


@pytest.fixture
def synthetic_scenario_config():
    """One lever adding +0.2 per unit to both synthetic indicators."""
    return build_scenario_config(
        {
            "interventions": [
                {
                    "key": "lever",
                    "label": "Lever",
                    "unit": "units",
                    "min": -100,
                    "max": 10,
                    "step": 1,
                    "default": 0,
                    "effects": [
                        {"indicator": "ind_a", "mode": "delta_per_unit", "value": 0.2},
                        {"indicator": "ind_b", "mode": "delta_per_unit", "value": 0.2},
                    ],
                }
            ]
        }
    )


@pytest.fixture
def scorer():
    """Scorer bound to the shipped configuration."""
    return QoLScorer()


@pytest.fixture
def shipped_city_ids():
    return city_registry.get_dataset().city_ids()
