"""Tests for the data-confidence estimator."""

import pytest

from tqol.schemas.common import ConfidenceTier
from tqol.scorers.city_registry import get_dataset
from tqol.scorers.confidence import (
    ConfidenceEstimator,
    compute_confidence,
    round_half_up,
    tier_for_score,
    transit_points,
)

LIVE = {"bengaluru": {"pm25_annual": 30.0, "no2_annual": 25.0, "congestion_level": 50.0, "traffic_fatalities": 7.5}}


class TestTiers:
    """Tier thresholds are exact at the boundaries."""

    @pytest.mark.parametrize(
        "score,tier",
        [
            (100, ConfidenceTier.GOLD),
            (70, ConfidenceTier.GOLD),
            (69, ConfidenceTier.SILVER),
            (45, ConfidenceTier.SILVER),
            (44, ConfidenceTier.BRONZE),
            (0, ConfidenceTier.BRONZE),
        ],
    )
    def test_boundaries(self, score, tier):
        assert tier_for_score(score) == tier

    def test_round_half_up(self):
        assert round_half_up(44.5) == 45
        assert round_half_up(69.49) == 69
        assert round_half_up(0.5) == 1


class TestBengaluru:
    """Bengaluru: full indicator set, rich transit feeds, high readiness."""

    def test_factors(self):
        breakdown = compute_confidence("bengaluru", 15)
        f = breakdown.factors
        assert f.indicator_coverage == 75  # 15 of 20
        assert f.live_data_freshness == 0
        assert f.sensor_coverage == 70  # 7 sensors
        assert f.transit_data_quality == 80  # 16 of 20
        assert f.data_readiness == 85
        assert f.altmo_traces == 100

    def test_score_and_tier(self):
        breakdown = compute_confidence("bengaluru", 15)
        assert breakdown.score == 61
        assert breakdown.tier == ConfidenceTier.SILVER

    def test_live_overrides_raise_freshness(self):
        breakdown = compute_confidence("bengaluru", 15, LIVE)
        assert breakdown.factors.live_data_freshness == 27  # 4 of 15
        assert breakdown.score == 68

    def test_non_framework_override_keys_ignored(self):
        breakdown = compute_confidence("bengaluru", 15, {"bengaluru": {"not_an_indicator": 1.0}})
        assert breakdown.factors.live_data_freshness == 0


class TestEdgeCases:
    def test_zero_available_no_division_error(self):
        breakdown = compute_confidence("bengaluru", 0, LIVE)
        assert breakdown.factors.indicator_coverage == 0
        assert breakdown.factors.live_data_freshness == 0

    def test_city_without_readiness_record(self):
        """Mumbai has no readiness record: readiness and traces score 0."""
        breakdown = compute_confidence("mumbai", 12)
        assert breakdown.factors.data_readiness == 0
        assert breakdown.factors.altmo_traces == 0
        assert breakdown.factors.sensor_coverage == 0
        assert breakdown.factors.transit_data_quality == 30  # overpass metro 3 + suburban rail 3

    def test_unknown_city_scores_facts_zero(self, synthetic_framework, make_dataset):
        estimator = ConfidenceEstimator(synthetic_framework, make_dataset({"ind_a": 1}))
        breakdown = estimator.compute_confidence("atlantis", 2)
        assert breakdown.factors.indicator_coverage == 100
        assert breakdown.factors.transit_data_quality == 0
        assert breakdown.score == 15

    def test_score_weights_unrounded_factors(self, make_framework, make_dataset):
        """Coverage 5 and freshness 66.7 weigh to 17.42, not the 17.5 their rounded values give."""
        estimator = ConfidenceEstimator(make_framework(full_framework_size=60), make_dataset({"ind_a": 1}))
        breakdown = estimator.compute_confidence("atlantis", 3, {"atlantis": {"ind_a": 1.0, "ind_b": 2.0}})
        assert breakdown.factors.indicator_coverage == 5
        assert breakdown.factors.live_data_freshness == 67
        assert breakdown.score == 17
        assert breakdown.tier == ConfidenceTier.BRONZE

    def test_bounds_for_all_cities(self, scorer, shipped_city_ids):
        for city_id in shipped_city_ids:
            breakdown = scorer.compute_city_qol(city_id).confidence_breakdown
            assert 0 <= breakdown.score <= 100
            assert breakdown.tier == tier_for_score(breakdown.score)


class TestTransitPoints:
    def test_checklist(self):
        dataset = get_dataset()
        assert transit_points(dataset.get("bengaluru")) == 16
        assert transit_points(dataset.get("kochi")) == 10  # transit_router 5 + gtfs 5
        assert transit_points(dataset.get("indore")) == 5


class TestScorerIntegration:
    def test_scorer_fills_confidence(self, scorer):
        result = scorer.compute_city_qol("bengaluru", LIVE)
        assert result.confidence == result.confidence_breakdown.tier
        assert result.confidence_breakdown == compute_confidence("bengaluru", result.indicators_available, LIVE)
