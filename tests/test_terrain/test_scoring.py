"""
Tests for accessibility and flood-risk scoring.
"""

import pytest

from relief.core.terrain.scoring import (
    DEFAULT_ACCESSIBILITY_POLICY,
    AccessibilityPolicy,
    AdditivePenalty,
    BandedPenalty,
    Comparison,
    FloodRiskPolicy,
    PenaltyBand,
    ScoringEngine,
    calculate_accessibility_score,
    calculate_flood_risk_score,
    clamp_unit,
)
from relief.models.terrain import AnalysisType, TerrainMetrics


def metrics_with(**fields: float) -> TerrainMetrics:
    return TerrainMetrics(**fields)


@pytest.fixture
def engine() -> ScoringEngine:
    """Scoring engine with the default policies."""
    return ScoringEngine()


class TestBandedPenalty:
    """Tests for BandedPenalty."""

    def test_first_band_only(self) -> None:
        """Test that overlapping bands never stack."""
        penalty = BandedPenalty(
            metric="slope_maximum",
            bands=(PenaltyBand(30.0, 0.5), PenaltyBand(15.0, 0.3), PenaltyBand(5.0, 0.1)),
        )
        assert penalty.amount(metrics_with(slope_maximum=45.0)) == 0.5
        assert penalty.amount(metrics_with(slope_maximum=20.0)) == 0.3
        assert penalty.amount(metrics_with(slope_maximum=6.0)) == 0.1
        assert penalty.amount(metrics_with(slope_maximum=5.0)) == 0.0

    def test_below_comparison(self) -> None:
        """Test strict below-threshold bands."""
        penalty = BandedPenalty(
            metric="avg_elevation",
            bands=(PenaltyBand(10.0, 0.8), PenaltyBand(50.0, 0.5)),
            comparison=Comparison.BELOW,
        )
        assert penalty.amount(metrics_with(avg_elevation=9.9)) == 0.8
        assert penalty.amount(metrics_with(avg_elevation=10.0)) == 0.5
        assert penalty.amount(metrics_with(avg_elevation=50.0)) == 0.0

    def test_unknown_metric(self) -> None:
        """Test that a misspelt metric is rejected."""
        with pytest.raises(ValueError, match="Unknown metric"):
            BandedPenalty(metric="slope_max", bands=(PenaltyBand(1.0, 0.1),))

    def test_unordered_bands(self) -> None:
        """Test that bands must be ordered most severe first."""
        with pytest.raises(ValueError, match="most severe first"):
            BandedPenalty(
                metric="slope_maximum",
                bands=(PenaltyBand(5.0, 0.1), PenaltyBand(30.0, 0.5)),
            )
        with pytest.raises(ValueError, match="most severe first"):
            BandedPenalty(
                metric="avg_elevation",
                bands=(PenaltyBand(50.0, 0.5), PenaltyBand(10.0, 0.8)),
                comparison=Comparison.BELOW,
            )


class TestAdditivePenalty:
    """Tests for AdditivePenalty."""

    def test_factors_sum(self) -> None:
        """Test that every matching factor contributes."""
        penalty = AdditivePenalty(
            factors=(
                BandedPenalty(metric="slope_maximum", bands=(PenaltyBand(1.0, 0.25),)),
                BandedPenalty(metric="roughness_index", bands=(PenaltyBand(1.0, 0.5),)),
            )
        )
        assert penalty.amount(metrics_with(slope_maximum=2.0, roughness_index=2.0)) == 0.75
        assert penalty.amount(metrics_with(slope_maximum=2.0)) == 0.25


class TestAccessibilityScore:
    """Tests for ScoringEngine.accessibility_score."""

    def test_flat_smooth_terrain(self, engine: ScoringEngine) -> None:
        """Test that gentle terrain is fully accessible for every type."""
        metrics = metrics_with(slope_maximum=2.0, roughness_index=5.0)
        for analysis_type in AnalysisType:
            assert engine.accessibility_score(metrics, analysis_type) == 1.0

    def test_penalties_combine(self, engine: ScoringEngine) -> None:
        """Test slope, roughness and type penalties together."""
        metrics = metrics_with(slope_maximum=20.0, roughness_index=60.0)
        # 1.0 - 0.3 (slope > 15) - 0.2 (roughness > 50) - 0.2 (emergency > 10)
        score = engine.accessibility_score(metrics, AnalysisType.EMERGENCY_RESPONSE)
        assert score == pytest.approx(0.3)

    def test_type_specific_penalty(self, engine: ScoringEngine) -> None:
        """Test that the strictest type penalizes moderate slopes."""
        metrics = metrics_with(slope_maximum=8.0)
        assert engine.accessibility_score(metrics, AnalysisType.ROUTING) == pytest.approx(0.9)
        assert engine.accessibility_score(
            metrics, AnalysisType.ACCESSIBILITY
        ) == pytest.approx(0.6)

    def test_clamped_at_zero(self, engine: ScoringEngine) -> None:
        """Test that extreme terrain does not go below zero."""
        metrics = metrics_with(slope_maximum=60.0, roughness_index=500.0)
        # 1.0 - 0.5 - 0.3 - 0.3 would be negative
        assert engine.accessibility_score(metrics, AnalysisType.ACCESSIBILITY) == 0.0

    @pytest.mark.parametrize("analysis_type", list(AnalysisType))
    def test_monotonic_at_slope_boundary(
        self, engine: ScoringEngine, analysis_type: AnalysisType
    ) -> None:
        """Test that a steeper slope never scores higher."""
        gentler = engine.accessibility_score(metrics_with(slope_maximum=14.9), analysis_type)
        steeper = engine.accessibility_score(metrics_with(slope_maximum=15.1), analysis_type)
        assert gentler > steeper

    @pytest.mark.parametrize("analysis_type", list(AnalysisType))
    def test_bounded(self, engine: ScoringEngine, analysis_type: AnalysisType) -> None:
        """Test that scores stay within [0, 1] across a sweep of inputs."""
        for slope in (0.0, 5.0, 10.5, 25.0, 89.0):
            for roughness in (0.0, 20.5, 75.0, 1000.0):
                metrics = metrics_with(slope_maximum=slope, roughness_index=roughness)
                score = engine.accessibility_score(metrics, analysis_type)
                assert 0.0 <= score <= 1.0

    def test_type_without_adjustment(self) -> None:
        """Test a policy that defines no type adjustments."""
        policy = AccessibilityPolicy(
            slope=DEFAULT_ACCESSIBILITY_POLICY.slope,
            roughness=DEFAULT_ACCESSIBILITY_POLICY.roughness,
        )
        engine = ScoringEngine(accessibility_policy=policy)
        metrics = metrics_with(slope_maximum=8.0)
        assert engine.accessibility_score(metrics, AnalysisType.ACCESSIBILITY) == pytest.approx(0.9)


class TestFloodRiskScore:
    """Tests for ScoringEngine.flood_risk_score."""

    def test_low_flat_smooth(self, engine: ScoringEngine) -> None:
        """Test that low, flat, smooth terrain saturates at 1.0."""
        metrics = metrics_with(avg_elevation=5.0, slope_maximum=1.0, elevation_variance=10.0)
        for analysis_type in AnalysisType:
            assert engine.flood_risk_score(metrics, analysis_type) == 1.0

    def test_factors_add(self, engine: ScoringEngine) -> None:
        """Test independent factor contributions."""
        metrics = metrics_with(avg_elevation=75.0, slope_maximum=3.0, elevation_variance=500.0)
        # 0.2 (elevation < 100) + 0.1 (slope < 5)
        assert engine.flood_risk_score(metrics, AnalysisType.ROUTING) == pytest.approx(0.3)

    def test_high_steep_rough(self, engine: ScoringEngine) -> None:
        """Test terrain with no flood factors."""
        metrics = metrics_with(avg_elevation=800.0, slope_maximum=20.0, elevation_variance=400.0)
        assert engine.flood_risk_score(metrics, AnalysisType.ROUTING) == 0.0

    def test_type_agnostic(self, engine: ScoringEngine) -> None:
        """Test that the analysis type does not change flood risk."""
        metrics = metrics_with(avg_elevation=40.0, slope_maximum=4.0, elevation_variance=50.0)
        scores = {engine.flood_risk_score(metrics, t) for t in AnalysisType}
        assert len(scores) == 1

    def test_empty_metrics(self, engine: ScoringEngine) -> None:
        """Test the all-zero record, which reads as low and flat."""
        assert engine.flood_risk_score(TerrainMetrics.empty(), AnalysisType.ROUTING) == 1.0

    def test_custom_policy_base(self) -> None:
        """Test a custom flood policy with a non-zero base."""
        policy = FloodRiskPolicy(factors=AdditivePenalty(factors=()), base=0.4)
        engine = ScoringEngine(flood_risk_policy=policy)
        assert engine.flood_risk_score(TerrainMetrics.empty(), AnalysisType.ROUTING) == 0.4


class TestConvenienceFunctions:
    """Tests for module-level scoring helpers."""

    def test_calculate_accessibility_score(self) -> None:
        """Test the default-policy accessibility helper."""
        metrics = metrics_with(slope_maximum=31.0)
        assert calculate_accessibility_score(
            metrics, AnalysisType.ROUTING
        ) == pytest.approx(0.3)

    def test_calculate_flood_risk_score(self) -> None:
        """Test the default-policy flood-risk helper."""
        metrics = metrics_with(avg_elevation=30.0, slope_maximum=10.0, elevation_variance=200.0)
        assert calculate_flood_risk_score(metrics, AnalysisType.ROUTING) == pytest.approx(0.5)

    def test_clamp_unit(self) -> None:
        """Test clamping to [0, 1]."""
        assert clamp_unit(-0.5) == 0.0
        assert clamp_unit(1.7) == 1.0
        assert clamp_unit(0.25) == 0.25
