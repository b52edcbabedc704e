"""
Accessibility and flood-risk scoring from terrain metrics.

The two scores combine thresholds differently, and each combination rule is
a named policy object:

- BandedPenalty: a ladder of bands over one metric, most severe first. Only
  the first matching band applies, so overlapping bands never stack.
- AdditivePenalty: independent factors whose amounts are summed, so every
  matching factor contributes.

Accessibility starts at 1.0 and subtracts one BandedPenalty for slope, one
for roughness and a type-specific BandedPenalty. Flood risk starts at 0.0 and
adds an AdditivePenalty over elevation, flatness and variance. Both results
are clamped to [0, 1].
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from relief.models.terrain import AnalysisType, TerrainMetrics

logger = logging.getLogger(__name__)


class Comparison(str, Enum):
    """How a metric value is compared with a band threshold (strictly)."""

    ABOVE = "above"  # value > threshold
    BELOW = "below"  # value < threshold


@dataclass(frozen=True)
class PenaltyBand:
    """A threshold and the amount applied when it is crossed."""

    threshold: float
    amount: float


@dataclass(frozen=True)
class BandedPenalty:
    """
    Threshold ladder over a single TerrainMetrics field.

    Bands are ordered most severe first: descending thresholds for ABOVE,
    ascending thresholds for BELOW. The first band the value crosses is the
    only one applied.

    Attributes:
        metric: Name of the TerrainMetrics field
        bands: Bands ordered most severe first
        comparison: Direction of the threshold test
    """

    metric: str
    bands: Tuple[PenaltyBand, ...]
    comparison: Comparison = Comparison.ABOVE

    def __post_init__(self) -> None:
        """Validate the metric name and band ordering."""
        if self.metric not in TerrainMetrics.__dataclass_fields__:
            raise ValueError(f"Unknown metric: {self.metric}")

        thresholds = [band.threshold for band in self.bands]
        if self.comparison == Comparison.ABOVE:
            ordered = all(a > b for a, b in zip(thresholds, thresholds[1:]))
        else:
            ordered = all(a < b for a, b in zip(thresholds, thresholds[1:]))
        if not ordered:
            raise ValueError(
                f"Bands for {self.metric} must be ordered most severe first"
            )

    def _crosses(self, value: float, threshold: float) -> bool:
        if self.comparison == Comparison.ABOVE:
            return value > threshold
        return value < threshold

    def amount(self, metrics: TerrainMetrics) -> float:
        """Amount of the first band crossed, 0.0 when none is."""
        value = getattr(metrics, self.metric)
        for band in self.bands:
            if self._crosses(value, band.threshold):
                return band.amount
        return 0.0


@dataclass(frozen=True)
class AdditivePenalty:
    """
    Independent factors whose amounts are summed.

    Attributes:
        factors: Factors that all contribute when they match
    """

    factors: Tuple[BandedPenalty, ...]

    def amount(self, metrics: TerrainMetrics) -> float:
        """Sum of every factor's amount."""
        return sum(factor.amount(metrics) for factor in self.factors)


@dataclass(frozen=True)
class AccessibilityPolicy:
    """
    Accessibility scoring rules.

    Attributes:
        slope: Penalty ladder over slope_maximum
        roughness: Penalty ladder over roughness_index
        type_adjustments: Extra penalty per analysis type
    """

    slope: BandedPenalty
    roughness: BandedPenalty
    type_adjustments: Dict[AnalysisType, BandedPenalty] = field(default_factory=dict)
    base: float = 1.0


@dataclass(frozen=True)
class FloodRiskPolicy:
    """
    Flood-risk scoring rules.

    Attributes:
        factors: Additive factors over elevation, flatness and variance
    """

    factors: AdditivePenalty
    base: float = 0.0


DEFAULT_ACCESSIBILITY_POLICY = AccessibilityPolicy(
    slope=BandedPenalty(
        metric="slope_maximum",
        bands=(PenaltyBand(30.0, 0.5), PenaltyBand(15.0, 0.3), PenaltyBand(5.0, 0.1)),
    ),
    roughness=BandedPenalty(
        metric="roughness_index",
        bands=(PenaltyBand(100.0, 0.3), PenaltyBand(50.0, 0.2), PenaltyBand(20.0, 0.1)),
    ),
    type_adjustments={
        # Emergency vehicles need gentle grades
        AnalysisType.EMERGENCY_RESPONSE: BandedPenalty(
            metric="slope_maximum", bands=(PenaltyBand(10.0, 0.2),)
        ),
        AnalysisType.ROUTING: BandedPenalty(
            metric="slope_maximum", bands=(PenaltyBand(20.0, 0.2),)
        ),
        # Strictest: mobility-impaired access
        AnalysisType.ACCESSIBILITY: BandedPenalty(
            metric="slope_maximum", bands=(PenaltyBand(5.0, 0.3),)
        ),
    },
)

DEFAULT_FLOOD_RISK_POLICY = FloodRiskPolicy(
    factors=AdditivePenalty(
        factors=(
            BandedPenalty(
                metric="avg_elevation",
                bands=(PenaltyBand(10.0, 0.8), PenaltyBand(50.0, 0.5), PenaltyBand(100.0, 0.2)),
                comparison=Comparison.BELOW,
            ),
            BandedPenalty(
                metric="slope_maximum",
                bands=(PenaltyBand(2.0, 0.3), PenaltyBand(5.0, 0.1)),
                comparison=Comparison.BELOW,
            ),
            BandedPenalty(
                metric="elevation_variance",
                bands=(PenaltyBand(100.0, 0.2),),
                comparison=Comparison.BELOW,
            ),
        )
    ),
)


def clamp_unit(value: float) -> float:
    """Clamp a score to [0, 1]."""
    return max(0.0, min(1.0, value))


class ScoringEngine:
    """
    Map terrain metrics and an analysis type to bounded scores.

    Both methods are pure and never raise for a valid TerrainMetrics.
    """

    def __init__(
        self,
        accessibility_policy: Optional[AccessibilityPolicy] = None,
        flood_risk_policy: Optional[FloodRiskPolicy] = None,
    ):
        self.accessibility_policy = accessibility_policy or DEFAULT_ACCESSIBILITY_POLICY
        self.flood_risk_policy = flood_risk_policy or DEFAULT_FLOOD_RISK_POLICY

    def accessibility_score(
        self, metrics: TerrainMetrics, analysis_type: AnalysisType
    ) -> float:
        """
        Suitability of the terrain for traversal, 0 (inaccessible) to 1.

        Args:
            metrics: Terrain metrics of the area
            analysis_type: Selects the type-specific slope penalty

        Returns:
            Score clamped to [0, 1]
        """
        policy = self.accessibility_policy
        slope_penalty = policy.slope.amount(metrics)
        roughness_penalty = policy.roughness.amount(metrics)

        adjustment = policy.type_adjustments.get(analysis_type)
        type_penalty = adjustment.amount(metrics) if adjustment else 0.0

        score = clamp_unit(policy.base - slope_penalty - roughness_penalty - type_penalty)

        logger.debug(
            f"Accessibility {score:.2f} for {analysis_type.value}: "
            f"slope -{slope_penalty}, roughness -{roughness_penalty}, type -{type_penalty}"
        )
        return score

    def flood_risk_score(
        self, metrics: TerrainMetrics, analysis_type: AnalysisType
    ) -> float:
        """
        Flood susceptibility of the terrain, 0 (low) to 1 (high).

        analysis_type is accepted for symmetry with accessibility_score but
        does not change the result.

        Returns:
            Score clamped to [0, 1]
        """
        policy = self.flood_risk_policy
        score = clamp_unit(policy.base + policy.factors.amount(metrics))

        logger.debug(f"Flood risk {score:.2f} for {analysis_type.value}")
        return score


def calculate_accessibility_score(
    metrics: TerrainMetrics, analysis_type: AnalysisType
) -> float:
    """Accessibility score under the default policy."""
    return ScoringEngine().accessibility_score(metrics, analysis_type)


def calculate_flood_risk_score(
    metrics: TerrainMetrics, analysis_type: AnalysisType
) -> float:
    """Flood-risk score under the default policy."""
    return ScoringEngine().flood_risk_score(metrics, analysis_type)
