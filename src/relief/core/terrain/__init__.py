"""
Terrain analysis module for Relief.

This module provides:
- Great-circle geometry (distance, slope, aspect)
- Elevation sample sources
- Terrain metrics over sample sequences
- Accessibility and flood-risk scoring
- Analysis orchestration and terrain-aware routing
"""

from relief.core.terrain.geometry import (
    aspect_between,
    bounding_envelope,
    destination_point,
    haversine_distance,
    slope_between,
)
from relief.core.terrain.elevation import (
    ElevationPointSource,
    InMemoryElevationSource,
)
from relief.core.terrain.metrics import (
    PathStep,
    TerrainMetricsCalculator,
    compute_metrics,
    pairwise_slope_statistics,
)
from relief.core.terrain.scoring import (
    AccessibilityPolicy,
    AdditivePenalty,
    BandedPenalty,
    Comparison,
    FloodRiskPolicy,
    PenaltyBand,
    ScoringEngine,
    calculate_accessibility_score,
    calculate_flood_risk_score,
)
from relief.core.terrain.analysis import TerrainAnalysisService
from relief.core.terrain.routing import TerrainRoutingService

__all__ = [
    "aspect_between",
    "bounding_envelope",
    "destination_point",
    "haversine_distance",
    "slope_between",
    "ElevationPointSource",
    "InMemoryElevationSource",
    "PathStep",
    "TerrainMetricsCalculator",
    "compute_metrics",
    "pairwise_slope_statistics",
    "AccessibilityPolicy",
    "AdditivePenalty",
    "BandedPenalty",
    "Comparison",
    "FloodRiskPolicy",
    "PenaltyBand",
    "ScoringEngine",
    "calculate_accessibility_score",
    "calculate_flood_risk_score",
    "TerrainAnalysisService",
    "TerrainRoutingService",
]
