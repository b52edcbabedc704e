"""
Data models and schemas.
"""

from .routing import (
    Coordinate,
    RouteSegment,
    TerrainRoute,
    TerrainRoutingOptions,
)
from .terrain import (
    AnalysisType,
    ElevationSample,
    ElevationSource,
    ElevationStatistics,
    Envelope,
    TerrainAnalysis,
    TerrainMetrics,
)

__all__ = [
    # Terrain models
    "AnalysisType",
    "ElevationSample",
    "ElevationSource",
    "ElevationStatistics",
    "Envelope",
    "TerrainAnalysis",
    "TerrainMetrics",
    # Routing models
    "Coordinate",
    "RouteSegment",
    "TerrainRoute",
    "TerrainRoutingOptions",
]
