"""
Terrain-aware routing data models.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, NamedTuple, Optional

from relief.core.config import Settings, settings


class Coordinate(NamedTuple):
    """Longitude/latitude pair."""

    lon: float
    lat: float


@dataclass(frozen=True)
class RouteSegment:
    """
    Straight leg of a route between two locations.

    Attributes:
        start: Segment start
        end: Segment end
        distance_m: Horizontal length in meters
        slope: Signed slope in degrees (positive uphill)
        elevation_gain: Meters climbed along the segment
        elevation_loss: Meters descended along the segment
    """

    start: Coordinate
    end: Coordinate
    distance_m: float
    slope: float
    elevation_gain: float
    elevation_loss: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert segment to dictionary."""
        return {
            "start": {"lon": self.start.lon, "lat": self.start.lat},
            "end": {"lon": self.end.lon, "lat": self.end.lat},
            "distance_m": float(self.distance_m),
            "slope": float(self.slope),
            "elevation_gain": float(self.elevation_gain),
            "elevation_loss": float(self.elevation_loss),
        }


@dataclass(frozen=True)
class TerrainRoute:
    """
    A route with its terrain profile.

    Attributes:
        start: Route origin
        end: Route destination
        segments: Ordered legs from start to end
        total_distance_m: Sum of segment distances
        total_elevation_gain: Sum of segment gains
        total_elevation_loss: Sum of segment losses
        max_slope: Largest segment slope magnitude (degrees)
        avg_slope: Mean segment slope magnitude (degrees)
        difficulty_score: Distance-weighted difficulty (1.0 = easy)
        accessibility_score: Fraction of segments within the slope limit
        is_accessible: Whether accessibility_score meets the requested minimum
    """

    start: Coordinate
    end: Coordinate
    segments: List[RouteSegment]
    total_distance_m: float
    total_elevation_gain: float
    total_elevation_loss: float
    max_slope: float
    avg_slope: float
    difficulty_score: float
    accessibility_score: float
    is_accessible: bool

    def to_dict(self) -> Dict[str, Any]:
        """Convert route to dictionary."""
        return {
            "start": {"lon": self.start.lon, "lat": self.start.lat},
            "end": {"lon": self.end.lon, "lat": self.end.lat},
            "segments": [segment.to_dict() for segment in self.segments],
            "total_distance_m": float(self.total_distance_m),
            "total_elevation_gain": float(self.total_elevation_gain),
            "total_elevation_loss": float(self.total_elevation_loss),
            "max_slope": float(self.max_slope),
            "avg_slope": float(self.avg_slope),
            "difficulty_score": float(self.difficulty_score),
            "accessibility_score": float(self.accessibility_score),
            "is_accessible": self.is_accessible,
        }


@dataclass
class TerrainRoutingOptions:
    """
    Tunables for terrain-aware routing.

    Attributes:
        search_radius_m: Corridor half-width used to collect elevation samples
        max_slope: Largest acceptable slope magnitude (degrees)
        min_accessibility_score: Minimum fraction of acceptable segments
        waypoint_offset_m: Perpendicular offset of detour waypoints
        max_alternative_routes: Upper bound on routes returned
    """

    search_radius_m: float = 1000.0
    max_slope: float = 15.0
    min_accessibility_score: float = 0.7
    waypoint_offset_m: float = 500.0
    max_alternative_routes: int = 3

    def __post_init__(self) -> None:
        """Validate options."""
        if self.search_radius_m <= 0:
            raise ValueError("search_radius_m must be positive")
        if self.max_slope <= 0:
            raise ValueError("max_slope must be positive")
        if not 0.0 <= self.min_accessibility_score <= 1.0:
            raise ValueError("min_accessibility_score must be within [0, 1]")
        if self.max_alternative_routes < 1:
            raise ValueError("max_alternative_routes must be at least 1")

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "TerrainRoutingOptions":
        """Build options from the routing_* settings."""
        config = config or settings
        return cls(
            search_radius_m=config.routing_search_radius_m,
            max_slope=config.routing_max_slope_degrees,
            min_accessibility_score=config.routing_min_accessibility_score,
            waypoint_offset_m=config.routing_waypoint_offset_m,
            max_alternative_routes=config.routing_max_alternative_routes,
        )
