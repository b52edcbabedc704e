"""
Terrain-aware routing between two locations.

A route is built from the elevation samples found in a corridor around the
straight line from start to end. Samples are visited in order of distance
from the start, giving a chain of straight segments whose slopes drive a
difficulty score and an accessibility fraction.
"""

import logging
from typing import List, Optional, Protocol, Sequence

import numpy as np
from shapely.geometry import LineString

from relief.core.terrain.elevation import ElevationPointSource
from relief.core.terrain.geometry import aspect_between, destination_point, haversine_distance
from relief.models.routing import Coordinate, RouteSegment, TerrainRoute, TerrainRoutingOptions
from relief.models.terrain import ElevationSample

logger = logging.getLogger(__name__)

# Approximate meters per degree, used only to size the search corridor
METERS_PER_DEGREE = 111_000.0

# Elevation change (m) above which a segment counts as a major climb/descent
MAJOR_ELEVATION_CHANGE_M = 100.0


class RoutingElevationSource(ElevationPointSource, Protocol):
    """Elevation source that can also answer point elevation lookups."""

    def elevation_at_point(self, lon: float, lat: float) -> Optional[float]:
        """Elevation at (lon, lat), or None when unknown."""
        ...


class TerrainRoutingService:
    """
    Compute routes annotated with slope, elevation change and difficulty.
    """

    def __init__(self, elevation_source: RoutingElevationSource):
        """
        Initialize the routing service.

        Args:
            elevation_source: Samples, point elevations and the slope primitive
        """
        self.elevation_source = elevation_source

    def calculate_route(
        self,
        start: Coordinate,
        end: Coordinate,
        options: Optional[TerrainRoutingOptions] = None,
    ) -> TerrainRoute:
        """
        Route from start to end through the samples in the search corridor.

        With no samples in the corridor a straight-line route is returned,
        treated as flat and fully accessible.

        Args:
            start: Origin
            end: Destination
            options: Routing tunables (default: from settings)

        Returns:
            TerrainRoute
        """
        options = options or TerrainRoutingOptions.from_settings()
        logger.info(f"Calculating terrain route from {tuple(start)} to {tuple(end)}")

        samples = self._samples_along(start, end, options.search_radius_m)
        if not samples:
            logger.debug("No elevation samples in corridor, using straight-line route")
            return self._straight_line_route(start, end)

        segments = self._build_segments(start, end, samples)
        return self._assemble(start, end, segments, options)

    def find_alternative_routes(
        self,
        start: Coordinate,
        end: Coordinate,
        options: Optional[TerrainRoutingOptions] = None,
    ) -> List[TerrainRoute]:
        """
        Direct route plus detours through waypoints either side of it.

        Detours are kept only when both legs are accessible. Results are
        ordered by accessibility (highest first), then distance (shortest
        first), and limited to options.max_alternative_routes.
        """
        options = options or TerrainRoutingOptions.from_settings()
        routes = [self.calculate_route(start, end, options)]

        for waypoint in self._waypoints(start, end, options.waypoint_offset_m):
            first_leg = self.calculate_route(start, waypoint, options)
            second_leg = self.calculate_route(waypoint, end, options)
            if first_leg.is_accessible and second_leg.is_accessible:
                routes.append(_combine_routes(first_leg, second_leg))

        routes.sort(key=lambda r: (-r.accessibility_score, r.total_distance_m))
        return routes[: options.max_alternative_routes]

    def _samples_along(
        self, start: Coordinate, end: Coordinate, search_radius_m: float
    ) -> List[ElevationSample]:
        corridor = LineString([start, end]).buffer(search_radius_m / METERS_PER_DEGREE)
        min_x, min_y, max_x, max_y = corridor.bounds
        samples = list(self.elevation_source.points_in_bounds(min_x, min_y, max_x, max_y))
        samples.sort(key=lambda s: haversine_distance(start.lon, start.lat, s.x, s.y))
        return samples

    def _build_segments(
        self, start: Coordinate, end: Coordinate, samples: Sequence[ElevationSample]
    ) -> List[RouteSegment]:
        stops = [(Coordinate(s.x, s.y), s.elevation) for s in samples]
        stops.append((end, self._elevation_or_zero(end)))

        segments = []
        previous, previous_elevation = start, self._elevation_or_zero(start)
        for location, elevation in stops:
            segments.append(self._segment(previous, previous_elevation, location, elevation))
            previous, previous_elevation = location, elevation
        return segments

    def _segment(
        self, start: Coordinate, start_elevation: float, end: Coordinate, end_elevation: float
    ) -> RouteSegment:
        return RouteSegment(
            start=start,
            end=end,
            distance_m=haversine_distance(start.lon, start.lat, end.lon, end.lat),
            slope=self.elevation_source.slope(
                start.lon, start.lat, start_elevation, end.lon, end.lat, end_elevation
            ),
            elevation_gain=max(0.0, end_elevation - start_elevation),
            elevation_loss=max(0.0, start_elevation - end_elevation),
        )

    def _elevation_or_zero(self, location: Coordinate) -> float:
        elevation = self.elevation_source.elevation_at_point(location.lon, location.lat)
        return elevation if elevation is not None else 0.0

    def _assemble(
        self,
        start: Coordinate,
        end: Coordinate,
        segments: List[RouteSegment],
        options: TerrainRoutingOptions,
    ) -> TerrainRoute:
        slopes = np.abs(np.array([s.slope for s in segments], dtype=np.float64))
        accessibility = route_accessibility(segments, options.max_slope)

        return TerrainRoute(
            start=start,
            end=end,
            segments=segments,
            total_distance_m=float(sum(s.distance_m for s in segments)),
            total_elevation_gain=float(sum(s.elevation_gain for s in segments)),
            total_elevation_loss=float(sum(s.elevation_loss for s in segments)),
            max_slope=float(np.max(slopes)),
            avg_slope=float(np.mean(slopes)),
            difficulty_score=difficulty_score(segments, options.max_slope),
            accessibility_score=accessibility,
            is_accessible=accessibility >= options.min_accessibility_score,
        )

    def _straight_line_route(self, start: Coordinate, end: Coordinate) -> TerrainRoute:
        distance = haversine_distance(start.lon, start.lat, end.lon, end.lat)
        segment = RouteSegment(start, end, distance, 0.0, 0.0, 0.0)
        return TerrainRoute(
            start=start,
            end=end,
            segments=[segment],
            total_distance_m=distance,
            total_elevation_gain=0.0,
            total_elevation_loss=0.0,
            max_slope=0.0,
            avg_slope=0.0,
            difficulty_score=1.0,
            accessibility_score=1.0,
            is_accessible=True,
        )

    @staticmethod
    def _waypoints(start: Coordinate, end: Coordinate, offset_m: float) -> List[Coordinate]:
        mid_lon = (start.lon + end.lon) / 2
        mid_lat = (start.lat + end.lat) / 2
        bearing = aspect_between(start.lon, start.lat, end.lon, end.lat)

        return [
            destination_point(mid_lon, mid_lat, (bearing + 90.0) % 360.0, offset_m),
            destination_point(mid_lon, mid_lat, (bearing - 90.0 + 360.0) % 360.0, offset_m),
        ]


def difficulty_score(segments: Sequence[RouteSegment], max_slope: float) -> float:
    """
    Distance-weighted mean difficulty of a route.

    Each segment starts at 1.0 and gains 2.0 above max_slope (or 1.0 above
    half of it), 1.0 for a major climb and 0.5 for a major descent.
    Returns 0.0 for a route of zero length.
    """
    total_difficulty = 0.0
    total_distance = 0.0

    for segment in segments:
        difficulty = 1.0
        magnitude = abs(segment.slope)
        if magnitude > max_slope:
            difficulty += 2.0
        elif magnitude > max_slope / 2:
            difficulty += 1.0

        if segment.elevation_gain > MAJOR_ELEVATION_CHANGE_M:
            difficulty += 1.0
        if segment.elevation_loss > MAJOR_ELEVATION_CHANGE_M:
            difficulty += 0.5

        total_difficulty += difficulty * segment.distance_m
        total_distance += segment.distance_m

    return total_difficulty / total_distance if total_distance > 0 else 0.0


def route_accessibility(segments: Sequence[RouteSegment], max_slope: float) -> float:
    """Fraction of segments whose slope magnitude is within max_slope."""
    if not segments:
        return 0.0
    accessible = sum(1 for s in segments if abs(s.slope) <= max_slope)
    return accessible / len(segments)


def _combine_routes(first: TerrainRoute, second: TerrainRoute) -> TerrainRoute:
    total_distance = first.total_distance_m + second.total_distance_m
    if total_distance > 0:
        avg_slope = (
            first.avg_slope * first.total_distance_m
            + second.avg_slope * second.total_distance_m
        ) / total_distance
    else:
        avg_slope = 0.0

    return TerrainRoute(
        start=first.start,
        end=second.end,
        segments=first.segments + second.segments,
        total_distance_m=total_distance,
        total_elevation_gain=first.total_elevation_gain + second.total_elevation_gain,
        total_elevation_loss=first.total_elevation_loss + second.total_elevation_loss,
        max_slope=max(first.max_slope, second.max_slope),
        avg_slope=avg_slope,
        difficulty_score=(first.difficulty_score + second.difficulty_score) / 2,
        accessibility_score=min(first.accessibility_score, second.accessibility_score),
        is_accessible=first.is_accessible and second.is_accessible,
    )
