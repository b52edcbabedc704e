"""
Geometric primitives over longitude/latitude points.

Slope is a planar approximation: the horizontal run between two points is
their great-circle (haversine) distance and the rise is their elevation
difference. This is adequate for coarse suitability scoring, not for
survey-grade terrain derivatives.
"""

import math
from typing import Optional

from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry

from relief.core.config import settings
from relief.core.errors import GeometryError
from relief.models.terrain import Envelope
from relief.models.routing import Coordinate


def haversine_distance(
    lon1: float, lat1: float, lon2: float, lat2: float, radius_m: Optional[float] = None
) -> float:
    """
    Great-circle distance between two points in meters.

    Args:
        lon1: Longitude of the first point
        lat1: Latitude of the first point
        lon2: Longitude of the second point
        lat2: Latitude of the second point
        radius_m: Sphere radius (default: settings.earth_radius_m)

    Returns:
        Distance in meters
    """
    radius = radius_m if radius_m is not None else settings.earth_radius_m

    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return radius * c


def slope_between(
    x1: float, y1: float, z1: float, x2: float, y2: float, z2: float
) -> float:
    """
    Signed slope in degrees going from point 1 to point 2.

    Positive when point 2 is higher. Coincident points have zero slope.

    Example:
        >>> round(slope_between(0.0, 0.0, 0.0, 0.0, 0.0008993, 100.0), 1)
        45.0
    """
    distance = haversine_distance(x1, y1, x2, y2)
    if distance == 0:
        return 0.0

    return math.degrees(math.atan((z2 - z1) / distance))


def aspect_between(x1: float, y1: float, x2: float, y2: float) -> float:
    """
    Compass bearing in degrees [0, 360) from point 1 towards point 2.

    0 is North, 90 East. Coincident points yield 0.
    """
    delta_lon = math.radians(x2 - x1)
    lat1_rad = math.radians(y1)
    lat2_rad = math.radians(y2)

    y = math.sin(delta_lon) * math.cos(lat2_rad)
    x = math.cos(lat1_rad) * math.sin(lat2_rad) - math.sin(lat1_rad) * math.cos(
        lat2_rad
    ) * math.cos(delta_lon)

    bearing = math.degrees(math.atan2(y, x))
    return (bearing + 360.0) % 360.0


def destination_point(
    lon: float, lat: float, bearing: float, distance_m: float
) -> Coordinate:
    """
    Point reached travelling distance_m along a bearing from (lon, lat).

    Args:
        lon: Start longitude
        lat: Start latitude
        bearing: Compass bearing in degrees
        distance_m: Distance to travel in meters

    Returns:
        Destination coordinate
    """
    lat_rad = math.radians(lat)
    lon_rad = math.radians(lon)
    bearing_rad = math.radians(bearing)
    angular = distance_m / settings.earth_radius_m

    new_lat = math.asin(
        math.sin(lat_rad) * math.cos(angular)
        + math.cos(lat_rad) * math.sin(angular) * math.cos(bearing_rad)
    )
    new_lon = lon_rad + math.atan2(
        math.sin(bearing_rad) * math.sin(angular) * math.cos(lat_rad),
        math.cos(angular) - math.sin(lat_rad) * math.sin(new_lat),
    )

    return Coordinate(math.degrees(new_lon), math.degrees(new_lat))


def bounding_envelope(area: BaseGeometry) -> Envelope:
    """
    Axis-aligned bounding rectangle of an analysis area.

    Args:
        area: Polygon in longitude/latitude

    Returns:
        Envelope of the polygon

    Raises:
        GeometryError: If area is not a non-empty Polygon
    """
    if not isinstance(area, Polygon):
        raise GeometryError(
            f"Analysis area must be a Polygon, got {area.geom_type}",
            geometry_type=area.geom_type,
        )
    if area.is_empty:
        raise GeometryError("Analysis area is empty", geometry_type="Polygon")

    min_x, min_y, max_x, max_y = area.bounds
    return Envelope(min_x, min_y, max_x, max_y)
