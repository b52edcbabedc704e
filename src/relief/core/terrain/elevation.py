"""
Elevation data access.

ElevationPointSource is the interface the analysis engine consumes. The
in-memory implementation backs tests, demos and small deployments; a
database-backed source only needs the same three methods.
"""

import logging
import threading
from typing import Iterable, List, Optional, Protocol, Sequence, runtime_checkable

import numpy as np

from relief.core.errors import ValidationError
from relief.core.terrain.geometry import aspect_between, haversine_distance, slope_between
from relief.models.terrain import (
    ElevationSample,
    ElevationSource,
    ElevationStatistics,
    Envelope,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class ElevationPointSource(Protocol):
    """Supplier of elevation samples and the two-point slope/aspect primitives."""

    def points_in_bounds(
        self, min_x: float, min_y: float, max_x: float, max_y: float
    ) -> Sequence[ElevationSample]:
        """Samples inside the rectangle, edges included."""
        ...

    def slope(
        self, x1: float, y1: float, z1: float, x2: float, y2: float, z2: float
    ) -> float:
        """Signed slope in degrees from the first point to the second."""
        ...

    def aspect(self, x1: float, y1: float, x2: float, y2: float) -> float:
        """Compass bearing in degrees from the first point to the second."""
        ...


def _validate_bounds(min_x: float, min_y: float, max_x: float, max_y: float) -> Envelope:
    if min_x > max_x:
        raise ValidationError(
            f"min_x ({min_x}) must not exceed max_x ({max_x})", field="min_x"
        )
    if min_y > max_y:
        raise ValidationError(
            f"min_y ({min_y}) must not exceed max_y ({max_y})", field="min_y"
        )
    return Envelope(min_x, min_y, max_x, max_y)


class InMemoryElevationSource:
    """
    Elevation samples held in process memory.

    Samples are immutable, so queries hand out the stored objects directly.
    A lock guards the sample list against concurrent imports.
    """

    def __init__(self, samples: Optional[Iterable[ElevationSample]] = None) -> None:
        self._samples: List[ElevationSample] = list(samples or [])
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._samples)

    def _snapshot(self) -> List[ElevationSample]:
        with self._lock:
            return list(self._samples)

    def points_in_bounds(
        self, min_x: float, min_y: float, max_x: float, max_y: float
    ) -> List[ElevationSample]:
        """
        Samples inside a bounding box, nearest to the box centre first.

        Args:
            min_x: Western edge (longitude)
            min_y: Southern edge (latitude)
            max_x: Eastern edge (longitude)
            max_y: Northern edge (latitude)

        Returns:
            Samples ordered by distance from the centre of the box

        Raises:
            ValidationError: If the box is inverted
        """
        envelope = _validate_bounds(min_x, min_y, max_x, max_y)
        center_x, center_y = envelope.center

        inside = [s for s in self._snapshot() if envelope.contains(s.x, s.y)]
        inside.sort(key=lambda s: haversine_distance(center_x, center_y, s.x, s.y))

        logger.debug(f"Found {len(inside)} elevation samples in bounds {tuple(envelope)}")
        return inside

    def points_in_radius(
        self, lon: float, lat: float, radius_m: float
    ) -> List[ElevationSample]:
        """Samples within radius_m of (lon, lat), nearest first."""
        if radius_m < 0:
            raise ValidationError("radius_m must not be negative", field="radius_m")

        with_distance = [
            (haversine_distance(lon, lat, s.x, s.y), s) for s in self._snapshot()
        ]
        return [s for d, s in sorted(with_distance, key=lambda item: item[0]) if d <= radius_m]

    def nearest_sample(self, lon: float, lat: float) -> Optional[ElevationSample]:
        """Closest sample to (lon, lat), or None when the source is empty."""
        samples = self._snapshot()
        if not samples:
            return None
        return min(samples, key=lambda s: haversine_distance(lon, lat, s.x, s.y))

    def elevation_at_point(self, lon: float, lat: float) -> Optional[float]:
        """Elevation of the nearest sample, or None when the source is empty."""
        nearest = self.nearest_sample(lon, lat)
        return nearest.elevation if nearest else None

    def statistics_for_bounds(
        self, min_x: float, min_y: float, max_x: float, max_y: float
    ) -> ElevationStatistics:
        """
        Aggregate statistics for the samples inside a bounding box.

        The standard deviation is the sample (n - 1) estimate and is None
        for fewer than two samples.
        """
        samples = self.points_in_bounds(min_x, min_y, max_x, max_y)
        if not samples:
            return ElevationStatistics(None, None, None, None, 0)

        elevations = np.array([s.elevation for s in samples], dtype=np.float64)
        stddev = float(np.std(elevations, ddof=1)) if len(elevations) > 1 else None

        return ElevationStatistics(
            min_elevation=float(np.min(elevations)),
            max_elevation=float(np.max(elevations)),
            avg_elevation=float(np.mean(elevations)),
            elevation_stddev=stddev,
            point_count=len(elevations),
        )

    def add_point(
        self,
        lon: float,
        lat: float,
        elevation: float,
        source: ElevationSource = ElevationSource.UNKNOWN,
        accuracy: Optional[float] = None,
        resolution: Optional[float] = None,
    ) -> ElevationSample:
        """Store a single sample and return it."""
        sample = ElevationSample(
            x=lon,
            y=lat,
            elevation=elevation,
            source=source,
            accuracy=accuracy,
            resolution=resolution,
        )
        with self._lock:
            self._samples.append(sample)
        return sample

    def bulk_import(self, samples: Iterable[ElevationSample]) -> List[ElevationSample]:
        """Store many samples at once and return them."""
        imported = list(samples)
        with self._lock:
            self._samples.extend(imported)
        logger.info(f"Imported {len(imported)} elevation samples")
        return imported

    def slope(
        self, x1: float, y1: float, z1: float, x2: float, y2: float, z2: float
    ) -> float:
        """Signed slope in degrees from the first point to the second."""
        return slope_between(x1, y1, z1, x2, y2, z2)

    def aspect(self, x1: float, y1: float, x2: float, y2: float) -> float:
        """Compass bearing in degrees from the first point to the second."""
        return aspect_between(x1, y1, x2, y2)
