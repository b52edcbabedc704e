"""
Terrain metrics over a set of elevation samples.

Two different slope summaries live here:

- Path slope (used by TerrainMetrics): slope and aspect between consecutive
  samples in the order supplied, i.e. along an ordered traversal. Reordering
  the samples changes the result.
- Pairwise slope (pairwise_slope_statistics): slope magnitude over every
  pair of samples, independent of order. Not part of TerrainMetrics.
"""

import logging
from dataclasses import dataclass
from itertools import combinations
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from relief.core.terrain.elevation import ElevationPointSource
from relief.core.terrain.geometry import aspect_between, slope_between
from relief.models.terrain import ElevationSample, TerrainMetrics

logger = logging.getLogger(__name__)

SlopeFn = Callable[[float, float, float, float, float, float], float]
AspectFn = Callable[[float, float, float, float], float]


@dataclass(frozen=True)
class PathStep:
    """Slope and aspect from one sample to the next along a traversal."""

    slope: float
    aspect: float


class TerrainMetricsCalculator:
    """
    Aggregate elevation samples into TerrainMetrics.

    The slope and aspect primitives are taken from an ElevationPointSource
    when one is given, otherwise the planar primitives in
    relief.core.terrain.geometry are used.
    """

    def __init__(self, source: Optional[ElevationPointSource] = None):
        """
        Initialize the calculator.

        Args:
            source: Collaborator supplying slope() and aspect()
        """
        self._slope: SlopeFn = source.slope if source is not None else slope_between
        self._aspect: AspectFn = source.aspect if source is not None else aspect_between

    def path_steps(self, samples: Sequence[ElevationSample]) -> List[PathStep]:
        """
        Slope and aspect between each sample and the next, in input order.

        Args:
            samples: Samples ordered along a traversal

        Returns:
            len(samples) - 1 steps (empty for fewer than two samples)
        """
        steps = []
        for first, second in zip(samples, samples[1:]):
            slope = self._slope(
                first.x, first.y, first.elevation, second.x, second.y, second.elevation
            )
            aspect = self._aspect(first.x, first.y, second.x, second.y)
            steps.append(PathStep(slope=slope, aspect=aspect))
        return steps

    def compute_metrics(self, samples: Sequence[ElevationSample]) -> TerrainMetrics:
        """
        Compute terrain metrics for a sample set.

        Args:
            samples: Samples in traversal order; may be empty

        Returns:
            TerrainMetrics; the all-zero record for an empty input
        """
        if len(samples) == 0:
            return TerrainMetrics.empty()

        elevations = np.array([s.elevation for s in samples], dtype=np.float64)

        min_elev = float(np.min(elevations))
        max_elev = float(np.max(elevations))
        # Rounding in the mean can land a hair outside [min, max]
        avg_elev = float(np.clip(np.mean(elevations), min_elev, max_elev))
        variance = float(np.mean((elevations - avg_elev) ** 2))

        steps = self.path_steps(samples)
        if steps:
            slopes = np.abs(np.array([step.slope for step in steps], dtype=np.float64))
            aspects = np.array([step.aspect for step in steps], dtype=np.float64)
            slope_avg = float(np.mean(slopes))
            slope_max = float(np.max(slopes))
            aspect_avg = float(np.mean(aspects))
        else:
            slope_avg = slope_max = aspect_avg = 0.0

        metrics = TerrainMetrics(
            min_elevation=min_elev,
            max_elevation=max_elev,
            avg_elevation=avg_elev,
            elevation_variance=variance,
            slope_average=slope_avg,
            slope_maximum=slope_max,
            aspect_average=aspect_avg,
            roughness_index=float(np.sqrt(variance)),
        )

        logger.debug(
            f"Computed metrics over {len(samples)} samples: "
            f"elevation {min_elev:.2f}-{max_elev:.2f}m, max slope {slope_max:.2f}deg"
        )
        return metrics

    def pairwise_slope_statistics(
        self, samples: Sequence[ElevationSample]
    ) -> Dict[str, Any]:
        """
        Slope magnitude statistics over every pair of samples.

        This is order-independent, unlike the path slope in compute_metrics,
        and costs O(n^2) primitive calls.

        Returns:
            Dictionary with mean, max and std of |slope| and the pair count
        """
        slopes = [
            abs(self._slope(a.x, a.y, a.elevation, b.x, b.y, b.elevation))
            for a, b in combinations(samples, 2)
        ]
        if not slopes:
            return {"mean": 0.0, "max": 0.0, "std": 0.0, "pair_count": 0}

        values = np.array(slopes, dtype=np.float64)
        return {
            "mean": float(np.mean(values)),
            "max": float(np.max(values)),
            "std": float(np.std(values)),
            "pair_count": len(slopes),
        }


def compute_metrics(
    samples: Sequence[ElevationSample], source: Optional[ElevationPointSource] = None
) -> TerrainMetrics:
    """
    Convenience function to compute terrain metrics.

    Example:
        >>> compute_metrics([]) == TerrainMetrics.empty()
        True
    """
    return TerrainMetricsCalculator(source).compute_metrics(samples)


def pairwise_slope_statistics(
    samples: Sequence[ElevationSample], source: Optional[ElevationPointSource] = None
) -> Dict[str, Any]:
    """Convenience function for order-independent slope statistics."""
    return TerrainMetricsCalculator(source).pairwise_slope_statistics(samples)
