"""
Demonstration of terrain analysis capabilities.

This script builds a synthetic hill out of elevation samples, analyses a few
areas over it, queries the stored analyses and plans routes across it.
"""

import numpy as np
from shapely.geometry import box

from relief.core.errors import NoElevationDataError
from relief.core.logging_config import setup_logging
from relief.core.storage import InMemoryAnalysisStore
from relief.core.terrain import (
    InMemoryElevationSource,
    TerrainAnalysisService,
    TerrainRoutingService,
    pairwise_slope_statistics,
)
from relief.models import AnalysisType, Coordinate, ElevationSample, ElevationSource


def create_synthetic_samples(size: int = 20, spacing_deg: float = 0.001) -> list:
    """Create samples over a Gaussian hill centred in a square grid."""
    coords = np.arange(size) * spacing_deg
    xx, yy = np.meshgrid(coords, coords)

    center = coords[size // 2]
    distance = np.sqrt((xx - center) ** 2 + (yy - center) ** 2)

    # ~80 m hill on a 5 m plain, with a little noise
    elevation = 5 + 80 * np.exp(-distance**2 / (2 * (size * spacing_deg / 6) ** 2))
    elevation += np.random.normal(0, 0.5, elevation.shape)

    return [
        ElevationSample(
            x=float(x), y=float(y), elevation=float(z), source=ElevationSource.SRTM
        )
        for x, y, z in zip(xx.ravel(), yy.ravel(), elevation.ravel())
    ]


def demo_area_analysis(service: TerrainAnalysisService):
    """Demonstrate analysing areas on the plain and on the hill."""
    print("=" * 60)
    print("DEMO 1: Area Analysis")
    print("=" * 60)

    areas = {
        "Plain (south-west corner)": box(0.0, 0.0, 0.003, 0.003),
        "Hill summit": box(0.008, 0.008, 0.012, 0.012),
    }

    for name, area in areas.items():
        for analysis_type in AnalysisType:
            analysis = service.analyze(area, analysis_type)
            metrics = analysis.metrics
            print(f"\n{name} [{analysis_type.value}]")
            print(f"  Elevation: {metrics.min_elevation:.1f}m - {metrics.max_elevation:.1f}m")
            print(f"  Max slope: {metrics.slope_maximum:.2f}°")
            print(f"  Roughness: {metrics.roughness_index:.2f}")
            print(f"  Accessibility: {analysis.accessibility_score:.2f}")
            print(f"  Flood risk: {analysis.flood_risk_score:.2f}")

    try:
        service.analyze(box(1.0, 1.0, 1.1, 1.1), AnalysisType.ROUTING)
    except NoElevationDataError as e:
        print(f"\nArea without data: {e}")


def demo_queries(service: TerrainAnalysisService):
    """Demonstrate querying stored analyses."""
    print("\n" + "=" * 60)
    print("DEMO 2: Querying Stored Analyses")
    print("=" * 60)

    latest = service.analysis_for_point(0.001, 0.001)
    if latest:
        print(f"\nLatest analysis at (0.001, 0.001): {latest.analysis_type.value}")

    accessible = service.find_accessible_areas(0.8, max_slope=10.0)
    print(f"Accessible areas (score >= 0.8, slope <= 10°): {len(accessible)}")

    flood_prone = service.find_flood_prone_areas(0.7)
    print(f"Flood-prone areas (risk >= 0.7): {len(flood_prone)}")


def demo_path_vs_pairwise(samples: list):
    """Demonstrate the difference between path slope and pairwise slope."""
    print("\n" + "=" * 60)
    print("DEMO 3: Path Slope vs Pairwise Slope")
    print("=" * 60)

    transect = [s for s in samples if abs(s.y - 0.01) < 1e-9]
    stats = pairwise_slope_statistics(transect)
    print(f"\nWest-east transect of {len(transect)} samples:")
    print(f"  Pairwise mean slope: {stats['mean']:.2f}° over {stats['pair_count']} pairs")
    print(f"  Pairwise max slope:  {stats['max']:.2f}°")


def demo_routing(source: InMemoryElevationSource):
    """Demonstrate terrain-aware routing."""
    print("\n" + "=" * 60)
    print("DEMO 4: Terrain-Aware Routing")
    print("=" * 60)

    routing = TerrainRoutingService(source)
    start = Coordinate(0.0, 0.01)
    end = Coordinate(0.019, 0.01)

    for index, route in enumerate(routing.find_alternative_routes(start, end), start=1):
        print(f"\nRoute {index}:")
        print(f"  Distance: {route.total_distance_m:.0f}m over {len(route.segments)} segments")
        print(f"  Climb/descent: +{route.total_elevation_gain:.1f}m / -{route.total_elevation_loss:.1f}m")
        print(f"  Max slope: {route.max_slope:.2f}°")
        print(f"  Difficulty: {route.difficulty_score:.2f}")
        print(f"  Accessible: {route.is_accessible} ({route.accessibility_score:.0%} of segments)")


def main():
    """Run all demonstrations."""
    setup_logging(log_level="WARNING")

    print("\n" + "=" * 60)
    print("RELIEF TERRAIN ANALYSIS DEMONSTRATION")
    print("=" * 60)
    print("\nThis demo showcases terrain metrics, accessibility and flood-risk")
    print("scoring, and terrain-aware routing over a synthetic hill.\n")

    # Set random seed for reproducibility
    np.random.seed(42)

    samples = create_synthetic_samples()
    source = InMemoryElevationSource(samples)
    service = TerrainAnalysisService(source, InMemoryAnalysisStore())

    demo_area_analysis(service)
    demo_queries(service)
    demo_path_vs_pairwise(samples)
    demo_routing(source)

    print("\n" + "=" * 60)
    print("DEMONSTRATION COMPLETE")
    print("=" * 60)
    print("\nFor more information, see:")
    print("  - src/relief/core/terrain/analysis.py")
    print("  - src/relief/core/terrain/routing.py")
    print("  - tests/test_terrain/test_analysis.py")
    print()


if __name__ == "__main__":
    main()
