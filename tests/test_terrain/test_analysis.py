"""
Tests for the terrain analysis service.
"""

import threading
import time
from typing import List

import pytest
from shapely.geometry import LineString, Point, Polygon, box

from relief.core.errors import (
    ElevationSourceTimeoutError,
    GeometryError,
    NoElevationDataError,
    ValidationError,
)
from relief.core.storage import InMemoryAnalysisStore
from relief.core.terrain.analysis import TerrainAnalysisService
from relief.core.terrain.elevation import InMemoryElevationSource
from relief.models.terrain import AnalysisType, ElevationSample


class SlowElevationSource(InMemoryElevationSource):
    """Elevation source whose sample fetch blocks until released."""

    def __init__(self, samples: List[ElevationSample]) -> None:
        super().__init__(samples)
        self.release = threading.Event()

    def points_in_bounds(self, min_x, min_y, max_x, max_y):
        self.release.wait(timeout=5.0)
        return super().points_in_bounds(min_x, min_y, max_x, max_y)


class FailingStore(InMemoryAnalysisStore):
    """Store whose save always fails."""

    def save(self, analysis):
        raise RuntimeError("store unavailable")


@pytest.fixture
def lowland_samples() -> List[ElevationSample]:
    """Four low, nearly flat samples about 110 m apart."""
    return [
        ElevationSample(x=0.001, y=0.001, elevation=5.0),
        ElevationSample(x=0.002, y=0.001, elevation=5.5),
        ElevationSample(x=0.002, y=0.002, elevation=6.0),
        ElevationSample(x=0.001, y=0.002, elevation=5.0),
    ]


@pytest.fixture
def area() -> Polygon:
    """Square analysis area around the lowland samples."""
    return box(0.0, 0.0, 0.003, 0.003)


@pytest.fixture
def store() -> InMemoryAnalysisStore:
    return InMemoryAnalysisStore()


@pytest.fixture
def service(lowland_samples, store) -> TerrainAnalysisService:
    return TerrainAnalysisService(InMemoryElevationSource(lowland_samples), store)


class TestAnalyze:
    """Tests for TerrainAnalysisService.analyze."""

    def test_happy_path(
        self, service: TerrainAnalysisService, store: InMemoryAnalysisStore, area: Polygon
    ) -> None:
        """Test that an analysis is computed, scored and stored."""
        analysis = service.analyze(area, AnalysisType.ROUTING)

        assert analysis.id is not None
        assert analysis.analysis_timestamp is not None
        assert analysis.area.equals(area)
        assert analysis.metrics.min_elevation == 5.0
        assert analysis.metrics.max_elevation == 6.0
        assert 0.0 <= analysis.accessibility_score <= 1.0
        # Low (<10), flat (<2 deg) and smooth (<100 variance)
        assert analysis.flood_risk_score == 1.0
        assert len(store) == 1
        assert store.get(analysis.id) == analysis

    def test_no_elevation_data(self, store: InMemoryAnalysisStore) -> None:
        """Test that an empty envelope fails without writing to the store."""
        service = TerrainAnalysisService(InMemoryElevationSource(), store)

        with pytest.raises(NoElevationDataError) as exc_info:
            service.analyze(box(10.0, 10.0, 11.0, 11.0), AnalysisType.EMERGENCY_RESPONSE)

        assert exc_info.value.details["bounds"] == [10.0, 10.0, 11.0, 11.0]
        assert exc_info.value.status_code == 404
        assert len(store) == 0

    def test_envelope_not_polygon_filters(self, store: InMemoryAnalysisStore) -> None:
        """Test that samples outside the polygon but inside its envelope count."""
        triangle = Polygon([(0.0, 0.0), (0.01, 0.0), (0.0, 0.01)])
        # Inside the bounding box, outside the triangle
        outside = ElevationSample(x=0.009, y=0.009, elevation=500.0)
        inside = ElevationSample(x=0.001, y=0.001, elevation=10.0)
        service = TerrainAnalysisService(InMemoryElevationSource([inside, outside]), store)

        assert not triangle.intersects(Point(outside.x, outside.y))

        analysis = service.analyze(triangle, AnalysisType.ACCESSIBILITY)
        assert analysis.metrics.max_elevation == 500.0
        assert analysis.metrics.min_elevation == 10.0

    def test_only_outside_envelope(self, store: InMemoryAnalysisStore) -> None:
        """Test that samples outside the envelope are ignored."""
        source = InMemoryElevationSource([ElevationSample(x=1.0, y=1.0, elevation=3.0)])
        service = TerrainAnalysisService(source, store)

        with pytest.raises(NoElevationDataError):
            service.analyze(box(0.0, 0.0, 0.5, 0.5), AnalysisType.ROUTING)

    def test_rejects_non_polygon(self, service: TerrainAnalysisService) -> None:
        """Test that an invalid area raises GeometryError."""
        with pytest.raises(GeometryError):
            service.analyze(LineString([(0, 0), (1, 1)]), AnalysisType.ROUTING)

    def test_low_ridge_scenario(self, store: InMemoryAnalysisStore) -> None:
        """Test 5/8/6 m samples ~100 m apart for emergency response."""
        step = 100.0 / 111_195.0
        samples = [
            ElevationSample(x=0.0, y=0.0, elevation=5.0),
            ElevationSample(x=0.0, y=step, elevation=8.0),
            ElevationSample(x=0.0, y=2 * step, elevation=6.0),
        ]
        service = TerrainAnalysisService(InMemoryElevationSource(samples), store)

        analysis = service.analyze(box(-0.001, -0.001, 0.001, 0.003), AnalysisType.EMERGENCY_RESPONSE)

        assert analysis.metrics.min_elevation == 5.0
        assert analysis.metrics.max_elevation == 8.0
        assert analysis.metrics.avg_elevation == pytest.approx(6.33, abs=0.01)
        assert 0.8 <= analysis.flood_risk_score <= 1.0

    def test_source_failure_propagates(self, store: InMemoryAnalysisStore, area: Polygon) -> None:
        """Test that elevation source errors reach the caller unchanged."""

        class BrokenSource(InMemoryElevationSource):
            def points_in_bounds(self, min_x, min_y, max_x, max_y):
                raise ConnectionError("elevation database unavailable")

        service = TerrainAnalysisService(BrokenSource(), store)
        with pytest.raises(ConnectionError):
            service.analyze(area, AnalysisType.ROUTING)
        assert len(store) == 0

    def test_store_failure_propagates(self, lowland_samples, area: Polygon) -> None:
        """Test that store errors reach the caller unchanged."""
        service = TerrainAnalysisService(InMemoryElevationSource(lowland_samples), FailingStore())
        with pytest.raises(RuntimeError, match="store unavailable"):
            service.analyze(area, AnalysisType.ROUTING)

    def test_fetch_timeout(self, lowland_samples, store: InMemoryAnalysisStore, area: Polygon) -> None:
        """Test that a slow sample fetch is abandoned after the timeout."""
        source = SlowElevationSource(lowland_samples)
        service = TerrainAnalysisService(source, store, fetch_timeout=0.05)

        try:
            with pytest.raises(ElevationSourceTimeoutError) as exc_info:
                service.analyze(area, AnalysisType.ROUTING)
        finally:
            source.release.set()

        assert exc_info.value.details["timeout_seconds"] == 0.05
        assert len(store) == 0

    def test_fetch_within_timeout(self, lowland_samples, store: InMemoryAnalysisStore, area: Polygon) -> None:
        """Test that a fetch finishing in time succeeds."""
        source = SlowElevationSource(lowland_samples)
        source.release.set()
        service = TerrainAnalysisService(source, store, fetch_timeout=5.0)

        analysis = service.analyze(area, AnalysisType.ROUTING)
        assert analysis.metrics.max_elevation == 6.0

    def test_concurrent_analyses(self, service: TerrainAnalysisService, store: InMemoryAnalysisStore, area: Polygon) -> None:
        """Test that independent analyses can run from several threads."""
        errors = []

        def run() -> None:
            try:
                service.analyze(area, AnalysisType.ACCESSIBILITY)
            except Exception as e:  # pragma: no cover - reported below
                errors.append(e)

        threads = [threading.Thread(target=run) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(store) == 8
        assert len(set(store.list_ids())) == 8


class TestQueries:
    """Tests for the read-side queries of TerrainAnalysisService."""

    def test_analysis_for_point(self, service: TerrainAnalysisService, area: Polygon) -> None:
        """Test that the newest analysis covering a point is returned."""
        first = service.analyze(area, AnalysisType.ROUTING)
        time.sleep(0.001)
        second = service.analyze(area, AnalysisType.ACCESSIBILITY)

        assert service.analysis_for_point(0.0015, 0.0015) == second
        assert service.analysis_for_point(0.0015, 0.0015) != first
        assert service.analysis_for_point(5.0, 5.0) is None

    def test_analyses_for_area(self, service: TerrainAnalysisService, area: Polygon) -> None:
        """Test intersection lookup."""
        service.analyze(area, AnalysisType.ROUTING)
        assert len(service.analyses_for_area(box(0.002, 0.002, 0.01, 0.01))) == 1
        assert service.analyses_for_area(box(1.0, 1.0, 2.0, 2.0)) == []

    def test_find_accessible_areas(self, service: TerrainAnalysisService, area: Polygon) -> None:
        """Test filtering by accessibility score and maximum slope."""
        analysis = service.analyze(area, AnalysisType.ROUTING)

        assert service.find_accessible_areas(0.5, max_slope=90.0) == [analysis]
        assert service.find_accessible_areas(0.5, max_slope=-1.0) == []

    def test_find_accessible_areas_invalid_score(self, service: TerrainAnalysisService) -> None:
        """Test that a score outside [0, 1] is rejected."""
        with pytest.raises(ValidationError):
            service.find_accessible_areas(1.5, max_slope=10.0)

    def test_find_flood_prone_areas(self, service: TerrainAnalysisService, area: Polygon) -> None:
        """Test filtering by flood-risk score."""
        analysis = service.analyze(area, AnalysisType.EMERGENCY_RESPONSE)

        assert service.find_flood_prone_areas(0.9) == [analysis]
        with pytest.raises(ValidationError):
            service.find_flood_prone_areas(-0.1)
