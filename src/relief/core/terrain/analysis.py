"""
Terrain analysis orchestration.

TerrainAnalysisService ties the pieces together for one area:

    area polygon -> bounding envelope -> elevation samples -> metrics
    -> scores -> TerrainAnalysis -> store

Each analyze() call is self-contained and keeps no state between calls, so
independent areas can be analysed concurrently from several threads.
"""

import concurrent.futures
import logging
from typing import List, Optional, Sequence

from shapely.geometry import Polygon

from relief.core.config import settings
from relief.core.errors import ElevationSourceTimeoutError, NoElevationDataError, ValidationError
from relief.core.storage import AnalysisStore
from relief.core.terrain.elevation import ElevationPointSource
from relief.core.terrain.geometry import bounding_envelope
from relief.core.terrain.metrics import TerrainMetricsCalculator
from relief.core.terrain.scoring import ScoringEngine
from relief.models.terrain import AnalysisType, ElevationSample, Envelope, TerrainAnalysis
from relief.utils.logging import PerformanceTimer, log_performance

logger = logging.getLogger(__name__)


class TerrainAnalysisService:
    """
    Run terrain analyses and query stored results.

    Attributes:
        elevation_source: Collaborator supplying samples and slope/aspect
        store: Collaborator persisting analysis records
        fetch_timeout: Seconds allowed for the sample fetch, None for no limit
    """

    def __init__(
        self,
        elevation_source: ElevationPointSource,
        store: AnalysisStore,
        scoring_engine: Optional[ScoringEngine] = None,
        fetch_timeout: Optional[float] = None,
    ):
        """
        Initialize the service.

        Args:
            elevation_source: Collaborator supplying samples and slope/aspect
            store: Collaborator persisting analysis records
            scoring_engine: Scoring rules (default policies when omitted)
            fetch_timeout: Sample fetch timeout in seconds
                (default: settings.elevation_fetch_timeout_seconds)
        """
        self.elevation_source = elevation_source
        self.store = store
        self.metrics_calculator = TerrainMetricsCalculator(elevation_source)
        self.scoring_engine = scoring_engine or ScoringEngine()
        self.fetch_timeout = (
            fetch_timeout if fetch_timeout is not None
            else settings.elevation_fetch_timeout_seconds
        )

    @log_performance()
    def analyze(self, area: Polygon, analysis_type: AnalysisType) -> TerrainAnalysis:
        """
        Analyse the terrain of an area and persist the result.

        Args:
            area: Polygon in longitude/latitude
            analysis_type: Purpose of the analysis

        Returns:
            The stored TerrainAnalysis

        Raises:
            GeometryError: If area is not a non-empty polygon
            NoElevationDataError: If no samples fall inside the area's envelope
            ElevationSourceTimeoutError: If the sample fetch exceeds fetch_timeout
        """
        envelope = bounding_envelope(area)
        log_extra = {"analysis_type": analysis_type.value}
        logger.info(
            f"Performing terrain analysis for envelope {tuple(envelope)}, "
            f"type {analysis_type.value}",
            extra=log_extra,
        )

        # Samples are selected by the envelope, not the polygon itself:
        # samples outside the polygon but inside its bounding box count.
        samples = self._fetch_samples(envelope)
        if not samples:
            logger.warning(f"No elevation data in envelope {tuple(envelope)}", extra=log_extra)
            raise NoElevationDataError(bounds=tuple(envelope))

        metrics = self.metrics_calculator.compute_metrics(samples)
        analysis = TerrainAnalysis(
            area=area,
            analysis_type=analysis_type,
            metrics=metrics,
            accessibility_score=self.scoring_engine.accessibility_score(metrics, analysis_type),
            flood_risk_score=self.scoring_engine.flood_risk_score(metrics, analysis_type),
        )

        saved = self.store.save(analysis)
        logger.info(
            f"Analysis {saved.id}: {len(samples)} samples, "
            f"accessibility={saved.accessibility_score:.2f}, "
            f"flood_risk={saved.flood_risk_score:.2f}",
            extra={**log_extra, "analysis_id": str(saved.id)},
        )
        return saved

    def _fetch_samples(self, envelope: Envelope) -> Sequence[ElevationSample]:
        with PerformanceTimer("elevation_fetch", log_level=logging.DEBUG):
            if self.fetch_timeout is None:
                return self.elevation_source.points_in_bounds(*envelope)

            executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
            try:
                future = executor.submit(self.elevation_source.points_in_bounds, *envelope)
                return future.result(timeout=self.fetch_timeout)
            except concurrent.futures.TimeoutError as e:
                future.cancel()
                raise ElevationSourceTimeoutError(
                    f"Elevation fetch exceeded {self.fetch_timeout}s",
                    timeout_seconds=self.fetch_timeout,
                    details={"bounds": list(envelope)},
                ) from e
            finally:
                # Do not block on a fetch that is still running
                executor.shutdown(wait=False)

    def analysis_for_point(self, x: float, y: float) -> Optional[TerrainAnalysis]:
        """Most recent analysis whose area contains (x, y)."""
        return self.store.most_recent_for_point(x, y)

    def analyses_for_area(self, area: Polygon) -> List[TerrainAnalysis]:
        """Stored analyses whose area intersects the given polygon."""
        return list(self.store.intersecting(area))

    def find_accessible_areas(
        self, min_accessibility_score: float, max_slope: float
    ) -> List[TerrainAnalysis]:
        """
        Analyses at least min_accessibility_score accessible with gentle slopes.

        Args:
            min_accessibility_score: Lower bound on accessibility_score (0-1)
            max_slope: Upper bound on metrics.slope_maximum (degrees)

        Returns:
            Matching analyses in store order
        """
        _validate_unit_score(min_accessibility_score, "min_accessibility_score")
        candidates = self.store.by_accessibility_score_range(min_accessibility_score, 1.0)
        return [a for a in candidates if a.metrics.slope_maximum <= max_slope]

    def find_flood_prone_areas(self, min_flood_risk_score: float) -> List[TerrainAnalysis]:
        """Analyses with flood_risk_score of at least min_flood_risk_score."""
        _validate_unit_score(min_flood_risk_score, "min_flood_risk_score")
        return list(self.store.by_flood_risk_score_range(min_flood_risk_score, 1.0))


def _validate_unit_score(value: float, field: str) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValidationError(f"{field} must be within [0, 1], got {value}", field=field)
