"""
Terrain data models.

This module defines elevation samples, the metrics summarizing a set of
samples, and the persisted terrain analysis record.
"""

import json
from dataclasses import asdict, dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from shapely import wkt
from shapely.geometry import Polygon


class ElevationSource(str, Enum):
    """Provenance of an elevation sample."""

    SRTM = "SRTM"  # Shuttle Radar Topography Mission
    ASTER = "ASTER"  # ASTER global DEM
    LIDAR = "LIDAR"
    SURVEY = "SURVEY"  # Ground survey
    GPS = "GPS"
    UNKNOWN = "UNKNOWN"


class AnalysisType(str, Enum):
    """Purpose of an analysis; selects the accessibility scoring policy."""

    EMERGENCY_RESPONSE = "EMERGENCY_RESPONSE"
    ROUTING = "ROUTING"
    ACCESSIBILITY = "ACCESSIBILITY"


class ElevationSample(BaseModel):
    """
    A single known elevation at a location.

    Attributes:
        x: Longitude (WGS84)
        y: Latitude (WGS84)
        elevation: Elevation in meters
        source: Dataset the sample came from
        accuracy: Vertical accuracy in meters, if known
        resolution: Source resolution in meters per pixel, if known
    """

    model_config = ConfigDict(frozen=True)

    x: float = Field(..., ge=-180, le=180, description="Longitude (WGS84)")
    y: float = Field(..., ge=-90, le=90, description="Latitude (WGS84)")
    elevation: float = Field(..., description="Elevation in meters")
    source: ElevationSource = Field(default=ElevationSource.UNKNOWN)
    accuracy: Optional[float] = Field(None, gt=0, description="Vertical accuracy (m)")
    resolution: Optional[float] = Field(None, gt=0, description="Resolution (m/pixel)")


class Envelope(NamedTuple):
    """Axis-aligned bounding rectangle in longitude/latitude."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def center(self) -> tuple:
        """(x, y) midpoint of the rectangle."""
        return ((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)

    def contains(self, x: float, y: float) -> bool:
        """Whether (x, y) lies inside the rectangle, edges included."""
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass(frozen=True)
class TerrainMetrics:
    """
    Summary of a set of elevation samples.

    Slope and aspect fields are in degrees; slopes are unsigned magnitudes,
    aspect is a compass bearing average.

    Attributes:
        min_elevation: Lowest sample elevation
        max_elevation: Highest sample elevation
        avg_elevation: Mean sample elevation
        elevation_variance: Population variance of sample elevations
        slope_average: Mean slope magnitude between consecutive samples
        slope_maximum: Largest slope magnitude between consecutive samples
        aspect_average: Mean aspect between consecutive samples
        roughness_index: Square root of elevation_variance
    """

    min_elevation: float = 0.0
    max_elevation: float = 0.0
    avg_elevation: float = 0.0
    elevation_variance: float = 0.0
    slope_average: float = 0.0
    slope_maximum: float = 0.0
    aspect_average: float = 0.0
    roughness_index: float = 0.0

    @classmethod
    def empty(cls) -> "TerrainMetrics":
        """The all-zero record returned for an empty sample set."""
        return cls()

    def to_dict(self) -> Dict[str, float]:
        """Convert metrics to dictionary."""
        return {key: float(value) for key, value in asdict(self).items()}

    def to_json(self) -> str:
        """
        Serialize metrics as a JSON document with values rounded to 2 decimals.

        Keys are camelCase (minElevation, slopeAverage, ...), the layout
        consumers of analysis_data read.
        """
        return json.dumps(
            {_camel_case(key): round(value, 2) for key, value in self.to_dict().items()}
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TerrainMetrics":
        """Build metrics from a dictionary produced by to_dict()."""
        return cls(**{key: float(data[key]) for key in asdict(cls()).keys()})


@dataclass(frozen=True)
class ElevationStatistics:
    """
    Aggregate elevation statistics for a bounding box.

    Attributes:
        min_elevation: Lowest elevation, None when no samples
        max_elevation: Highest elevation, None when no samples
        avg_elevation: Mean elevation, None when no samples
        elevation_stddev: Sample standard deviation, None with fewer than 2 samples
        point_count: Number of samples in the box
    """

    min_elevation: Optional[float]
    max_elevation: Optional[float]
    avg_elevation: Optional[float]
    elevation_stddev: Optional[float]
    point_count: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert statistics to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class TerrainAnalysis:
    """
    Result of one terrain analysis over an area.

    A record is created once per request and never updated; the store
    assigns ``id`` and ``analysis_timestamp`` when they are absent.

    Attributes:
        area: Analysed polygon (longitude/latitude)
        analysis_type: Purpose of the analysis
        metrics: Terrain metrics for the samples found in the area's envelope
        accessibility_score: 0-1, higher is more accessible
        flood_risk_score: 0-1, higher is more flood-prone
        analysis_timestamp: When the record was persisted
        id: Store-assigned identifier
    """

    area: Polygon
    analysis_type: AnalysisType
    metrics: TerrainMetrics
    accessibility_score: float
    flood_risk_score: float
    analysis_timestamp: Optional[datetime] = None
    id: Optional[UUID] = None

    def __post_init__(self) -> None:
        """Validate score bounds."""
        if not 0.0 <= self.accessibility_score <= 1.0:
            raise ValueError(
                f"accessibility_score must be within [0, 1], got {self.accessibility_score}"
            )
        if not 0.0 <= self.flood_risk_score <= 1.0:
            raise ValueError(
                f"flood_risk_score must be within [0, 1], got {self.flood_risk_score}"
            )

    @property
    def analysis_data(self) -> str:
        """Metrics serialized as JSON, as kept alongside the record."""
        return self.metrics.to_json()

    def with_identity(self, analysis_id: UUID, timestamp: datetime) -> "TerrainAnalysis":
        """Return a copy carrying the given id and timestamp."""
        return replace(self, id=analysis_id, analysis_timestamp=timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the record to a JSON-compatible dictionary."""
        return {
            "id": str(self.id) if self.id else None,
            "area_wkt": self.area.wkt,
            "analysis_type": self.analysis_type.value,
            "metrics": self.metrics.to_dict(),
            "accessibility_score": float(self.accessibility_score),
            "flood_risk_score": float(self.flood_risk_score),
            "analysis_timestamp": (
                self.analysis_timestamp.isoformat() if self.analysis_timestamp else None
            ),
            "analysis_data": self.analysis_data,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TerrainAnalysis":
        """Rebuild a record from a dictionary produced by to_dict()."""
        timestamp = data.get("analysis_timestamp")
        analysis_id = data.get("id")
        return cls(
            area=wkt.loads(data["area_wkt"]),
            analysis_type=AnalysisType(data["analysis_type"]),
            metrics=TerrainMetrics.from_dict(data["metrics"]),
            accessibility_score=float(data["accessibility_score"]),
            flood_risk_score=float(data["flood_risk_score"]),
            analysis_timestamp=datetime.fromisoformat(timestamp) if timestamp else None,
            id=UUID(analysis_id) if analysis_id else None,
        )
