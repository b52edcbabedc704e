"""
Persistence of terrain analysis records.

AnalysisStore is the interface the analysis service consumes. Two
implementations are provided: an in-memory store and a file store that keeps
one JSON document per analysis.
"""

import json
import logging
import shutil
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple, runtime_checkable
from uuid import UUID, uuid4

from shapely.geometry import Point
from shapely.geometry.base import BaseGeometry

from relief.core.config import settings
from relief.core.errors import StorageError, ValidationError
from relief.models.terrain import AnalysisType, TerrainAnalysis

logger = logging.getLogger(__name__)


@runtime_checkable
class AnalysisStore(Protocol):
    """Persistence and lookup of TerrainAnalysis records."""

    def save(self, analysis: TerrainAnalysis) -> TerrainAnalysis:
        """Persist a record, assigning id and timestamp when absent."""
        ...

    def most_recent_for_point(self, x: float, y: float) -> Optional[TerrainAnalysis]:
        """Newest record whose area contains the point."""
        ...

    def intersecting(self, polygon: BaseGeometry) -> Sequence[TerrainAnalysis]:
        """Records whose area intersects the polygon, smallest area first."""
        ...

    def by_accessibility_score_range(
        self, min_score: float, max_score: float
    ) -> Sequence[TerrainAnalysis]:
        """Records with min_score <= accessibility_score <= max_score."""
        ...

    def by_flood_risk_score_range(
        self, min_score: float, max_score: float
    ) -> Sequence[TerrainAnalysis]:
        """Records with min_score <= flood_risk_score <= max_score."""
        ...


def _validate_score_range(min_score: float, max_score: float) -> None:
    if min_score > max_score:
        raise ValidationError(
            f"min_score ({min_score}) must not exceed max_score ({max_score})",
            field="min_score",
        )


def _stamp(analysis: TerrainAnalysis) -> Tuple[UUID, TerrainAnalysis]:
    """
    Assign id and timestamp where absent.

    A naive timestamp is taken to be UTC so that all stored timestamps
    compare with each other.
    """
    analysis_id = analysis.id or uuid4()
    timestamp = analysis.analysis_timestamp or datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return analysis_id, analysis.with_identity(analysis_id, timestamp)


class BaseAnalysisStore(ABC):
    """
    Query logic shared by the bundled stores.

    Subclasses provide save() and _records(); _records() must return
    analyses in insertion order.
    """

    @abstractmethod
    def save(self, analysis: TerrainAnalysis) -> TerrainAnalysis:
        """Persist a record, assigning id and timestamp when absent."""

    @abstractmethod
    def _records(self) -> List[TerrainAnalysis]:
        """All stored analyses in insertion order."""

    def most_recent_for_point(self, x: float, y: float) -> Optional[TerrainAnalysis]:
        """
        Newest analysis whose area contains (x, y), boundary included.

        Ties on timestamp go to the later insertion.
        """
        point = Point(x, y)
        matches = [a for a in self._records() if a.area.intersects(point)]
        if not matches:
            return None

        epoch = datetime.min.replace(tzinfo=timezone.utc)
        indexed = list(enumerate(matches))
        _, newest = max(
            indexed,
            key=lambda item: (item[1].analysis_timestamp or epoch, item[0]),
        )
        return newest

    def intersecting(self, polygon: BaseGeometry) -> List[TerrainAnalysis]:
        """Analyses whose area intersects polygon, smallest area first."""
        matches = [a for a in self._records() if a.area.intersects(polygon)]
        return sorted(matches, key=lambda a: a.area.area)

    def by_accessibility_score_range(
        self, min_score: float, max_score: float
    ) -> List[TerrainAnalysis]:
        """Analyses with accessibility_score in [min_score, max_score]."""
        _validate_score_range(min_score, max_score)
        return [
            a for a in self._records() if min_score <= a.accessibility_score <= max_score
        ]

    def by_flood_risk_score_range(
        self, min_score: float, max_score: float
    ) -> List[TerrainAnalysis]:
        """Analyses with flood_risk_score in [min_score, max_score]."""
        _validate_score_range(min_score, max_score)
        return [a for a in self._records() if min_score <= a.flood_risk_score <= max_score]

    def by_analysis_type(self, analysis_type: AnalysisType) -> List[TerrainAnalysis]:
        """Analyses of the given type."""
        return [a for a in self._records() if a.analysis_type == analysis_type]

    def get(self, analysis_id: UUID) -> Optional[TerrainAnalysis]:
        """Analysis with the given id, or None."""
        for analysis in self._records():
            if analysis.id == analysis_id:
                return analysis
        return None


class InMemoryAnalysisStore(BaseAnalysisStore):
    """Analyses kept in process memory, guarded by a lock."""

    def __init__(self) -> None:
        self._analyses: List[TerrainAnalysis] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._analyses)

    def save(self, analysis: TerrainAnalysis) -> TerrainAnalysis:
        analysis_id, stored = _stamp(analysis)
        with self._lock:
            self._analyses.append(stored)
        logger.debug(f"Stored analysis {analysis_id}")
        return stored

    def delete(self, analysis_id: UUID) -> bool:
        """Remove an analysis; returns False when it does not exist."""
        with self._lock:
            for index, analysis in enumerate(self._analyses):
                if analysis.id == analysis_id:
                    del self._analyses[index]
                    return True
        return False

    def list_ids(self) -> List[UUID]:
        """Ids of all stored analyses."""
        return [a.id for a in self._records() if a.id is not None]

    def _records(self) -> List[TerrainAnalysis]:
        with self._lock:
            return list(self._analyses)


class FileAnalysisStore(BaseAnalysisStore):
    """
    Analyses stored as JSON documents, one file per analysis.

    Writes go to a temporary file first and are then moved into place, so a
    reader never sees a partially written document.
    """

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        """
        Initialize the store.

        Args:
            base_dir: Directory for analysis files (defaults to settings.analysis_store_dir)
        """
        self.base_dir = base_dir or settings.analysis_store_dir
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        logger.info(f"FileAnalysisStore initialized with base_dir: {self.base_dir}")

    def _path_for(self, analysis_id: UUID) -> Path:
        return self.base_dir / f"{analysis_id}.json"

    def save(self, analysis: TerrainAnalysis) -> TerrainAnalysis:
        """
        Persist an analysis.

        Raises:
            StorageError: If the document cannot be written
        """
        analysis_id, stored = _stamp(analysis)
        final_path = self._path_for(analysis_id)
        temp_path = final_path.with_suffix(".tmp")

        try:
            with self._lock:
                temp_path.write_text(json.dumps(stored.to_dict(), indent=2))
                shutil.move(str(temp_path), str(final_path))
        except OSError as e:
            logger.error(f"Failed to save analysis {analysis_id}: {e}")
            temp_path.unlink(missing_ok=True)
            raise StorageError(
                f"Failed to save analysis: {e}", operation="save", file_path=str(final_path)
            ) from e

        logger.debug(f"Saved analysis to: {final_path}")
        return stored

    def delete(self, analysis_id: UUID) -> bool:
        """Remove an analysis file; returns False when it does not exist."""
        path = self._path_for(analysis_id)
        if not path.exists():
            logger.warning(f"Analysis file not found: {path}")
            return False

        try:
            path.unlink()
        except OSError as e:
            raise StorageError(
                f"Failed to delete analysis: {e}", operation="delete", file_path=str(path)
            ) from e

        logger.info(f"Deleted analysis: {analysis_id}")
        return True

    def list_ids(self) -> List[UUID]:
        """Ids of all stored analyses."""
        ids = []
        for path in sorted(self.base_dir.glob("*.json")):
            try:
                ids.append(UUID(path.stem))
            except ValueError:
                logger.warning(f"Ignoring unexpected file in analysis store: {path.name}")
        return ids

    def _load(self, path: Path) -> TerrainAnalysis:
        try:
            return TerrainAnalysis.from_dict(json.loads(path.read_text()))
        except (OSError, ValueError, KeyError) as e:
            raise StorageError(
                f"Failed to read analysis: {e}", operation="load", file_path=str(path)
            ) from e

    def _records(self) -> List[TerrainAnalysis]:
        # Files carry no insertion order; timestamp order stands in for it.
        records = [self._load(self._path_for(analysis_id)) for analysis_id in self.list_ids()]
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(records, key=lambda a: a.analysis_timestamp or epoch)
