"""
Geo-column detection over sample rows.

Three strategies run in order and the first success wins:

1. header patterns for separate latitude/longitude columns, confirmed by
   pairwise validation of sample rows;
2. header patterns for a combined column, confirmed by the format detector;
3. value heuristics over every column, confirmed by pairwise validation.
"""

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from tabinfer.core.config_models import GeoDetectionSettings
from tabinfer.core.geo.coordinates import (
    is_valid_coordinate,
    looks_swapped,
    parse_coordinate,
)
from tabinfer.core.geo.format_detector import detect_combined_format
from tabinfer.core.geo.patterns import (
    COMBINED_PATTERNS,
    LATITUDE_PATTERNS,
    LONGITUDE_PATTERNS,
    find_header,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoColumnResult:
    """Where a dataset keeps its coordinates."""

    found: bool
    type: str = "none"  # separate, combined, none
    lat_column: Optional[str] = None
    lon_column: Optional[str] = None
    combined_column: Optional[str] = None
    format: Optional[str] = None
    confidence: float = 0.0
    detection_method: Optional[str] = None  # pattern, heuristic, manual
    swapped_coordinates: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "found": self.found,
            "type": self.type,
            "lat_column": self.lat_column,
            "lon_column": self.lon_column,
            "combined_column": self.combined_column,
            "format": self.format,
            "confidence": round(self.confidence, 2),
            "detection_method": self.detection_method,
            "swapped_coordinates": self.swapped_coordinates,
        }


NOT_FOUND = GeoColumnResult(found=False)


@dataclass(frozen=True)
class PairValidation:
    """Outcome of validating latitude/longitude columns together."""

    is_valid: bool
    confidence: float
    swapped: bool


@dataclass
class _ColumnCoordinateStats:
    total: int = 0
    valid_coords: int = 0
    lat_range: int = 0
    lon_only: int = 0
    distinct: Set[float] = field(default_factory=set)

    def add(self, value: float) -> None:
        self.total += 1
        self.distinct.add(value)
        magnitude = abs(value)
        if magnitude <= 90:
            self.valid_coords += 1
            self.lat_range += 1
        elif magnitude <= 180:
            self.valid_coords += 1
            self.lon_only += 1

    @property
    def ratio(self) -> float:
        return self.valid_coords / self.total if self.total else 0.0


class GeoColumnDetector:
    """Finds latitude/longitude or combined coordinate columns."""

    def __init__(self, settings: Optional[GeoDetectionSettings] = None):
        self.settings = settings or GeoDetectionSettings()

    def detect_geo_columns(
        self, headers: Sequence[str], sample_rows: Sequence[Mapping[str, Any]]
    ) -> GeoColumnResult:
        """
        Detect coordinate columns.

        Args:
            headers: Column names in declaration order
            sample_rows: Parsed rows used as evidence

        Returns:
            GeoColumnResult (``found`` is False when nothing convincing exists)
        """
        logger.debug("Detecting geo columns from %d headers", len(headers))

        lat_column = find_header(headers, LATITUDE_PATTERNS)
        lon_column = find_header(headers, LONGITUDE_PATTERNS)
        if lat_column is not None and lon_column is not None:
            validation = self.validate_coordinate_pairs(
                sample_rows, lat_column, lon_column
            )
            if validation.is_valid:
                logger.info(
                    "Found coordinate columns %s/%s by name", lat_column, lon_column
                )
                return GeoColumnResult(
                    found=True,
                    type="separate",
                    lat_column=lat_column,
                    lon_column=lon_column,
                    confidence=validation.confidence,
                    detection_method="pattern",
                    swapped_coordinates=validation.swapped,
                )

        combined_column = find_header(headers, COMBINED_PATTERNS)
        if combined_column is not None:
            values = [row.get(combined_column) for row in sample_rows]
            detected = detect_combined_format(
                values,
                min_confidence=self.settings.format_min_confidence,
                sample_size=self.settings.pattern_sample_size,
                reject_zero=self.settings.reject_zero_coordinates,
            )
            if detected is not None:
                logger.info(
                    "Found combined coordinate column %s (%s)",
                    combined_column,
                    detected.format,
                )
                return GeoColumnResult(
                    found=True,
                    type="combined",
                    combined_column=combined_column,
                    format=detected.format,
                    confidence=detected.confidence,
                    detection_method="pattern",
                )

        return self._detect_by_heuristics(headers, sample_rows)

    def validate_coordinate_pairs(
        self,
        sample_rows: Sequence[Mapping[str, Any]],
        lat_column: str,
        lon_column: str,
    ) -> PairValidation:
        """
        Validate two columns as a coordinate pair over the first sample rows.

        When most pairs only fit with the columns exchanged the result is
        flagged as swapped and scored on the exchanged pairs.
        """
        pairs = []
        for row in sample_rows[: self.settings.pattern_sample_size]:
            lat = parse_coordinate(row.get(lat_column))
            lon = parse_coordinate(row.get(lon_column))
            if lat is not None and lon is not None:
                pairs.append((lat, lon))

        if not pairs:
            return PairValidation(False, 0.0, False)

        reject_zero = self.settings.reject_zero_coordinates
        total = len(pairs)
        swapped_ratio = sum(1 for lat, lon in pairs if looks_swapped(lat, lon)) / total

        if swapped_ratio > self.settings.swap_ratio:
            swapped_valid = sum(
                1 for lat, lon in pairs if is_valid_coordinate(lon, lat, reject_zero)
            )
            ratio = swapped_valid / total
            logger.debug(
                "Columns %s/%s look swapped (%.2f)", lat_column, lon_column, swapped_ratio
            )
            return PairValidation(ratio >= self.settings.pair_valid_ratio, ratio, True)

        valid = sum(1 for lat, lon in pairs if is_valid_coordinate(lat, lon, reject_zero))
        ratio = valid / total
        return PairValidation(ratio >= self.settings.pair_valid_ratio, ratio, False)

    def _column_stats(
        self, headers: Sequence[str], sample_rows: Sequence[Mapping[str, Any]]
    ) -> Dict[str, _ColumnCoordinateStats]:
        rows = sample_rows[: self.settings.heuristic_sample_size]
        required = min(self.settings.min_numeric_values, len(sample_rows) * 0.5)

        candidates = {}
        for header in headers:
            stats = _ColumnCoordinateStats()
            for row in rows:
                value = parse_coordinate(row.get(header))
                if value is not None:
                    stats.add(value)
            if stats.total > 0 and stats.total >= required:
                candidates[header] = stats
        return candidates

    def _detect_by_heuristics(
        self, headers: Sequence[str], sample_rows: Sequence[Mapping[str, Any]]
    ) -> GeoColumnResult:
        candidates = self._column_stats(headers, sample_rows)

        best_lat: Optional[str] = None
        best_lat_score = 0.0
        for header, stats in candidates.items():
            if (
                stats.lat_range == stats.total
                and stats.ratio > best_lat_score
                and len(stats.distinct) > 1
            ):
                best_lat, best_lat_score = header, stats.ratio

        best_lon: Optional[str] = None
        best_lon_score = 0.0
        for header, stats in candidates.items():
            if header == best_lat:
                continue
            if stats.ratio > best_lon_score and len(stats.distinct) > 1:
                best_lon, best_lon_score = header, stats.ratio

        min_ratio = self.settings.heuristic_min_ratio
        if (
            best_lat is None
            or best_lon is None
            or best_lat_score < min_ratio
            or best_lon_score < min_ratio
        ):
            return NOT_FOUND

        validation = self.validate_coordinate_pairs(sample_rows, best_lat, best_lon)
        if not (validation.is_valid or validation.swapped):
            return NOT_FOUND

        logger.info("Found coordinate columns %s/%s by value", best_lat, best_lon)
        return GeoColumnResult(
            found=True,
            type="separate",
            lat_column=best_lat,
            lon_column=best_lon,
            confidence=validation.confidence,
            detection_method="heuristic",
            swapped_coordinates=validation.swapped,
        )


def detect_geo_columns(
    headers: Sequence[str],
    sample_rows: Sequence[Mapping[str, Any]],
    settings: Optional[GeoDetectionSettings] = None,
) -> GeoColumnResult:
    """Module-level shortcut for :meth:`GeoColumnDetector.detect_geo_columns`."""
    return GeoColumnDetector(settings).detect_geo_columns(headers, sample_rows)


def manual_geo_columns(
    lat_column: Optional[str] = None,
    lon_column: Optional[str] = None,
    combined_column: Optional[str] = None,
    format: Optional[str] = None,
) -> GeoColumnResult:
    """Result for a mapping chosen by the user rather than detected."""
    if lat_column and lon_column:
        return GeoColumnResult(
            found=True,
            type="separate",
            lat_column=lat_column,
            lon_column=lon_column,
            confidence=1.0,
            detection_method="manual",
        )
    if combined_column:
        return GeoColumnResult(
            found=True,
            type="combined",
            combined_column=combined_column,
            format=format,
            confidence=1.0,
            detection_method="manual",
        )
    return NOT_FOUND


def headers_from_rows(rows: Sequence[Mapping[str, Any]]) -> List[str]:
    """Union of row keys in first-seen order."""
    headers: Dict[str, None] = {}
    for row in rows:
        for key in row:
            headers.setdefault(key, None)
    return list(headers)
