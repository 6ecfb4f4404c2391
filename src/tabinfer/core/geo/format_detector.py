"""
Detection of combined coordinate formats in a single column.

Each checker scores a sample of raw values: the share of non-empty samples
that both parse in its format and form a valid coordinate pair. A format
is accepted once that share reaches ``min_confidence``.
"""

from dataclasses import dataclass
import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from tabinfer.core.geo.coordinates import (
    COMMA_PAIR_PATTERN,
    SPACE_PAIR_PATTERN,
    is_valid_coordinate,
    parse_bracketed_pair,
    parse_coordinate,
)

logger = logging.getLogger(__name__)

DEFAULT_MIN_CONFIDENCE = 0.7
DEFAULT_SAMPLE_SIZE = 10


@dataclass(frozen=True)
class FormatDetectionResult:
    """A detected combined format and the share of samples it explains."""

    format: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {"format": self.format, "confidence": round(self.confidence, 2)}


def non_empty_samples(
    values: Sequence[Any], limit: int = DEFAULT_SAMPLE_SIZE
) -> List[Any]:
    """First ``limit`` values that are neither None nor blank strings."""
    samples = []
    for value in values:
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        if isinstance(value, float) and value != value:  # NaN
            continue
        samples.append(value)
        if len(samples) >= limit:
            break
    return samples


def _pair_from_pattern(value: Any, pattern: re.Pattern) -> Optional[Tuple[float, float]]:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    match = pattern.match(str(value).strip())
    if not match:
        return None
    return float(match.group(1)), float(match.group(2))


def _comma_pair(value: Any) -> Optional[Tuple[float, float]]:
    return _pair_from_pattern(value, COMMA_PAIR_PATTERN)


def _space_pair(value: Any) -> Optional[Tuple[float, float]]:
    return _pair_from_pattern(value, SPACE_PAIR_PATTERN)


def _geojson_pair(value: Any) -> Optional[Tuple[float, float]]:
    point = value
    if isinstance(value, str):
        try:
            point = json.loads(value)
        except ValueError:
            return None
    if not isinstance(point, dict) or point.get("type") != "Point":
        return None
    coordinates = point.get("coordinates")
    if not isinstance(coordinates, (list, tuple)) or len(coordinates) < 2:
        return None
    if any(isinstance(c, (str, bool)) for c in coordinates[:2]):
        return None
    lon, lat = parse_coordinate(coordinates[0]), parse_coordinate(coordinates[1])
    if lat is None or lon is None:
        return None
    return lat, lon


def _bracket_pair(value: Any) -> Optional[Tuple[float, float]]:
    if isinstance(value, str) and not value.strip().startswith("["):
        return None
    return parse_bracketed_pair(value)


def _check(
    samples: Sequence[Any],
    extract: Callable[[Any], Optional[Tuple[float, float]]],
    format: str,
    min_confidence: float,
    reject_zero: bool,
) -> Optional[FormatDetectionResult]:
    candidates = non_empty_samples(samples, limit=len(samples) or 1)
    if not candidates:
        return None

    matched = 0
    for value in candidates:
        pair = extract(value)
        if pair is not None and is_valid_coordinate(pair[0], pair[1], reject_zero):
            matched += 1

    confidence = matched / len(candidates)
    if confidence >= min_confidence:
        return FormatDetectionResult(format, confidence)
    return None


def check_comma_format(
    samples: Sequence[Any],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    reject_zero: bool = True,
) -> Optional[FormatDetectionResult]:
    """Detect ``"lat, lon"`` values (up to five spaces after the comma)."""
    return _check(samples, _comma_pair, "combined_comma", min_confidence, reject_zero)


def check_space_format(
    samples: Sequence[Any],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    reject_zero: bool = True,
) -> Optional[FormatDetectionResult]:
    """Detect ``"lat lon"`` values."""
    return _check(samples, _space_pair, "combined_space", min_confidence, reject_zero)


def check_geojson_format(
    samples: Sequence[Any],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    reject_zero: bool = True,
) -> Optional[FormatDetectionResult]:
    """Detect GeoJSON points, as dicts or JSON strings. Positions are [lon, lat]."""
    return _check(samples, _geojson_pair, "geojson", min_confidence, reject_zero)


def check_bracket_format(
    samples: Sequence[Any],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    reject_zero: bool = True,
) -> Optional[FormatDetectionResult]:
    """Detect ``[lat, lon]`` lists or their string form."""
    return _check(samples, _bracket_pair, "brackets", min_confidence, reject_zero)


FORMAT_CHECKERS = (
    check_comma_format,
    check_space_format,
    check_geojson_format,
    check_bracket_format,
)


def detect_combined_format(
    values: Sequence[Any],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    reject_zero: bool = True,
) -> Optional[FormatDetectionResult]:
    """
    Auto-detect the combined format of a column.

    Tries comma, space, GeoJSON and bracketed lists in that order on the
    first ``sample_size`` non-empty values and returns the first hit.
    """
    samples = non_empty_samples(values, limit=sample_size)
    if not samples:
        return None

    for checker in FORMAT_CHECKERS:
        result = checker(samples, min_confidence=min_confidence, reject_zero=reject_zero)
        if result is not None:
            logger.debug(
                "Detected %s format (confidence %.2f)", result.format, result.confidence
            )
            return result
    return None
