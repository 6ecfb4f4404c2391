"""
Language-aware detection of the semantic role of each column.

A column is a candidate for a role when the last segment of its path
matches one of the role's name patterns. Candidates are scored on the
pattern position (60%) and on whether their statistics look like the role
(40%); a content score of zero rejects the column whatever its name.
Latitude and longitude are resolved separately by a coordinate scorer.
"""

from dataclasses import dataclass, fields, replace
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from tabinfer.core.geo.coordinates import parse_coordinate
from tabinfer.core.geo.patterns import LATITUDE_PATTERNS, LONGITUDE_PATTERNS, match_index
from tabinfer.core.mapping.patterns import (
    DEFAULT_LANGUAGE,
    FIELD_PATTERNS,
    ROLES,
    patterns_for,
)
from tabinfer.core.schema.field_statistics import FieldStatistics
from tabinfer.core.schema.values import ValueKind

logger = logging.getLogger(__name__)

PATTERN_WEIGHT = 0.6
VALIDATION_WEIGHT = 0.4

COORDINATE_BOUNDS = {
    "latitude": (-90.0, 90.0),
    "longitude": (-180.0, 180.0),
}

ISO_PREFIX_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")
MAX_PARSED_SAMPLES = 10
NO_SAMPLES_SCORE = 0.5

EPOCH_SECONDS_RANGE = (1_000_000_000, 9_999_999_999)
EPOCH_MILLISECONDS_RANGE = (1_000_000_000_000, 9_999_999_999_999)


@dataclass(frozen=True)
class FieldMappings:
    """Paths chosen for each role; ``None`` when nothing qualified."""

    title_path: Optional[str] = None
    description_path: Optional[str] = None
    location_name_path: Optional[str] = None
    timestamp_path: Optional[str] = None
    latitude_path: Optional[str] = None
    longitude_path: Optional[str] = None
    location_path: Optional[str] = None

    def with_overrides(self, **paths: Optional[str]) -> "FieldMappings":
        """Copy with some paths replaced by the caller's choice."""
        known = {f.name for f in fields(self)}
        unknown = set(paths) - known
        if unknown:
            raise ValueError(f"Unknown mapping fields: {', '.join(sorted(unknown))}")
        return replace(self, **paths)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class RoleMatch:
    path: str
    score: float


@dataclass(frozen=True)
class GeoFields:
    """Latitude and longitude columns found from field statistics."""

    latitude_path: Optional[str] = None
    longitude_path: Optional[str] = None
    latitude_confidence: float = 0.0
    longitude_confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude_path,
            "longitude": self.longitude_path,
            "latitude_confidence": round(self.latitude_confidence, 2),
            "longitude_confidence": round(self.longitude_confidence, 2),
        }


def terminal_segment(path: str) -> str:
    """Last dotted segment of a path, without any ``[]`` suffix."""
    name = path.split(".")[-1]
    return name[:-2] if name.endswith("[]") else name


def _string_samples(stats: FieldStatistics) -> List[str]:
    return [v for v in stats.unique_samples if isinstance(v, str)]


def _average_length(stats: FieldStatistics) -> Optional[float]:
    """Mean length of string samples; None without samples, -1 without strings."""
    if not stats.unique_samples:
        return None
    strings = _string_samples(stats)
    if not strings:
        return -1.0
    return sum(len(s) for s in strings) / len(strings)


def _validate_title(stats: FieldStatistics, string_ratio: float) -> float:
    if string_ratio < 0.8:
        return 0.0
    length = _average_length(stats)
    if length is None:
        return NO_SAMPLES_SCORE
    if length < 0:
        return 0.0
    if 10 <= length <= 100:
        return 1.0
    if 3 <= length < 10:
        return (length - 3) / 7
    if 100 < length <= 500:
        return (500 - length) / 400
    return 0.0


def _validate_description(stats: FieldStatistics, string_ratio: float) -> float:
    if string_ratio < 0.7:
        return 0.0
    length = _average_length(stats)
    if length is None:
        return NO_SAMPLES_SCORE
    if length < 0:
        return 0.0
    if 20 <= length <= 500:
        return 1.0
    if 10 <= length <= 1000:
        return 0.8
    if length < 5:
        return 0.2
    if length > 1000:
        return 0.7
    return 0.6


def _validate_location_name(stats: FieldStatistics, string_ratio: float) -> float:
    if string_ratio < 0.7:
        return 0.0
    length = _average_length(stats)
    if length is None:
        return NO_SAMPLES_SCORE
    if length < 0:
        return 0.0
    if 3 <= length <= 50:
        return 1.0
    if 2 <= length <= 100:
        return 0.8
    if length < 2:
        return 0.2
    return 0.6


def _validate_location(stats: FieldStatistics, string_ratio: float) -> float:
    if string_ratio < 0.7:
        return 0.0
    length = _average_length(stats)
    if length is None:
        return NO_SAMPLES_SCORE
    if length < 0:
        return 0.0
    if 3 <= length <= 100:
        return 1.0
    if 2 <= length <= 500:
        return 0.8
    if length < 2:
        return 0.2
    return 0.6


def check_native_dates(stats: FieldStatistics) -> float:
    """Dates and ISO-prefixed strings making up most of the samples."""
    if stats.type_ratio(ValueKind.DATE) < 0.7:
        return 0.0
    samples = [v for v in stats.unique_samples if v is not None]
    if not samples:
        return 0.0
    hits = sum(
        1 for v in samples if isinstance(v, str) and ISO_PREFIX_PATTERN.match(v)
    )
    ratio = hits / len(samples)
    if ratio >= 0.7:
        return 1.0
    if ratio >= 0.5:
        return 0.8
    return 0.0


def check_date_formats(stats: FieldStatistics) -> float:
    hits = stats.formats.get("date", 0) + stats.formats.get("dateTime", 0)
    if not hits or not stats.occurrences:
        return 0.0
    return min(1.0, 0.7 + 0.3 * hits / stats.occurrences)


def _parses_as_date(value: str) -> bool:
    try:
        parsed = pd.to_datetime(value, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return False
    return not pd.isna(parsed)


def check_parseable_strings(stats: FieldStatistics, string_ratio: float) -> float:
    """Free-form strings that a generic date parser understands."""
    if string_ratio <= 0.5:
        return 0.0
    strings = _string_samples(stats)[:MAX_PARSED_SAMPLES]
    if not strings:
        return 0.0
    ratio = sum(1 for s in strings if _parses_as_date(s)) / len(strings)
    if ratio < 0.5:
        return 0.0
    return 0.5 + 0.8 * (ratio - 0.5)


def check_unix_timestamp(stats: FieldStatistics) -> float:
    numeric = stats.numeric_stats
    if numeric is None:
        return 0.0
    for low, high in (EPOCH_SECONDS_RANGE, EPOCH_MILLISECONDS_RANGE):
        if numeric.min > low and numeric.max < high:
            return 0.8
    return 0.0


def _validate_timestamp(stats: FieldStatistics, string_ratio: float) -> float:
    # d/m/y strings are tagged as dates but still need parsing
    textual_ratio = string_ratio + stats.type_ratio(ValueKind.DATE)
    for check in (
        check_native_dates,
        check_date_formats,
        lambda s: check_parseable_strings(s, textual_ratio),
        check_unix_timestamp,
    ):
        score = check(stats)
        if score > 0:
            return score
    return 0.0


_VALIDATORS = {
    "title": _validate_title,
    "description": _validate_description,
    "location_name": _validate_location_name,
    "timestamp": _validate_timestamp,
    "location": _validate_location,
}


def validate_field_type(stats: FieldStatistics, role: str) -> float:
    """
    How well a column's content fits ``role``, from 0 (reject) to 1.

    Args:
        stats: Statistics of the column
        role: One of ``title``, ``description``, ``location_name``,
            ``timestamp`` or ``location``
    """
    if role not in _VALIDATORS:
        raise ValueError(f"Unknown field role: {role}")
    if not stats.occurrences:
        return 0.0
    return _VALIDATORS[role](stats, stats.type_ratio(ValueKind.STRING))


def _best_match(
    field_stats: Mapping[str, FieldStatistics],
    patterns: Sequence[re.Pattern],
    role: str,
) -> Optional[RoleMatch]:
    best: Optional[RoleMatch] = None
    for path, stats in field_stats.items():
        index = match_index(terminal_segment(path), patterns)
        if index is None:
            continue
        validation = validate_field_type(stats, role)
        if validation == 0:
            continue
        score = (1 - index / len(patterns)) * PATTERN_WEIGHT + validation * VALIDATION_WEIGHT
        if best is None or score > best.score:
            best = RoleMatch(path=path, score=score)
    return best


def find_best_field(
    field_stats: Mapping[str, FieldStatistics],
    role: str,
    language: str = DEFAULT_LANGUAGE,
) -> Optional[RoleMatch]:
    """Highest scoring column for ``role``, retrying with English patterns."""
    match = _best_match(field_stats, patterns_for(role, language), role)
    if match is None and language != DEFAULT_LANGUAGE:
        match = _best_match(field_stats, FIELD_PATTERNS[role][DEFAULT_LANGUAGE], role)
    return match


def detect_field(
    field_stats: Mapping[str, FieldStatistics],
    role: str,
    language: str = DEFAULT_LANGUAGE,
) -> Optional[str]:
    match = find_best_field(field_stats, role, language)
    return match.path if match else None


def _coordinate_samples(stats: FieldStatistics) -> List[str]:
    return [
        s for s in stats.unique_samples[:MAX_PARSED_SAMPLES]
        if isinstance(s, str) and s.strip()
    ]


def _has_numeric(stats: FieldStatistics) -> bool:
    return bool(
        stats.type_distribution.get(ValueKind.NUMBER.value)
        or stats.type_distribution.get(ValueKind.INTEGER.value)
    )


def is_valid_coordinate_field(stats: FieldStatistics, bounds: Tuple[float, float]) -> bool:
    """Numeric range inside ``bounds``, or most parseable strings inside it."""
    low, high = bounds
    numeric = stats.numeric_stats
    if _has_numeric(stats) and numeric is not None:
        if numeric.min >= low and numeric.max <= high:
            return True

    if not stats.type_distribution.get(ValueKind.STRING.value):
        return False
    parsed = [parse_coordinate(s) for s in _coordinate_samples(stats)]
    parsed = [p for p in parsed if p is not None]
    if not parsed:
        return False
    return sum(1 for p in parsed if low <= p <= high) / len(parsed) >= 0.7


def calculate_field_confidence(
    stats: FieldStatistics,
    patterns: Sequence[re.Pattern],
    bounds: Tuple[float, float],
) -> float:
    """
    Confidence that a column holds one coordinate axis.

    Pattern quality counts for 0.4, values inside ``bounds`` for 0.3,
    consistency of the dominant type for 0.2 and completeness for 0.1.
    """
    if not stats.occurrences:
        return 0.0
    low, high = bounds

    index = match_index(terminal_segment(stats.path), patterns)
    pattern_score = 0.0 if index is None else (1 - index / len(patterns)) * 0.4

    type_score = 0.0
    numeric = stats.numeric_stats
    if _has_numeric(stats) and numeric is not None:
        type_score = 0.3 if numeric.min >= low and numeric.max <= high else 0.0
    elif stats.type_distribution.get(ValueKind.STRING.value):
        samples = _coordinate_samples(stats)
        if samples:
            valid = 0
            for sample in samples:
                parsed = parse_coordinate(sample)
                if parsed is not None and low <= parsed <= high:
                    valid += 1
            type_score = valid / len(samples) * 0.3

    total = sum(stats.type_distribution.values())
    consistency = max(stats.type_distribution.values()) / total if total else 0.0
    completeness = (stats.occurrences - stats.null_count) / stats.occurrences

    return pattern_score + type_score + consistency * 0.2 + completeness * 0.1


def _find_coordinate_field(
    field_stats: Mapping[str, FieldStatistics],
    patterns: Sequence[re.Pattern],
    bounds: Tuple[float, float],
) -> Optional[RoleMatch]:
    best: Optional[RoleMatch] = None
    for path, stats in field_stats.items():
        if match_index(terminal_segment(path), patterns) is None:
            continue
        if not is_valid_coordinate_field(stats, bounds):
            continue
        confidence = calculate_field_confidence(stats, patterns, bounds)
        if confidence > (best.score if best else 0.0):
            best = RoleMatch(path=path, score=confidence)
    return best


def detect_geo_fields(field_stats: Mapping[str, FieldStatistics]) -> GeoFields:
    """Best latitude and longitude columns by name and value range."""
    latitude = _find_coordinate_field(
        field_stats, LATITUDE_PATTERNS, COORDINATE_BOUNDS["latitude"]
    )
    longitude = _find_coordinate_field(
        field_stats, LONGITUDE_PATTERNS, COORDINATE_BOUNDS["longitude"]
    )
    return GeoFields(
        latitude_path=latitude.path if latitude else None,
        longitude_path=longitude.path if longitude else None,
        latitude_confidence=latitude.score if latitude else 0.0,
        longitude_confidence=longitude.score if longitude else 0.0,
    )


def score_field_mappings(
    field_stats: Mapping[str, FieldStatistics],
    language: str = DEFAULT_LANGUAGE,
) -> Tuple[FieldMappings, Dict[str, float]]:
    """
    Detect every role and report the score behind each choice.

    Returns:
        The mappings and a ``role -> confidence`` dict (0 when unmapped)
    """
    matches = {role: find_best_field(field_stats, role, language) for role in ROLES}
    geo = detect_geo_fields(field_stats)

    mappings = FieldMappings(
        title_path=_path(matches["title"]),
        description_path=_path(matches["description"]),
        location_name_path=_path(matches["location_name"]),
        timestamp_path=_path(matches["timestamp"]),
        latitude_path=geo.latitude_path,
        longitude_path=geo.longitude_path,
        location_path=_path(matches["location"]),
    )
    confidence = {role: (m.score if m else 0.0) for role, m in matches.items()}
    confidence["latitude"] = geo.latitude_confidence
    confidence["longitude"] = geo.longitude_confidence

    logger.debug("Field mappings for %s: %s", language, mappings.to_dict())
    return mappings, confidence


def _path(match: Optional[RoleMatch]) -> Optional[str]:
    return match.path if match else None


def detect_field_mappings(
    field_stats: Mapping[str, FieldStatistics],
    language: str = DEFAULT_LANGUAGE,
) -> FieldMappings:
    """
    Pick the column for each role.

    Args:
        field_stats: Cumulative statistics keyed by field path
        language: ISO-639-3 code selecting the name patterns

    Returns:
        FieldMappings with ``None`` for roles nothing qualified for
    """
    return score_field_mappings(field_stats, language)[0]
