"""
Coordinate parsing and validation.

Parsing is best effort: anything that cannot be read as decimal degrees
yields ``None``. Validation returns status objects instead of raising.
"""

from dataclasses import dataclass
import json
import logging
import math
import numbers
import re
from typing import Any, Dict, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

DECIMAL_PATTERN = re.compile(r"^-?(?:\d+(?:\.\d+)?|\.\d+)(?:[eE][+-]?\d+)?$")
DMS_PATTERN = re.compile(
    r"^(-?\d{1,3})[°\s]\s*(\d{1,2})['′\s]\s*(\d{1,2}(?:\.\d{0,6})?)[\"″]?\s*([NSEW])?$",
    re.IGNORECASE,
)
DEGREES_MINUTES_PATTERN = re.compile(
    r"^(-?\d{1,3})[°\s]\s*(\d{1,3}(?:\.\d{0,6})?)['′]?\s*([NSEW])?$",
    re.IGNORECASE,
)
DIRECTIONAL_PATTERN = re.compile(
    r"^(-?\d{1,3}(?:\.\d{0,10})?)\s{0,2}([NSEW])$", re.IGNORECASE
)

COMMA_PAIR_PATTERN = re.compile(
    r"^(-?\d{1,3}(?:\.\d{0,10})?),\s{0,5}(-?\d{1,3}(?:\.\d{0,10})?)$"
)
SPACE_PAIR_PATTERN = re.compile(
    r"^(-?\d{1,3}(?:\.\d{0,10})?)\s{1,5}(-?\d{1,3}(?:\.\d{0,10})?)$"
)

# Coordinates commonly typed as placeholders in test data
TEST_COORDINATES = {(0.0, 0.0), (1.0, 1.0), (-1.0, -1.0), (12.345678, 12.345678)}


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        number = float(value)
        return number if math.isfinite(number) else None
    return None


def _signed(magnitude: float, direction: Optional[str], negative: bool) -> float:
    if negative or (direction and direction.upper() in ("S", "W")):
        return -magnitude
    return magnitude


def parse_coordinate(value: Any) -> Optional[float]:
    """
    Parse a scalar into decimal degrees.

    Numbers are returned as floats. Strings are tried as plain decimals,
    degrees-minutes-seconds, degrees with decimal minutes and finally
    decimals with a compass suffix. ``S`` and ``W`` negate the result.

    Args:
        value: Raw cell value

    Returns:
        Decimal degrees, or None when the value is not a coordinate
    """
    number = _as_float(value)
    if number is not None:
        return number
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    if DECIMAL_PATTERN.match(text):
        number = float(text)
        return number if math.isfinite(number) else None

    match = DMS_PATTERN.match(text)
    if match:
        degrees, minutes, seconds, direction = match.groups()
        if int(minutes) >= 60 or float(seconds) >= 60:
            return None
        magnitude = abs(int(degrees)) + int(minutes) / 60 + float(seconds) / 3600
        return _signed(magnitude, direction, degrees.startswith("-"))

    match = DEGREES_MINUTES_PATTERN.match(text)
    if match:
        degrees, minutes, direction = match.groups()
        if float(minutes) >= 60:
            return None
        magnitude = abs(int(degrees)) + float(minutes) / 60
        return _signed(magnitude, direction, degrees.startswith("-"))

    match = DIRECTIONAL_PATTERN.match(text)
    if match:
        number_text, direction = match.groups()
        return _signed(abs(float(number_text)), direction, False)

    return None


def is_valid_latitude(value: Optional[float]) -> bool:
    return value is not None and -90 <= value <= 90


def is_valid_longitude(value: Optional[float]) -> bool:
    return value is not None and -180 <= value <= 180


def is_valid_coordinate(
    latitude: Optional[float],
    longitude: Optional[float],
    reject_zero: bool = True,
) -> bool:
    """
    Check that a pair lies within WGS84 bounds.

    An exact (0, 0) pair is rejected as a placeholder unless
    ``reject_zero`` is False; genuine readings at that point are lost.
    """
    if not is_valid_latitude(latitude) or not is_valid_longitude(longitude):
        return False
    if reject_zero and latitude == 0 and longitude == 0:
        return False
    return True


def looks_swapped(latitude: Optional[float], longitude: Optional[float]) -> bool:
    """True when the pair only makes sense with latitude and longitude exchanged."""
    if latitude is None or longitude is None:
        return False
    return 90 < abs(latitude) <= 180 and abs(longitude) <= 90


@dataclass(frozen=True)
class ValidatedCoordinates:
    """Outcome of validating one coordinate pair."""

    latitude: Optional[float]
    longitude: Optional[float]
    is_valid: bool
    validation_status: str  # valid, out_of_range, suspicious_zero, swapped, invalid
    confidence: float
    was_swapped: bool = False
    original_values: Optional[Tuple[Any, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "is_valid": self.is_valid,
            "validation_status": self.validation_status,
            "confidence": round(self.confidence, 2),
            "was_swapped": self.was_swapped,
        }
        if self.original_values is not None:
            data["original_values"] = list(self.original_values)
        return data


@dataclass(frozen=True)
class CoordinateExtraction:
    """Coordinates read out of a combined column value."""

    latitude: Optional[float]
    longitude: Optional[float]
    format: str
    is_valid: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "format": self.format,
            "is_valid": self.is_valid,
        }


class CoordinateValidator:
    """Validates, repairs and extracts coordinate pairs."""

    def __init__(self, reject_zero: bool = True):
        self.reject_zero = reject_zero

    def validate_coordinates(
        self, latitude: Any, longitude: Any, auto_fix: bool = True
    ) -> ValidatedCoordinates:
        """
        Classify a coordinate pair.

        Args:
            latitude: Raw or parsed latitude
            longitude: Raw or parsed longitude
            auto_fix: Exchange swapped values instead of rejecting them

        Returns:
            ValidatedCoordinates with status and confidence
        """
        original = None
        if isinstance(latitude, str) or isinstance(longitude, str):
            original = (latitude, longitude)
        lat = parse_coordinate(latitude)
        lon = parse_coordinate(longitude)

        if lat is None or lon is None:
            return ValidatedCoordinates(
                None, None, False, "invalid", 0.0, original_values=original
            )

        if self.reject_zero and lat == 0 and lon == 0:
            return ValidatedCoordinates(
                lat, lon, False, "suspicious_zero", 0.1, original_values=original
            )

        if looks_swapped(lat, lon):
            if auto_fix:
                logger.debug("Swapping coordinates (%s, %s)", lat, lon)
                return ValidatedCoordinates(
                    lon,
                    lat,
                    True,
                    "swapped",
                    0.8,
                    was_swapped=True,
                    original_values=original,
                )
            return ValidatedCoordinates(
                lat, lon, False, "swapped", 0.3, original_values=original
            )

        if not is_valid_latitude(lat) or not is_valid_longitude(lon):
            return ValidatedCoordinates(
                lat, lon, False, "out_of_range", 0.0, original_values=original
            )

        return ValidatedCoordinates(lat, lon, True, "valid", 1.0, original_values=original)

    def extract_from_combined(
        self, value: Any, format: Optional[str] = None
    ) -> CoordinateExtraction:
        """
        Read a coordinate pair out of one cell.

        ``format`` is one of ``combined_comma``, ``combined_space`` or
        ``geojson``; anything else auto-detects comma, space, then brackets.
        """
        if value is None or (isinstance(value, str) and not value.strip()):
            return CoordinateExtraction(None, None, format or "unknown", False)

        if format == "geojson":
            return self._extract_geojson(value)

        text = self._to_text(value)
        if format == "combined_comma":
            return self._extract_pair(text, COMMA_PAIR_PATTERN, "combined_comma")
        if format == "combined_space":
            return self._extract_pair(text, SPACE_PAIR_PATTERN, "combined_space")
        return self._extract_auto(value, text)

    @staticmethod
    def _to_text(value: Any) -> str:
        if isinstance(value, str):
            return value.strip()
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return str(value).strip()

    def _from_pair(self, lat: Any, lon: Any, format: str) -> CoordinateExtraction:
        validated = self.validate_coordinates(lat, lon)
        if validated.latitude is None:
            return CoordinateExtraction(None, None, format, False)
        return CoordinateExtraction(
            validated.latitude, validated.longitude, format, validated.is_valid
        )

    def _extract_pair(
        self, text: str, pattern: re.Pattern, format: str
    ) -> CoordinateExtraction:
        match = pattern.match(text)
        if not match:
            return CoordinateExtraction(None, None, format, False)
        return self._from_pair(float(match.group(1)), float(match.group(2)), format)

    def _extract_geojson(self, value: Any) -> CoordinateExtraction:
        point = value
        if isinstance(value, str):
            try:
                point = json.loads(value)
            except ValueError:
                logger.debug("Value is not JSON: %r", value)
                return CoordinateExtraction(None, None, "geojson", False)
        if not isinstance(point, dict) or point.get("type") != "Point":
            return CoordinateExtraction(None, None, "geojson", False)
        coordinates = point.get("coordinates")
        if not isinstance(coordinates, (list, tuple)) or len(coordinates) < 2:
            return CoordinateExtraction(None, None, "geojson", False)
        lon, lat = _as_float(coordinates[0]), _as_float(coordinates[1])
        if lon is None or lat is None:
            return CoordinateExtraction(None, None, "geojson", False)
        # GeoJSON positions are [lon, lat]
        return self._from_pair(lat, lon, "geojson")

    def _extract_auto(self, value: Any, text: str) -> CoordinateExtraction:
        for pattern, format in (
            (COMMA_PAIR_PATTERN, "combined_comma"),
            (SPACE_PAIR_PATTERN, "combined_space"),
        ):
            result = self._extract_pair(text, pattern, format)
            if result.is_valid:
                return result

        bracketed = parse_bracketed_pair(value)
        if bracketed is not None:
            return self._from_pair(bracketed[0], bracketed[1], "brackets")

        return CoordinateExtraction(None, None, "unknown", False)

    @staticmethod
    def detect_swapped_coordinates(samples: Iterable[Tuple[float, float]]) -> bool:
        """True when more than 70% of (lat, lon) samples look swapped."""
        samples = list(samples)
        if not samples:
            return False
        swapped = sum(1 for lat, lon in samples if looks_swapped(lat, lon))
        return swapped > len(samples) * 0.7

    @staticmethod
    def calculate_confidence(latitude: float, longitude: float) -> float:
        """
        Plausibility of a valid pair as a real observation.

        Whole-degree pairs, values near the poles or the antimeridian, and
        well-known test coordinates lower the score.
        """
        if not is_valid_latitude(latitude) or not is_valid_longitude(longitude):
            return 0.0

        confidence = 1.0
        if float(latitude).is_integer() and float(longitude).is_integer():
            confidence *= 0.9
        if abs(latitude) > 85 or abs(longitude) > 175:
            confidence *= 0.95
        if (float(latitude), float(longitude)) in TEST_COORDINATES:
            confidence *= 0.5
        return confidence


def parse_bracketed_pair(value: Any) -> Optional[Tuple[float, float]]:
    """
    Read ``[lat, lon]`` from a list/tuple or its string form.

    Returns:
        (lat, lon) floats, or None if the value is not a two-element pair
    """
    if isinstance(value, (list, tuple)):
        if len(value) != 2:
            return None
        first, second = parse_coordinate(value[0]), parse_coordinate(value[1])
    elif isinstance(value, str) and "," in value:
        parts = value.strip().strip("[]()").split(",")
        if len(parts) != 2:
            return None
        first, second = parse_coordinate(parts[0]), parse_coordinate(parts[1])
    else:
        return None

    if first is None or second is None:
        return None
    return first, second
