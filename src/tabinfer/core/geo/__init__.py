"""
Coordinate parsing and geo-column detection.
"""

from .coordinates import CoordinateValidator, parse_coordinate
from .detector import GeoColumnDetector, GeoColumnResult, detect_geo_columns
from .format_detector import detect_combined_format

__all__ = [
    "CoordinateValidator",
    "GeoColumnDetector",
    "GeoColumnResult",
    "detect_combined_format",
    "detect_geo_columns",
    "parse_coordinate",
]
