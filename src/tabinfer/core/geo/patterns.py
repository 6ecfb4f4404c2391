"""
Header patterns for latitude, longitude and combined coordinate columns.

Headers are trimmed before matching; all patterns are case-insensitive.
"""

import re
from typing import Optional, Sequence, Tuple

_FLAGS = re.IGNORECASE

LATITUDE_PATTERNS: Tuple[re.Pattern, ...] = tuple(
    re.compile(p, _FLAGS)
    for p in (
        r"^lat(itude)?$",
        r"^lat[_\s-]?deg(rees)?$",
        r"^y[_\s-]?coord(inate)?$",
        r"^location[_\s-]?lat(itude)?$",
        r"^geo[_\s-]?lat(itude)?$",
        r"^decimal[_\s-]?lat(itude)?$",
        r"^latitude[_\s-]?decimal$",
        r"^wgs84[_\s-]?lat(itude)?$",
    )
)

LONGITUDE_PATTERNS: Tuple[re.Pattern, ...] = tuple(
    re.compile(p, _FLAGS)
    for p in (
        r"^lon(g|gitude)?$",
        r"^lng$",
        r"^lon[_\s-]?deg(rees)?$",
        r"^long[_\s-]?deg(rees)?$",
        r"^x[_\s-]?coord(inate)?$",
        r"^location[_\s-]?lon(g|gitude)?$",
        r"^geo[_\s-]?lon(g|gitude)?$",
        r"^decimal[_\s-]?lon(g|gitude)?$",
        r"^longitude[_\s-]?decimal$",
        r"^wgs84[_\s-]?lon(g|gitude)?$",
    )
)

COMBINED_PATTERNS: Tuple[re.Pattern, ...] = tuple(
    re.compile(p, _FLAGS)
    for p in (
        r"^coord(inate)?s$",
        r"^lat[_\s-]?lon(g)?$",
        r"^location$",
        r"^geo[_\s-]?location$",
        r"^position$",
        r"^point$",
        r"^geometry$",
        r"^coordinates$",
    )
)


def match_index(header: str, patterns: Sequence[re.Pattern]) -> Optional[int]:
    """Index of the first pattern matching ``header``, or None."""
    name = header.strip()
    for index, pattern in enumerate(patterns):
        if pattern.match(name):
            return index
    return None


def find_header(headers: Sequence[str], patterns: Sequence[re.Pattern]) -> Optional[str]:
    """First header (in declaration order) matching any pattern."""
    for header in headers:
        if match_index(header, patterns) is not None:
            return header
    return None
