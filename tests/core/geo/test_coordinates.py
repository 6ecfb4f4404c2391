"""
Tests for coordinate parsing and validation.
"""

import pytest

from tabinfer.core.geo.coordinates import (
    CoordinateValidator,
    is_valid_coordinate,
    looks_swapped,
    parse_bracketed_pair,
    parse_coordinate,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        (45.5, 45.5),
        (-122, -122.0),
        ("45.5", 45.5),
        ("  -33.8688 ", -33.8688),
        ("45.5N", 45.5),
        ("45.5 S", -45.5),
        ("122.3W", -122.3),
    ],
)
def test_parse_coordinate_decimal_forms(value, expected):
    """Numbers, decimal strings and compass suffixes parse to decimal degrees."""
    assert parse_coordinate(value) == pytest.approx(expected)


def test_parse_coordinate_dms():
    """Degrees, minutes and seconds are converted and signed by direction."""
    assert parse_coordinate("40°26'46\"N") == pytest.approx(40.446111, abs=1e-5)
    assert parse_coordinate("79°58'56\"W") == pytest.approx(-79.982222, abs=1e-5)


def test_parse_coordinate_degrees_decimal_minutes():
    assert parse_coordinate("40°30.5'N") == pytest.approx(40.508333, abs=1e-5)


@pytest.mark.parametrize(
    "value", [None, "", "   ", "abc", True, float("nan"), float("inf"), {"a": 1}]
)
def test_parse_coordinate_rejects_non_coordinates(value):
    assert parse_coordinate(value) is None


def test_parse_coordinate_rejects_minutes_out_of_range():
    assert parse_coordinate("40°75'10\"N") is None


def test_is_valid_coordinate_bounds():
    assert is_valid_coordinate(45.0, 90.0)
    assert is_valid_coordinate(-90, -180)
    assert not is_valid_coordinate(91.0, 10.0)
    assert not is_valid_coordinate(10.0, 181.0)
    assert not is_valid_coordinate(None, 10.0)


def test_is_valid_coordinate_zero_policy():
    """(0, 0) is treated as a placeholder unless zero rejection is off."""
    assert not is_valid_coordinate(0, 0)
    assert is_valid_coordinate(0, 0, reject_zero=False)
    assert is_valid_coordinate(0, 10.0)


def test_looks_swapped():
    assert looks_swapped(151.2, -33.9)
    assert not looks_swapped(-33.9, 151.2)
    assert not looks_swapped(None, 10.0)


class TestCoordinateValidator:
    """Tests for CoordinateValidator."""

    def setup_method(self):
        self.validator = CoordinateValidator()

    def test_valid_pair(self):
        result = self.validator.validate_coordinates(48.8566, 2.3522)
        assert result.is_valid
        assert result.validation_status == "valid"
        assert result.confidence == 1.0
        assert not result.was_swapped

    def test_string_pair_keeps_original_values(self):
        result = self.validator.validate_coordinates("48.8566", "2.3522")
        assert result.is_valid
        assert result.original_values == ("48.8566", "2.3522")

    def test_swapped_pair_is_fixed(self):
        result = self.validator.validate_coordinates(151.2093, -33.8688)
        assert result.is_valid
        assert result.validation_status == "swapped"
        assert result.was_swapped
        assert result.latitude == pytest.approx(-33.8688)
        assert result.longitude == pytest.approx(151.2093)
        assert result.confidence == 0.8

    def test_swapped_pair_without_auto_fix(self):
        result = self.validator.validate_coordinates(151.2, -33.8, auto_fix=False)
        assert not result.is_valid
        assert result.validation_status == "swapped"
        assert result.confidence == 0.3

    def test_suspicious_zero(self):
        result = self.validator.validate_coordinates(0, 0)
        assert not result.is_valid
        assert result.validation_status == "suspicious_zero"

    def test_zero_allowed_when_configured(self):
        result = CoordinateValidator(reject_zero=False).validate_coordinates(0, 0)
        assert result.is_valid

    def test_out_of_range(self):
        result = self.validator.validate_coordinates(95.0, 200.0)
        assert not result.is_valid
        assert result.validation_status == "out_of_range"

    def test_unparseable(self):
        result = self.validator.validate_coordinates("north", "east")
        assert not result.is_valid
        assert result.validation_status == "invalid"
        assert result.latitude is None

    def test_to_dict(self):
        data = self.validator.validate_coordinates("1.5", "2.5").to_dict()
        assert data["is_valid"] is True
        assert data["original_values"] == ["1.5", "2.5"]

    def test_extract_comma(self):
        result = self.validator.extract_from_combined("40.7128, -74.0060")
        assert result.is_valid
        assert result.format == "combined_comma"
        assert result.latitude == pytest.approx(40.7128)
        assert result.longitude == pytest.approx(-74.006)

    def test_extract_space(self):
        result = self.validator.extract_from_combined("40.7128 -74.0060")
        assert result.is_valid
        assert result.format == "combined_space"

    def test_extract_geojson_is_lon_lat(self):
        result = self.validator.extract_from_combined(
            '{"type": "Point", "coordinates": [2.3522, 48.8566]}', format="geojson"
        )
        assert result.is_valid
        assert result.latitude == pytest.approx(48.8566)
        assert result.longitude == pytest.approx(2.3522)

    def test_extract_geojson_dict(self):
        result = self.validator.extract_from_combined(
            {"type": "Point", "coordinates": [2.3522, 48.8566]}, format="geojson"
        )
        assert result.is_valid

    def test_extract_geojson_wrong_type(self):
        result = self.validator.extract_from_combined(
            {"type": "LineString", "coordinates": [[0, 1], [2, 3]]}, format="geojson"
        )
        assert not result.is_valid

    def test_extract_brackets(self):
        result = self.validator.extract_from_combined([40.7, -74.0])
        assert result.is_valid
        assert result.format == "brackets"

    def test_extract_empty(self):
        result = self.validator.extract_from_combined("   ")
        assert not result.is_valid
        assert result.format == "unknown"

    def test_extract_garbage(self):
        result = self.validator.extract_from_combined("somewhere nice")
        assert not result.is_valid
        assert result.latitude is None

    def test_detect_swapped_coordinates(self):
        swapped = [(151.2, -33.8), (150.9, -34.1), (149.1, -35.3)]
        assert CoordinateValidator.detect_swapped_coordinates(swapped)
        assert not CoordinateValidator.detect_swapped_coordinates([(-33.8, 151.2)])
        assert not CoordinateValidator.detect_swapped_coordinates([])

    def test_calculate_confidence(self):
        assert CoordinateValidator.calculate_confidence(48.8566, 2.3522) == 1.0
        assert CoordinateValidator.calculate_confidence(48, 2) == pytest.approx(0.9)
        assert CoordinateValidator.calculate_confidence(
            12.345678, 12.345678
        ) == pytest.approx(0.5)
        assert CoordinateValidator.calculate_confidence(100, 2) == 0.0


def test_parse_bracketed_pair():
    assert parse_bracketed_pair("[40.7, -74.0]") == (40.7, -74.0)
    assert parse_bracketed_pair((1, 2)) == (1.0, 2.0)
    assert parse_bracketed_pair([1, 2, 3]) is None
    assert parse_bracketed_pair("[a, b]") is None
    assert parse_bracketed_pair(42) is None
