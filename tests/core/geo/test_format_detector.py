"""
Tests for combined coordinate format detection.
"""

from tabinfer.core.geo.format_detector import (
    check_bracket_format,
    check_comma_format,
    check_geojson_format,
    check_space_format,
    detect_combined_format,
    non_empty_samples,
)


def test_non_empty_samples_skips_blanks():
    values = [None, "", "  ", float("nan"), "1, 2", "3, 4"]
    assert non_empty_samples(values) == ["1, 2", "3, 4"]


def test_non_empty_samples_limit():
    assert non_empty_samples(list(range(1, 30)), limit=3) == [1, 2, 3]


def test_check_comma_format():
    samples = ["40.7128, -74.0060", "34.0522,-118.2437", "51.5074,  -0.1278"]
    result = check_comma_format(samples)
    assert result is not None
    assert result.format == "combined_comma"
    assert result.confidence == 1.0


def test_check_comma_format_below_threshold():
    samples = ["40.7, -74.0", "nowhere", "unknown", "n/a"]
    assert check_comma_format(samples) is None


def test_check_comma_format_zero_pairs_rejected():
    samples = ["0, 0", "0,0", "40.7, -74.0"]
    assert check_comma_format(samples) is None
    result = check_comma_format(samples, reject_zero=False)
    assert result is not None


def test_check_space_format():
    result = check_space_format(["40.7128 -74.0060", "34.0522 -118.2437"])
    assert result is not None
    assert result.format == "combined_space"


def test_check_geojson_format_strings_and_dicts():
    samples = [
        '{"type": "Point", "coordinates": [-74.006, 40.7128]}',
        {"type": "Point", "coordinates": [2.3522, 48.8566]},
    ]
    result = check_geojson_format(samples)
    assert result is not None
    assert result.format == "geojson"


def test_check_geojson_format_rejects_string_positions():
    samples = [{"type": "Point", "coordinates": ["-74.0", "40.7"]}]
    assert check_geojson_format(samples) is None


def test_check_bracket_format():
    result = check_bracket_format([[40.7, -74.0], "[51.5, -0.12]"])
    assert result is not None
    assert result.format == "brackets"


def test_detect_combined_format_order():
    """Comma pairs are tried before the other formats."""
    result = detect_combined_format(["40.7128, -74.0060"] * 5)
    assert result.format == "combined_comma"


def test_detect_combined_format_geojson():
    values = [{"type": "Point", "coordinates": [13.4 + i / 100, 52.5]} for i in range(5)]
    result = detect_combined_format(values)
    assert result.format == "geojson"


def test_detect_combined_format_none():
    assert detect_combined_format([]) is None
    assert detect_combined_format([None, ""]) is None
    assert detect_combined_format(["Berlin", "Paris", "Rome"]) is None


def test_format_result_to_dict():
    result = detect_combined_format(["1.5 2.5", "3.5 4.5", "bad"], min_confidence=0.6)
    assert result.to_dict() == {"format": "combined_space", "confidence": 0.67}
