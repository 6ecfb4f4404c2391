"""
Tests for the schema inference engine.
"""

import json
from unittest import mock

import pytest

from tabinfer.core.config_models import DetectionSettings
from tabinfer.core.engine import SchemaInferenceEngine
from tabinfer.core.mapping.language import LanguageDetectionResult
from tabinfer.core.schema.similarity import DatasetSchema


@pytest.fixture
def engine(event_rows):
    engine = SchemaInferenceEngine()
    engine.process_batch(event_rows[:10])
    engine.process_batch(event_rows[10:])
    return engine


def test_headers(engine):
    assert engine.headers() == ["id", "title", "description", "venue", "date", "lat", "lon"]
    assert engine.builder.record_count == 20


def test_detect_event_table(engine):
    detection = engine.detect(language="eng")
    mappings = detection.mappings
    assert mappings.title_path == "title"
    assert mappings.description_path == "description"
    assert mappings.location_name_path == "venue"
    assert mappings.timestamp_path == "date"
    assert mappings.latitude_path == "lat"
    assert mappings.longitude_path == "lon"
    assert detection.geo.found
    assert detection.geo.type == "separate"
    assert detection.language == "eng"


def test_low_confidence_roles(engine):
    detection = engine.detect(language="eng")
    # "venue" is a late location pattern
    assert detection.low_confidence_roles(0.9) == ["location"]
    assert detection.low_confidence_roles() == []


def test_detection_to_dict_is_serializable(engine):
    data = engine.detect().to_dict()
    assert data["mappings"]["title_path"] == "title"
    assert data["geo"]["type"] == "separate"
    json.dumps(data)


def test_default_language_without_detector(engine):
    assert engine.detect().language == "eng"


def test_language_detector_is_used(event_rows):
    detector = mock.Mock(return_value=LanguageDetectionResult("deu", 0.9))
    engine = SchemaInferenceEngine(language_detector=detector)
    engine.process_batch(event_rows)
    detection = engine.detect()
    assert detection.language == "deu"
    detector.assert_called_once()
    # German patterns miss the English headers, English fallback still maps them
    assert detection.mappings.title_path == "title"


def test_default_language_setting(event_rows):
    engine = SchemaInferenceEngine(DetectionSettings(default_language="fra"))
    engine.process_batch(event_rows)
    assert engine.detect().language == "fra"


def test_swapped_columns_are_exchanged():
    rows = [
        {"name": f"Harbour view {i}", "lat": 151.2 + i * 0.01, "lng": -33.8 + i * 0.01}
        for i in range(10)
    ]
    engine = SchemaInferenceEngine()
    engine.process_batch(rows)
    detection = engine.detect(language="eng")
    assert detection.geo.swapped_coordinates
    assert detection.mappings.latitude_path == "lng"
    assert detection.mappings.longitude_path == "lat"


def test_combined_column_is_not_a_location():
    rows = [
        {"title": f"Lighthouse number {i}", "location": f"{40 + i}.5, -7{i}.25"}
        for i in range(6)
    ]
    engine = SchemaInferenceEngine()
    engine.process_batch(rows)
    detection = engine.detect(language="eng")
    assert detection.geo.type == "combined"
    assert detection.geo.combined_column == "location"
    assert detection.mappings.location_path is None
    assert detection.confidence["location"] == 0.0


def test_state_round_trip(engine, event_rows):
    state = json.loads(json.dumps(engine.state_dict()))
    restored = SchemaInferenceEngine(state=state)
    assert list(restored.field_stats) == list(engine.field_stats)
    assert restored.detect(language="eng").mappings == engine.detect(language="eng").mappings


def test_suggest_datasets(engine):
    events = DatasetSchema(
        dataset_id="events",
        dataset_name="Events",
        language="eng",
        fields=["id", "title", "description", "venue", "date", "lat", "lon"],
    )
    products = DatasetSchema("products", "Products", "eng", ["sku", "price", "stock"])
    results = engine.suggest_datasets([products, events], language="eng", min_score=0)
    assert results[0].dataset_name == "Events"
    assert results[0].score > results[1].score


def test_uploaded_schema(engine):
    uploaded = engine.uploaded_schema()
    assert uploaded.row_count == 20
    assert len(uploaded.sample_data) == 20
