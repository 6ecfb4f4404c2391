"""
Tests for schema similarity scoring.
"""

import pytest

from tabinfer.core.config_models import Catalog, CatalogDataset, SimilaritySettings
from tabinfer.core.schema.similarity import (
    DatasetSchema,
    UploadedSchema,
    are_synonyms,
    are_types_compatible,
    calculate_field_overlap,
    calculate_language_match,
    calculate_schema_similarity,
    calculate_semantic_hints,
    classify_sample_type,
    dataset_schema_from_catalog,
    datasets_from_catalog,
    find_best_match,
    find_similar_datasets,
    infer_field_type,
    levenshtein_distance,
    name_similarity,
    round_half_up,
)

HEADERS = ["title", "description", "date", "latitude", "longitude"]


@pytest.fixture
def uploaded():
    return UploadedSchema(
        headers=list(HEADERS),
        sample_data=[
            {
                "title": "Open air cinema",
                "description": "Films under the stars",
                "date": "2024-07-01",
                "latitude": 48.85,
                "longitude": 2.35,
            },
            {
                "title": "Jazz night",
                "description": "Live jazz by the river",
                "date": "2024-07-02",
                "latitude": 48.86,
                "longitude": 2.36,
            },
        ],
        row_count=2,
    )


@pytest.fixture
def same_dataset():
    return DatasetSchema(
        dataset_id=1,
        dataset_name="Events",
        language="eng",
        fields=list(HEADERS),
        field_types={"title": "string", "date": "date", "latitude": "number"},
        has_geo_fields=True,
        has_date_fields=True,
    )


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2


def test_levenshtein_distance():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("same", "same") == 0


def test_name_similarity():
    assert name_similarity("Event_Date", "eventdate") == 1.0
    assert name_similarity("adress", "address") == pytest.approx(1 - 1 / 7)
    assert name_similarity("", "abc") == 0.0


def test_synonyms_and_type_groups():
    assert are_synonyms("Name", "title")
    assert are_synonyms("lng", "longitude")
    assert not are_synonyms("title", "date")
    assert are_types_compatible("integer", "numeric_string")
    assert are_types_compatible("date", "string")
    assert not are_types_compatible("boolean", "number")


class TestFindBestMatch:
    """Tests for find_best_match."""

    def test_exact_match_wins(self):
        match = find_best_match("Title", ["name", "title"])
        assert match.field == "title"
        assert match.score == 1.0

    def test_synonym(self):
        match = find_best_match("name", ["title", "date"])
        assert match.field == "title"
        assert match.score == 0.9

    def test_fuzzy(self):
        match = find_best_match("adress", ["address", "city"])
        assert match.field == "address"

    def test_below_threshold(self):
        assert find_best_match("titel", ["title"]) is None
        assert find_best_match("foo", []) is None


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, "null"),
        (True, "boolean"),
        (3.0, "integer"),
        (3.5, "number"),
        ("12.5", "numeric_string"),
        ("2024-01-01", "date"),
        ("01.02.2024", "date"),
        ("abc", "string"),
        ("nan", "string"),
        ([1], "array"),
        ({"a": 1}, "object"),
    ],
)
def test_classify_sample_type(value, expected):
    assert classify_sample_type(value) == expected


def test_infer_field_type():
    assert infer_field_type(["a", "b", 1]) == "string"
    assert infer_field_type([None, None]) == "string"
    assert infer_field_type([1, 2, None]) == "integer"


def test_inferred_types_prefer_declared():
    schema = UploadedSchema(
        headers=["Amount"],
        sample_data=[{"Amount": "12"}],
        field_types={"Amount": "number"},
    )
    assert schema.inferred_types() == {"amount": "number"}


def test_field_overlap_lists():
    overlap = calculate_field_overlap(["title", "extra"], ["title", "date"])
    assert overlap["matching"] == ["title"]
    assert overlap["new"] == ["extra"]
    assert overlap["missing"] == ["date"]
    # jaccard 1/3, fuzzy 1/2
    assert overlap["score"] == pytest.approx((1 / 3 * 0.4 + 0.5 * 0.6) * 100)


def test_language_match():
    assert calculate_language_match("eng", "eng") == 100.0
    assert calculate_language_match("eng", "deu") == 30.0
    assert calculate_language_match("eng", None) == 50.0
    assert calculate_language_match(None, "eng") == 50.0


def test_semantic_hints_neutral_without_signals():
    upload = UploadedSchema(headers=["foo"])
    dataset = DatasetSchema(1, "d", None, ["bar"])
    assert calculate_semantic_hints(upload, dataset) == 50.0


def test_self_similarity_is_high(uploaded, same_dataset):
    result = calculate_schema_similarity(uploaded, same_dataset, detected_language="eng")
    assert result.score >= 90
    assert result.breakdown["field_overlap"] == 100
    assert result.matching_fields == HEADERS
    assert result.missing_fields == []
    assert result.new_fields == []


def test_disjoint_similarity_is_low():
    upload = UploadedSchema(headers=["foo", "bar"])
    dataset = DatasetSchema("x", "Other", None, ["title", "description", "date"])
    result = calculate_schema_similarity(upload, dataset)
    assert result.score < 50
    assert result.breakdown["field_overlap"] == 0
    assert result.new_fields == ["foo", "bar"]


def test_score_within_bounds(uploaded, same_dataset):
    result = calculate_schema_similarity(uploaded, same_dataset)
    assert 0 <= result.score <= 100
    assert set(result.breakdown) == {
        "field_overlap",
        "type_compatibility",
        "structure_similarity",
        "semantic_hints",
        "language_match",
    }
    assert result.to_dict()["dataset_name"] == "Events"


class TestFindSimilarDatasets:
    """Tests for find_similar_datasets."""

    def test_ranking_and_threshold(self, uploaded, same_dataset):
        partial = DatasetSchema(2, "Partial", "eng", ["title", "date", "venue"])
        unrelated = DatasetSchema(3, "Other", "eng", ["sku", "price"])
        results = find_similar_datasets(
            uploaded, [unrelated, partial, same_dataset], min_score=40
        )
        names = [r.dataset_name for r in results]
        assert names[0] == "Events"
        assert "Other" not in names
        assert all(r.score >= 40 for r in results)

    def test_max_results(self, uploaded, same_dataset):
        datasets = [same_dataset] * 4
        results = find_similar_datasets(uploaded, datasets, min_score=0, max_results=2)
        assert len(results) == 2

    def test_settings_defaults(self, uploaded, same_dataset):
        settings = SimilaritySettings(min_score=0, max_results=1)
        results = find_similar_datasets(uploaded, [same_dataset] * 3, settings=settings)
        assert len(results) == 1

    def test_empty_catalog(self, uploaded):
        assert find_similar_datasets(uploaded, []) == []


def test_dataset_schema_from_catalog():
    entry = CatalogDataset(
        id="ev",
        name="Events",
        fields=["title"],
        field_types={"start": "date"},
        field_mappings={"latitude_path": "lat", "timestamp_path": "start"},
    )
    dataset = dataset_schema_from_catalog(entry)
    assert dataset.fields == ["title", "start", "lat"]
    assert dataset.has_geo_fields
    assert dataset.has_date_fields
    assert dataset.field_types == {"start": "date"}


def test_dataset_schema_explicit_flags_win():
    entry = CatalogDataset(
        id="a", name="A", fields=["lat"], has_geo=False, field_mappings={"latitude_path": "lat"}
    )
    assert dataset_schema_from_catalog(entry).has_geo_fields is False


def test_datasets_from_catalog():
    catalog = Catalog(datasets=[CatalogDataset(id="a", name="A"), CatalogDataset(id="b", name="B")])
    assert [d.dataset_id for d in datasets_from_catalog(catalog)] == ["a", "b"]
