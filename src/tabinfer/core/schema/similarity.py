"""
Similarity between an uploaded table and catalog datasets.

The score (0-100) is a weighted sum of five sub-scores:

==================== ====== ==================================================
sub-score            weight basis
==================== ====== ==================================================
field overlap        35%    Jaccard index (40%) and fuzzy/synonym matches (60%)
type compatibility   25%    inferred upload types vs declared dataset types
structure similarity 20%    min(field count) / max(field count)
semantic hints       15%    agreement on geo-looking and date-looking names
language match        5%    detected vs declared language
==================== ====== ==================================================
"""

from dataclasses import dataclass, field
import logging
import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from tabinfer.core.config_models import Catalog, CatalogDataset, SimilaritySettings

logger = logging.getLogger(__name__)

WEIGHTS = {
    "field_overlap": 0.35,
    "type_compatibility": 0.25,
    "structure_similarity": 0.20,
    "semantic_hints": 0.15,
    "language_match": 0.05,
}

SYNONYM_GROUPS = (
    frozenset({"title", "name", "event", "label", "heading", "subject"}),
    frozenset({"description", "desc", "details", "summary", "notes", "content", "text"}),
    frozenset({"date", "timestamp", "datetime", "time", "when", "start", "created"}),
    frozenset({"location", "address", "place", "venue", "city", "area", "region"}),
    frozenset({"latitude", "lat", "y", "coord_y"}),
    frozenset({"longitude", "lng", "lon", "long", "x", "coord_x"}),
)

TYPE_COMPATIBILITY_GROUPS = (
    frozenset({"string", "date", "numeric_string"}),
    frozenset({"number", "integer", "numeric_string"}),
    frozenset({"boolean", "string"}),
)

FUZZY_MATCH_THRESHOLD = 0.7
SYNONYM_SCORE = 0.9

GEO_NAME_PATTERN = re.compile(r"lat|lon|lng|location|address|coord", re.IGNORECASE)
DATE_NAME_PATTERN = re.compile(r"date|time|timestamp|when|created|start", re.IGNORECASE)
LOOSE_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}|^\d{2}[/.]\d{2}[/.]\d{4}")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def levenshtein_distance(s1: str, s2: str) -> int:
    """Minimum number of single-character edits turning ``s1`` into ``s2``."""
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)
    if not s2:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            current_row.append(
                min(
                    previous_row[j + 1] + 1,
                    current_row[j] + 1,
                    previous_row[j] + (c1 != c2),
                )
            )
        previous_row = current_row
    return previous_row[-1]


def normalize_field_name(name: str) -> str:
    return name.lower().replace("_", "").replace("-", "")


def name_similarity(first: str, second: str) -> float:
    """Normalized Levenshtein similarity after lower-casing and dropping ``_``/``-``."""
    s1, s2 = normalize_field_name(first), normalize_field_name(second)
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0
    return 1.0 - levenshtein_distance(s1, s2) / max(len(s1), len(s2))


def are_synonyms(first: str, second: str) -> bool:
    f1, f2 = first.lower(), second.lower()
    return any(f1 in group and f2 in group for group in SYNONYM_GROUPS)


def are_types_compatible(first: str, second: str) -> bool:
    if first == second:
        return True
    return any(
        first in group and second in group for group in TYPE_COMPATIBILITY_GROUPS
    )


@dataclass(frozen=True)
class FieldMatch:
    field: str
    score: float


def find_best_match(name: str, candidates: Iterable[str]) -> Optional[FieldMatch]:
    """
    Best candidate for ``name``.

    Case-insensitive equality wins outright (1.0); synonyms score 0.9;
    otherwise the closest name at or above the fuzzy threshold.
    """
    best: Optional[FieldMatch] = None
    for candidate in candidates:
        if name.lower() == candidate.lower():
            return FieldMatch(candidate, 1.0)
        if are_synonyms(name, candidate):
            score = SYNONYM_SCORE
        else:
            score = name_similarity(name, candidate)
            if score < FUZZY_MATCH_THRESHOLD:
                continue
        if best is None or score > best.score:
            best = FieldMatch(candidate, score)
    return best


def classify_sample_type(value: Any) -> str:
    """Loose type of a sample value as used for compatibility checks."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "integer" if float(value).is_integer() else "number"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    if not isinstance(value, str):
        return "unknown"
    if LOOSE_DATE_PATTERN.match(value):
        return "date"
    try:
        number = float(value)
    except ValueError:
        return "string"
    return "numeric_string" if math.isfinite(number) else "string"


def infer_field_type(values: Iterable[Any]) -> str:
    """Dominant non-null sample type, ``string`` when nothing is known."""
    counts: Dict[str, int] = {}
    for value in values:
        kind = classify_sample_type(value)
        if kind != "null":
            counts[kind] = counts.get(kind, 0) + 1
    if not counts:
        return "string"
    return max(counts.items(), key=lambda item: item[1])[0]


@dataclass
class UploadedSchema:
    """Headers and sample rows of a file being imported."""

    headers: List[str]
    sample_data: List[Mapping[str, Any]] = field(default_factory=list)
    row_count: int = 0
    field_types: Dict[str, str] = field(default_factory=dict)

    def inferred_types(self) -> Dict[str, str]:
        """Lower-cased header -> type, declared types taking precedence."""
        types = {}
        for header in self.headers:
            if header in self.field_types:
                types[header.lower()] = self.field_types[header]
                continue
            values = [row[header] for row in self.sample_data if header in row]
            types[header.lower()] = infer_field_type(values)
        return types


@dataclass
class DatasetSchema:
    """A catalog dataset as seen by the similarity scorer."""

    dataset_id: Union[int, str]
    dataset_name: str
    language: Optional[str]
    fields: List[str]
    field_types: Dict[str, str] = field(default_factory=dict)
    has_geo_fields: bool = False
    has_date_fields: bool = False


@dataclass
class SimilarityResult:
    dataset_id: Union[int, str]
    dataset_name: str
    score: int
    breakdown: Dict[str, int]
    matching_fields: List[str]
    missing_fields: List[str]
    new_fields: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataset_id": self.dataset_id,
            "dataset_name": self.dataset_name,
            "score": self.score,
            "breakdown": dict(self.breakdown),
            "matching_fields": list(self.matching_fields),
            "missing_fields": list(self.missing_fields),
            "new_fields": list(self.new_fields),
        }


def _jaccard_index(first: set, second: set) -> float:
    if not first and not second:
        return 1.0
    if not first or not second:
        return 0.0
    return len(first & second) / len(first | second)


def calculate_field_overlap(
    uploaded_fields: Sequence[str], dataset_fields: Sequence[str]
) -> Dict[str, Any]:
    matching: List[str] = []
    new_fields: List[str] = []
    matched_dataset_fields = set()

    for name in uploaded_fields:
        match = find_best_match(name, dataset_fields)
        if match is not None:
            matching.append(name)
            matched_dataset_fields.add(match.field.lower())
        else:
            new_fields.append(name)

    missing = [f for f in dataset_fields if f.lower() not in matched_dataset_fields]

    jaccard = _jaccard_index(
        {f.lower() for f in uploaded_fields}, {f.lower() for f in dataset_fields}
    )
    fuzzy = len(matching) / max(len(uploaded_fields), len(dataset_fields), 1)
    score = min((jaccard * 0.4 + fuzzy * 0.6) * 100, 100.0)

    return {
        "score": score,
        "matching": matching,
        "missing": missing,
        "new": new_fields,
    }


def calculate_type_compatibility(
    uploaded: UploadedSchema, dataset: DatasetSchema
) -> float:
    if not dataset.field_types:
        return 70.0

    uploaded_types = uploaded.inferred_types()
    compatible = 0
    compared = 0
    for name, expected in dataset.field_types.items():
        match = find_best_match(name, uploaded.headers)
        if match is None:
            continue
        compared += 1
        actual = uploaded_types.get(match.field.lower())
        if actual and are_types_compatible(actual, expected):
            compatible += 1

    if compared == 0:
        return 50.0
    return compatible / compared * 100


def calculate_structure_similarity(
    uploaded: UploadedSchema, dataset: DatasetSchema
) -> float:
    uploaded_count, dataset_count = len(uploaded.headers), len(dataset.fields)
    if not uploaded_count or not dataset_count:
        return 0.0
    return min(uploaded_count, dataset_count) / max(uploaded_count, dataset_count) * 100


def has_geo_names(headers: Iterable[str]) -> bool:
    return any(GEO_NAME_PATTERN.search(h) for h in headers)


def has_date_names(headers: Iterable[str]) -> bool:
    return any(DATE_NAME_PATTERN.search(h) for h in headers)


def calculate_semantic_hints(uploaded: UploadedSchema, dataset: DatasetSchema) -> float:
    uploaded_geo = has_geo_names(uploaded.headers)
    uploaded_date = has_date_names(uploaded.headers)

    score = 0.0
    comparisons = 0
    if dataset.has_geo_fields or uploaded_geo:
        score += 100 if dataset.has_geo_fields == uploaded_geo else 0
        comparisons += 1
    if dataset.has_date_fields or uploaded_date:
        score += 100 if dataset.has_date_fields == uploaded_date else 0
        comparisons += 1

    if comparisons == 0:
        return 50.0
    return score / comparisons


def calculate_language_match(
    dataset_language: Optional[str], detected_language: Optional[str]
) -> float:
    if not detected_language or not dataset_language:
        return 50.0
    return 100.0 if dataset_language == detected_language else 30.0


def calculate_schema_similarity(
    uploaded: UploadedSchema,
    dataset: DatasetSchema,
    detected_language: Optional[str] = None,
) -> SimilarityResult:
    """
    Score how well an uploaded table fits a catalog dataset.

    Args:
        uploaded: Headers and samples of the upload
        dataset: Candidate destination
        detected_language: Language code detected for the upload

    Returns:
        SimilarityResult with the rounded total and breakdown
    """
    overlap = calculate_field_overlap(uploaded.headers, dataset.fields)
    sub_scores = {
        "field_overlap": overlap["score"],
        "type_compatibility": calculate_type_compatibility(uploaded, dataset),
        "structure_similarity": calculate_structure_similarity(uploaded, dataset),
        "semantic_hints": calculate_semantic_hints(uploaded, dataset),
        "language_match": calculate_language_match(dataset.language, detected_language),
    }
    total = sum(sub_scores[name] * weight for name, weight in WEIGHTS.items())

    return SimilarityResult(
        dataset_id=dataset.dataset_id,
        dataset_name=dataset.dataset_name,
        score=round_half_up(total),
        breakdown={name: round_half_up(value) for name, value in sub_scores.items()},
        matching_fields=overlap["matching"],
        missing_fields=overlap["missing"],
        new_fields=overlap["new"],
    )


def find_similar_datasets(
    uploaded: UploadedSchema,
    datasets: Iterable[DatasetSchema],
    min_score: Optional[int] = None,
    max_results: Optional[int] = None,
    detected_language: Optional[str] = None,
    settings: Optional[SimilaritySettings] = None,
) -> List[SimilarityResult]:
    """
    Rank catalog datasets by similarity.

    Results below ``min_score`` are dropped; the rest are sorted by score
    (stable for ties) and truncated to ``max_results``.
    """
    settings = settings or SimilaritySettings()
    min_score = settings.min_score if min_score is None else min_score
    max_results = settings.max_results if max_results is None else max_results

    results = []
    for dataset in datasets:
        result = calculate_schema_similarity(uploaded, dataset, detected_language)
        logger.debug("Dataset %s scored %d", dataset.dataset_name, result.score)
        if result.score >= min_score:
            results.append(result)

    results.sort(key=lambda r: r.score, reverse=True)
    return results[:max_results]


GEO_MAPPING_KEYS = ("latitude_path", "longitude_path", "location_path")
MAPPING_KEYS = (
    "title_path",
    "description_path",
    "timestamp_path",
    "latitude_path",
    "longitude_path",
    "location_path",
)


def dataset_schema_from_catalog(entry: CatalogDataset) -> DatasetSchema:
    """
    Build a DatasetSchema from a catalog entry.

    Mapped paths count as fields. Geo and date presence default to whether
    the entry maps coordinate or timestamp paths.
    """
    fields = list(entry.fields)
    for key in MAPPING_KEYS:
        path = entry.field_mappings.get(key)
        if path and path not in fields:
            fields.append(path)

    has_geo = entry.has_geo
    if has_geo is None:
        has_geo = any(entry.field_mappings.get(key) for key in GEO_MAPPING_KEYS)
    has_date = entry.has_date
    if has_date is None:
        has_date = bool(entry.field_mappings.get("timestamp_path"))

    return DatasetSchema(
        dataset_id=entry.id,
        dataset_name=entry.name,
        language=entry.language,
        fields=fields,
        field_types=dict(entry.field_types),
        has_geo_fields=has_geo,
        has_date_fields=has_date,
    )


def datasets_from_catalog(catalog: Catalog) -> List[DatasetSchema]:
    return [dataset_schema_from_catalog(entry) for entry in catalog.datasets]
