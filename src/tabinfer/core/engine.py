"""
Schema inference engine.

Ties the progressive schema builder, the geo-column detector and the
field-mapping detector together behind one object that a pipeline feeds
batch after batch.
"""

from dataclasses import dataclass
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from tabinfer.core.config_models import DetectionSettings
from tabinfer.core.geo.detector import (
    GeoColumnDetector,
    GeoColumnResult,
    headers_from_rows,
)
from tabinfer.core.mapping.field_mapping import FieldMappings, score_field_mappings
from tabinfer.core.mapping.language import LanguageDetector, resolve_language
from tabinfer.core.schema.builder import BatchResult, ProgressiveSchemaBuilder
from tabinfer.core.schema.field_statistics import FieldStatistics
from tabinfer.core.schema.similarity import (
    DatasetSchema,
    SimilarityResult,
    UploadedSchema,
    find_similar_datasets,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MappingDetection:
    """Detected role mappings with the confidence behind each one."""

    mappings: FieldMappings
    confidence: Dict[str, float]
    geo: GeoColumnResult
    language: str

    def low_confidence_roles(self, threshold: float = 0.5) -> List[str]:
        """Mapped roles whose confidence is below ``threshold``."""
        mapped = self.mappings.to_dict()
        return [
            role
            for role, score in self.confidence.items()
            if mapped.get(f"{role}_path") and score < threshold
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mappings": self.mappings.to_dict(),
            "confidence": {k: round(v, 2) for k, v in self.confidence.items()},
            "geo": self.geo.to_dict(),
            "language": self.language,
        }


class SchemaInferenceEngine:
    """
    Incremental schema inference and role detection.

    Args:
        settings: Detection settings; defaults when omitted
        state: Snapshot from :meth:`state_dict` to resume from
        language_detector: Called on sample text when :meth:`detect` is not
            given a language
    """

    def __init__(
        self,
        settings: Optional[DetectionSettings] = None,
        state: Optional[Mapping[str, Any]] = None,
        language_detector: Optional[LanguageDetector] = None,
    ):
        self.settings = settings or DetectionSettings()
        self.builder = ProgressiveSchemaBuilder(self.settings.schema_settings, state)
        self.geo_detector = GeoColumnDetector(self.settings.geo)
        self.language_detector = language_detector

    @property
    def field_stats(self) -> Dict[str, FieldStatistics]:
        return self.builder.field_statistics()

    @property
    def sample_rows(self) -> List[Dict[str, Any]]:
        return list(self.builder.state.data_samples)

    def process_batch(self, rows: Sequence[Mapping[str, Any]]) -> BatchResult:
        return self.builder.process_batch(rows)

    def headers(self) -> List[str]:
        """Top-level columns in first-seen order."""
        return [path for path in self.builder.state.field_stats if "." not in path]

    def detect(self, language: Optional[str] = None) -> MappingDetection:
        """
        Detect role mappings from everything processed so far.

        Args:
            language: ISO-639-3 code; detected from the samples when omitted

        Returns:
            MappingDetection combining name/content scoring and geo columns
        """
        rows = self.sample_rows
        headers = self.headers() or headers_from_rows(rows)

        if language is None:
            language = resolve_language(
                rows,
                headers,
                self.language_detector,
                self.settings.default_language,
            ).code

        mappings, confidence = score_field_mappings(self.builder.state.field_stats, language)
        geo = self.geo_detector.detect_geo_columns(headers, rows)

        if geo.found and geo.type == "separate" and not (
            mappings.latitude_path and mappings.longitude_path
        ):
            mappings = mappings.with_overrides(
                latitude_path=geo.lat_column, longitude_path=geo.lon_column
            )
            confidence["latitude"] = confidence["longitude"] = geo.confidence
        if geo.found and geo.swapped_coordinates:
            mappings = mappings.with_overrides(
                latitude_path=geo.lon_column, longitude_path=geo.lat_column
            )
        if geo.found and geo.type == "combined" and mappings.location_path == geo.combined_column:
            mappings = mappings.with_overrides(location_path=None)
            confidence["location"] = 0.0

        logger.info(
            "Detected mappings (%s): %s",
            language,
            {k: v for k, v in mappings.to_dict().items() if v},
        )
        return MappingDetection(
            mappings=mappings, confidence=confidence, geo=geo, language=language
        )

    def uploaded_schema(self) -> UploadedSchema:
        return UploadedSchema(
            headers=self.headers(),
            sample_data=self.sample_rows,
            row_count=self.builder.record_count,
        )

    def suggest_datasets(
        self,
        datasets: Iterable[DatasetSchema],
        language: Optional[str] = None,
        min_score: Optional[int] = None,
        max_results: Optional[int] = None,
    ) -> List[SimilarityResult]:
        """Rank catalog datasets against the data processed so far."""
        return find_similar_datasets(
            self.uploaded_schema(),
            datasets,
            min_score=min_score,
            max_results=max_results,
            detected_language=language,
            settings=self.settings.similarity,
        )

    def state_dict(self) -> Dict[str, Any]:
        return self.builder.state_dict()
