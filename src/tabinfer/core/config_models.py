"""Pydantic models for detection settings and dataset catalogs.

Every threshold used by the detectors lives here as a named field with the
calibrated default, so ``tabinfer.yml`` can override them without touching
code.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class EnumMode(str, Enum):
    """How the enum threshold of a field is interpreted."""

    COUNT = "count"
    PERCENTAGE = "percentage"


class SchemaSettings(BaseModel):
    """Limits for the progressive schema builder and field statistics."""

    max_samples: int = Field(default=100, ge=1)
    max_unique_values: int = Field(default=100, ge=1)
    enum_threshold: float = Field(default=50, gt=0)
    enum_mode: EnumMode = EnumMode.COUNT
    max_depth: int = Field(default=3, ge=0)
    id_presence_ratio: float = Field(default=0.9, ge=0, le=1)
    required_ratio: float = Field(default=0.9, ge=0, le=1)

    @model_validator(mode="after")
    def validate_percentage_threshold(self) -> "SchemaSettings":
        if self.enum_mode == EnumMode.PERCENTAGE and self.enum_threshold > 100:
            raise ValueError("Percentage enum threshold must be at most 100")
        return self


class GeoDetectionSettings(BaseModel):
    """Thresholds used by the geo-column detector."""

    pattern_sample_size: int = Field(default=10, ge=1)
    heuristic_sample_size: int = Field(default=20, ge=1)
    min_numeric_values: int = Field(default=5, ge=1)
    format_min_confidence: float = Field(default=0.7, ge=0, le=1)
    pair_valid_ratio: float = Field(default=0.5, ge=0, le=1)
    swap_ratio: float = Field(default=0.5, ge=0, le=1)
    heuristic_min_ratio: float = Field(default=0.7, ge=0, le=1)
    reject_zero_coordinates: bool = True


class SimilaritySettings(BaseModel):
    """Defaults for catalog ranking."""

    min_score: int = Field(default=30, ge=0, le=100)
    max_results: int = Field(default=5, ge=1)


class DetectionSettings(BaseModel):
    """Root settings object loaded from ``tabinfer.yml``."""

    default_language: str = "eng"
    schema_settings: SchemaSettings = Field(
        default_factory=SchemaSettings, alias="schema"
    )
    geo: GeoDetectionSettings = Field(default_factory=GeoDetectionSettings)
    similarity: SimilaritySettings = Field(default_factory=SimilaritySettings)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DetectionSettings":
        """Build settings from a raw YAML mapping (``None`` means defaults)."""

        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("Detection settings must be a mapping")
        return cls(**data)


class CatalogDataset(BaseModel):
    """One destination dataset in a similarity catalog."""

    id: str
    name: str
    language: Optional[str] = None
    fields: List[str] = Field(default_factory=list)
    field_types: Dict[str, str] = Field(default_factory=dict)
    field_mappings: Dict[str, Optional[str]] = Field(default_factory=dict)
    has_geo: Optional[bool] = None
    has_date: Optional[bool] = None

    @model_validator(mode="after")
    def include_typed_fields(self) -> "CatalogDataset":
        """Fields only declared through ``field_types`` still count as fields."""
        for name in self.field_types:
            if name not in self.fields:
                self.fields.append(name)
        return self


class Catalog(BaseModel):
    """Root model of a catalog file."""

    datasets: List[CatalogDataset] = Field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Catalog":
        if "datasets" not in data:
            raise ValueError("Catalog must define 'datasets'")
        return cls(**data)
