"""
Progressive schema builder.

Rows arrive in batches. Each batch is profiled into partial field
statistics that are then merged into the cumulative map, so the builder
never needs the whole dataset in memory. Besides statistics the builder
keeps a rotating buffer of the most recent rows, a log of type conflicts
and the fields that look like identifiers or enumerations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from tabinfer.common.exceptions import InputError, StatisticsStateError
from tabinfer.core.config_models import EnumMode, SchemaSettings
from tabinfer.core.mapping.field_mapping import detect_geo_fields
from tabinfer.core.schema.comparison import (
    SchemaChange,
    SchemaComparison,
    compare_schemas,
)
from tabinfer.core.schema.field_statistics import (
    EnumValue,
    FieldStatistics,
    create_field_stats,
    get_value_type,
    merge_field_stats_maps,
    update_field_stats,
)
from tabinfer.core.schema.values import NUMERIC_KINDS, ValueKind

logger = logging.getLogger(__name__)

ID_FIELD_PATTERN = re.compile(r"^(id|uuid|guid|_id|identifier|key)$", re.IGNORECASE)
MAX_CONFLICT_SAMPLES = 5

JSON_SCHEMA_TYPES = {
    ValueKind.STRING.value: "string",
    ValueKind.NUMBER.value: "number",
    ValueKind.INTEGER.value: "integer",
    ValueKind.BOOLEAN.value: "boolean",
    ValueKind.OBJECT.value: "object",
    ValueKind.ARRAY.value: "array",
    ValueKind.NULL.value: "null",
    ValueKind.DATE.value: "string",
    ValueKind.BOOLEAN_STRING.value: "string",
}

_EMPTY_KINDS = (ValueKind.NULL.value, ValueKind.UNDEFINED.value)
_NUMERIC_TAGS = frozenset(kind.value for kind in NUMERIC_KINDS)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TypeConflict(BaseModel):
    """Types observed for a field whose values disagree."""

    path: str
    types: Dict[str, int] = Field(default_factory=dict)
    samples: List[Dict[str, Any]] = Field(default_factory=list)


class SchemaBuilderState(BaseModel):
    """Everything the builder needs to resume where it stopped."""

    version: int = Field(default=0, ge=0)
    field_stats: Dict[str, FieldStatistics] = Field(default_factory=dict)
    record_count: int = Field(default=0, ge=0)
    batch_count: int = Field(default=0, ge=0)
    last_updated: datetime = Field(default_factory=_now)
    data_samples: List[Dict[str, Any]] = Field(default_factory=list)
    detected_id_fields: List[str] = Field(default_factory=list)
    type_conflicts: List[TypeConflict] = Field(default_factory=list)


@dataclass
class BatchResult:
    """Outcome of one :meth:`ProgressiveSchemaBuilder.process_batch` call."""

    schema_changed: bool
    changes: List[SchemaChange] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_changed": self.schema_changed,
            "changes": [c.to_dict() for c in self.changes],
        }


def json_schema_type(kind: str) -> str:
    return JSON_SCHEMA_TYPES.get(kind, "string")


class ProgressiveSchemaBuilder:
    """
    Incrementally infer a schema from batches of rows.

    Args:
        settings: Sample caps, enum threshold and nesting depth
        state: A dict produced by :meth:`state_dict` to resume from

    Raises:
        StatisticsStateError: If ``state`` does not have the expected shape
    """

    def __init__(
        self,
        settings: Optional[SchemaSettings] = None,
        state: Optional[Mapping[str, Any]] = None,
    ):
        self.settings = settings or SchemaSettings()
        if state is None:
            self.state = SchemaBuilderState()
        else:
            try:
                self.state = SchemaBuilderState.model_validate(dict(state))
            except (PydanticValidationError, TypeError, ValueError) as e:
                raise StatisticsStateError(
                    "Invalid schema builder state", details={"error": str(e)}
                ) from e
            for path, stats in self.state.field_stats.items():
                if stats.path != path:
                    raise StatisticsStateError(
                        "Field statistics stored under the wrong path",
                        details={"key": path, "path": stats.path},
                    )

    @property
    def version(self) -> int:
        return self.state.version

    @property
    def record_count(self) -> int:
        return self.state.record_count

    def process_batch(self, rows: Sequence[Mapping[str, Any]]) -> BatchResult:
        """
        Profile ``rows`` and fold them into the cumulative statistics.

        Returns:
            BatchResult listing new fields and type changes; the schema
            version is bumped when any were found

        Raises:
            InputError: If a row is not a mapping
        """
        for index, row in enumerate(rows):
            if not isinstance(row, Mapping):
                raise InputError(
                    "Rows must be mappings of column name to value",
                    details={"index": index, "type": type(row).__name__},
                )

        partial: Dict[str, FieldStatistics] = {}
        changes: List[SchemaChange] = []
        for row in rows:
            self._process_record(row, "", 0, partial, changes)

        self.state.field_stats = merge_field_stats_maps(
            self.state.field_stats, partial, self.settings.max_unique_values
        )
        self._update_samples(rows)
        self.state.record_count += len(rows)
        self.state.batch_count += 1
        self.state.last_updated = _now()

        self.state.detected_id_fields = self.detect_id_fields()
        self.detect_enums()

        schema_changed = any(c.type in ("new_field", "type_change") for c in changes)
        if schema_changed:
            self.state.version += 1
            logger.info(
                "Schema changed in batch %d (version %d, %d changes)",
                self.state.batch_count,
                self.state.version,
                len(changes),
            )
        else:
            logger.debug("Batch %d left the schema unchanged", self.state.batch_count)

        return BatchResult(schema_changed=schema_changed, changes=changes)

    def _process_record(
        self,
        record: Mapping[str, Any],
        prefix: str,
        depth: int,
        partial: Dict[str, FieldStatistics],
        changes: List[SchemaChange],
    ) -> None:
        if depth >= self.settings.max_depth:
            return

        for key, value in record.items():
            path = f"{prefix}.{key}" if prefix else str(key)
            kind = get_value_type(value)

            if path not in partial:
                partial[path] = create_field_stats(path)
                if path not in self.state.field_stats:
                    changes.append(
                        SchemaChange(
                            type="new_field",
                            path=path,
                            details={"data_type": kind},
                        )
                    )
            conflict = self._check_type_conflict(path, partial[path], kind, value)
            if conflict is not None:
                changes.append(conflict)

            update_field_stats(partial[path], value, self.settings.max_unique_values)

            if isinstance(value, Mapping):
                self._process_record(value, path, depth + 1, partial, changes)
            elif isinstance(value, (list, tuple)) and value and isinstance(value[0], Mapping):
                self._process_record(value[0], f"{path}[]", depth + 1, partial, changes)

    def _observed_types(self, path: str, partial_stats: FieldStatistics) -> Dict[str, int]:
        observed = dict(partial_stats.type_distribution)
        cumulative = self.state.field_stats.get(path)
        if cumulative is not None:
            for kind, count in cumulative.type_distribution.items():
                observed[kind] = observed.get(kind, 0) + count
        return {k: c for k, c in observed.items() if c > 0 and k not in _EMPTY_KINDS}

    def _check_type_conflict(
        self, path: str, partial_stats: FieldStatistics, kind: str, value: Any
    ) -> Optional[SchemaChange]:
        if kind in _EMPTY_KINDS:
            return None
        observed = self._observed_types(path, partial_stats)
        if not observed or kind in observed:
            return None
        # integers and decimals share one numeric column
        if kind in _NUMERIC_TAGS and _NUMERIC_TAGS.intersection(observed):
            return None

        old_type = next(iter(observed))
        self._record_type_conflict(path, observed, kind, value)
        logger.debug("Type change on %s: %s -> %s", path, old_type, kind)
        return SchemaChange(
            type="type_change",
            path=path,
            details={"old_type": old_type, "new_type": kind},
            severity="warning",
            auto_approvable=False,
        )

    def _record_type_conflict(
        self, path: str, observed: Dict[str, int], kind: str, value: Any
    ) -> None:
        conflict = next((c for c in self.state.type_conflicts if c.path == path), None)
        if conflict is None:
            conflict = TypeConflict(path=path, types=dict(observed))
            conflict.types[kind] = 1
            self.state.type_conflicts.append(conflict)
        else:
            conflict.types[kind] = conflict.types.get(kind, 0) + 1
        if len(conflict.samples) < MAX_CONFLICT_SAMPLES:
            conflict.samples.append({"type": kind, "value": value})

    def _update_samples(self, rows: Sequence[Mapping[str, Any]]) -> None:
        self.state.data_samples.extend(dict(row) for row in rows)
        if len(self.state.data_samples) > self.settings.max_samples:
            self.state.data_samples = self.state.data_samples[-self.settings.max_samples :]

    def detect_id_fields(self) -> List[str]:
        """
        Paths that look like identifiers.

        The terminal name must be an id-like word, the field must be present
        in at least ``id_presence_ratio`` of the rows and never repeat a
        value. Once the sample cap was hit, uniqueness is judged on the
        retained samples only.
        """
        detected = []
        min_presence = self.state.record_count * self.settings.id_presence_ratio
        for path, stats in self.state.field_stats.items():
            name = path.split(".")[-1]
            if not ID_FIELD_PATTERN.match(name):
                continue
            if stats.occurrences < min_presence or stats.null_count:
                continue
            if stats.capped:
                unique = all(count == 1 for count in stats.sample_counts)
            else:
                unique = stats.unique_values == stats.occurrences
            if unique:
                detected.append(path)
        return detected

    def detect_enums(self) -> None:
        """Flag low-cardinality fields and attach their value distribution."""
        threshold = self.settings.enum_threshold
        for stats in self.state.field_stats.values():
            candidate = False
            if stats.occurrences and stats.unique_values and not stats.capped:
                if self.settings.enum_mode == EnumMode.COUNT:
                    candidate = stats.unique_values <= threshold
                else:
                    candidate = stats.unique_values / stats.occurrences <= threshold / 100

            stats.is_enum_candidate = candidate
            if not candidate:
                stats.enum_values = None
                continue
            stats.enum_values = [
                EnumValue(
                    value=value,
                    count=count,
                    percent=count / stats.occurrences * 100,
                )
                for value, count in zip(stats.unique_samples, stats.sample_counts)
                if value is not None
            ]

    def _property_schema(self, stats: FieldStatistics) -> Dict[str, Any]:
        prop: Dict[str, Any] = {}
        ranked = sorted(
            (
                (count, kind)
                for kind, count in stats.type_distribution.items()
                if kind not in _EMPTY_KINDS
            ),
            key=lambda item: item[0],
            reverse=True,
        )
        types: List[str] = []
        for _, kind in ranked:
            mapped = json_schema_type(kind)
            if mapped not in types:
                types.append(mapped)
        if {"integer", "number"}.issubset(types):
            types.remove("integer")

        if len(types) == 1:
            prop["type"] = types[0]
        elif types:
            prop["type"] = types
        if types and stats.null_count:
            prop["nullable"] = True
        if stats.type_distribution.get(ValueKind.DATE.value):
            prop["format"] = "date-time"

        if stats.is_enum_candidate and stats.enum_values:
            prop["enum"] = [item.value for item in stats.enum_values]
        if stats.numeric_stats is not None:
            prop["minimum"] = stats.numeric_stats.min
            prop["maximum"] = stats.numeric_stats.max
        return prop

    def get_schema(self) -> Dict[str, Any]:
        """
        JSON-schema-like description of everything seen so far.

        Nested paths become nested ``object`` properties and ``name[]``
        segments become ``array`` properties with object items. A field is
        required when present in at least ``required_ratio`` of the rows.
        """
        root: Dict[str, Any] = {
            "type": "object",
            "properties": {},
            "required": [],
            "additionalProperties": False,
        }
        min_presence = self.state.record_count * self.settings.required_ratio

        for path, stats in self.state.field_stats.items():
            parts = [part for part in path.split(".") if part]
            node = root
            for index, part in enumerate(parts):
                last = index == len(parts) - 1
                if part.endswith("[]"):
                    name = part[:-2]
                    array_prop = node["properties"].setdefault(
                        name, {"type": "array", "items": {}}
                    )
                    items = array_prop.setdefault("items", {})
                    items.setdefault("type", "object")
                    items.setdefault("properties", {})
                    items.setdefault("required", [])
                    node = items
                elif last:
                    existing = node["properties"].get(part, {})
                    prop = self._property_schema(stats)
                    for nested_key in ("properties", "items", "required"):
                        if nested_key in existing:
                            prop[nested_key] = existing[nested_key]
                    node["properties"][part] = prop
                    if stats.occurrences >= min_presence and part not in node["required"]:
                        node["required"].append(part)
                else:
                    child = node["properties"].setdefault(part, {"type": "object"})
                    child.setdefault("properties", {})
                    child.setdefault("required", [])
                    node = child

        if self.state.detected_id_fields:
            root["x-id-fields"] = list(self.state.detected_id_fields)
        return root

    def compare_with_previous(self, previous_schema: Mapping[str, Any]) -> SchemaComparison:
        """Changes between a stored schema and the current one."""
        return compare_schemas(previous_schema, self.get_schema())

    def field_statistics(self) -> Dict[str, FieldStatistics]:
        return dict(self.state.field_stats)

    def get_summary(self) -> Dict[str, Any]:
        """Counts and detected patterns, for display."""
        return {
            "record_count": self.state.record_count,
            "batch_count": self.state.batch_count,
            "field_count": len(self.state.field_stats),
            "version": self.state.version,
            "detected_patterns": {
                "id_fields": list(self.state.detected_id_fields),
                "geo_fields": detect_geo_fields(self.state.field_stats).to_dict(),
                "enum_fields": [
                    path
                    for path, stats in self.state.field_stats.items()
                    if stats.is_enum_candidate
                ],
            },
            "type_conflicts": [c.model_dump() for c in self.state.type_conflicts],
        }

    def state_dict(self) -> Dict[str, Any]:
        """JSON-compatible snapshot accepted back by the constructor."""
        return self.state.model_dump(mode="json")
