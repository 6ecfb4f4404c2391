"""
Running per-field statistics and their merge.

Statistics are accumulated value by value with :func:`update_field_stats`
and combined with :func:`merge_field_stats`. The merge is associative and
commutative for occurrence counts, null counts, type distributions, format
counters and numeric ranges, so partial statistics from independent
batches can be combined in any order.

``unique_values`` is exact only while ``capped`` is False. Once a new
distinct value arrives after ``unique_samples`` is full, ``capped`` is set
and the count becomes a lower bound.
"""

from datetime import date, datetime, timezone
import numbers
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from tabinfer.common.exceptions import StatisticsStateError
from tabinfer.core.schema.values import (
    SCALAR_KINDS,
    ValueKind,
    classify_value,
    is_numeric,
)

DEFAULT_MAX_UNIQUE_VALUES = 100

URL_PATTERN = re.compile(r"^https?://\S+")
DATE_TIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
NUMERIC_STRING_PATTERN = re.compile(r"^-?\d+(\.\d+)?$")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class NumericStats(BaseModel):
    """Range and mean over the numeric occurrences of a field."""

    min: float
    max: float
    avg: float
    is_integer: bool
    count: int = Field(default=1, ge=1)


class EnumValue(BaseModel):
    """One value of an enum candidate with its frequency."""

    value: Any
    count: int
    percent: float


class FieldStatistics(BaseModel):
    """Statistics for one field path."""

    path: str = ""
    occurrences: int = Field(default=0, ge=0)
    null_count: int = Field(default=0, ge=0)
    type_distribution: Dict[str, int] = Field(default_factory=dict)
    numeric_stats: Optional[NumericStats] = None
    unique_samples: List[Any] = Field(default_factory=list)
    sample_counts: List[int] = Field(default_factory=list)
    unique_values: int = 0
    capped: bool = False
    formats: Dict[str, int] = Field(default_factory=dict)
    is_enum_candidate: bool = False
    enum_values: Optional[List[EnumValue]] = None
    first_seen: datetime = Field(default_factory=_now)
    last_seen: datetime = Field(default_factory=_now)
    depth: int = 0

    @model_validator(mode="after")
    def check_counts(self) -> "FieldStatistics":
        if self.null_count > self.occurrences:
            raise ValueError("null_count cannot exceed occurrences")
        if sum(self.type_distribution.values()) != self.occurrences:
            raise ValueError("type_distribution must add up to occurrences")
        if len(self.sample_counts) != len(self.unique_samples):
            raise ValueError("sample_counts must parallel unique_samples")
        return self

    @property
    def dominant_type(self) -> Optional[str]:
        """Most frequent non-null type tag."""
        candidates = [
            (count, kind)
            for kind, count in self.type_distribution.items()
            if kind not in (ValueKind.NULL.value, ValueKind.UNDEFINED.value)
        ]
        if not candidates:
            return None
        # ties resolve to the first tag seen
        best = max(candidates, key=lambda item: item[0])
        return best[1]

    def type_ratio(self, *kinds: ValueKind) -> float:
        """Share of occurrences tagged with any of ``kinds``."""
        if not self.occurrences:
            return 0.0
        hits = sum(self.type_distribution.get(kind.value, 0) for kind in kinds)
        return hits / self.occurrences


def create_field_stats(path: str = "") -> FieldStatistics:
    """Empty statistics for ``path``; depth is the number of dots in it."""
    return FieldStatistics(path=path, depth=path.count(".") if path else 0)


def get_value_type(value: Any) -> str:
    """Type tag of a raw value."""
    return classify_value(value).value


def _sample_key(value: Any) -> Tuple[str, Any]:
    # 1, 1.0 and True must not collapse into one sample
    if isinstance(value, bool):
        return ("boolean", value)
    if isinstance(value, numbers.Real):
        return ("number", float(value))
    return (type(value).__name__, value)


def _sample_value(value: Any, kind: ValueKind) -> Optional[Any]:
    if kind == ValueKind.NULL:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _track_sample(stats: FieldStatistics, value: Any, max_unique_values: int) -> None:
    key = _sample_key(value)
    for index, existing in enumerate(stats.unique_samples):
        if _sample_key(existing) == key:
            stats.sample_counts[index] += 1
            return
    if len(stats.unique_samples) < max_unique_values:
        stats.unique_samples.append(value)
        stats.sample_counts.append(1)
    else:
        stats.capped = True


def _update_numeric(stats: FieldStatistics, number: float) -> None:
    numeric = stats.numeric_stats
    if numeric is None:
        stats.numeric_stats = NumericStats(
            min=number, max=number, avg=number, is_integer=number.is_integer()
        )
        return
    numeric.count += 1
    numeric.min = min(numeric.min, number)
    numeric.max = max(numeric.max, number)
    numeric.avg = (numeric.avg * (numeric.count - 1) + number) / numeric.count
    numeric.is_integer = numeric.is_integer and number.is_integer()


def _is_email(value: str) -> bool:
    at = value.find("@")
    if at <= 0 or at == len(value) - 1 or value.count("@") != 1:
        return False
    return "." in value[at + 1 :] and " " not in value


def detect_string_formats(value: str) -> List[str]:
    """Format tags (email, url, dateTime, date, numeric) that ``value`` matches."""
    formats = []
    if _is_email(value):
        formats.append("email")
    if URL_PATTERN.match(value):
        formats.append("url")
    if DATE_TIME_PATTERN.match(value):
        formats.append("dateTime")
    if DATE_PATTERN.match(value):
        formats.append("date")
    if NUMERIC_STRING_PATTERN.match(value):
        formats.append("numeric")
    return formats


def update_field_stats(
    stats: FieldStatistics,
    value: Any,
    max_unique_values: int = DEFAULT_MAX_UNIQUE_VALUES,
) -> FieldStatistics:
    """
    Record one occurrence of ``value`` in ``stats`` (in place).

    Args:
        stats: Statistics to update
        value: Raw cell value
        max_unique_values: Cap on ``unique_samples``

    Returns:
        The same statistics object
    """
    kind = classify_value(value)
    stats.occurrences += 1
    if kind in (ValueKind.NULL, ValueKind.UNDEFINED):
        stats.null_count += 1
    stats.type_distribution[kind.value] = stats.type_distribution.get(kind.value, 0) + 1

    if is_numeric(value):
        _update_numeric(stats, float(value))

    if kind in SCALAR_KINDS and (kind != ValueKind.NUMBER or is_numeric(value)):
        _track_sample(stats, _sample_value(value, kind), max_unique_values)

    if isinstance(value, str):
        for format_tag in detect_string_formats(value):
            stats.formats[format_tag] = stats.formats.get(format_tag, 0) + 1

    if stats.capped:
        stats.unique_values = max(stats.unique_values, len(stats.unique_samples))
    else:
        stats.unique_values = len(stats.unique_samples)
    stats.last_seen = _now()
    return stats


def _add_counts(first: Mapping[str, int], second: Mapping[str, int]) -> Dict[str, int]:
    merged = dict(first)
    for key, count in second.items():
        merged[key] = merged.get(key, 0) + count
    return merged


def _merge_numeric(
    first: Optional[NumericStats], second: Optional[NumericStats]
) -> Optional[NumericStats]:
    if first is None or second is None:
        remaining = first or second
        return remaining.model_copy() if remaining is not None else None
    count = first.count + second.count
    return NumericStats(
        min=min(first.min, second.min),
        max=max(first.max, second.max),
        avg=(first.avg * first.count + second.avg * second.count) / count,
        is_integer=first.is_integer and second.is_integer,
        count=count,
    )


def _merge_samples(
    first: FieldStatistics, second: FieldStatistics, max_samples: int
) -> Tuple[List[Any], List[int], int]:
    counts: Dict[Tuple[str, Any], int] = {}
    values: Dict[Tuple[str, Any], Any] = {}
    for stats in (first, second):
        for value, count in zip(stats.unique_samples, stats.sample_counts):
            key = _sample_key(value)
            values.setdefault(key, value)
            counts[key] = counts.get(key, 0) + count
    keys = list(values)[:max_samples]
    return [values[k] for k in keys], [counts[k] for k in keys], len(values)


def _merge_enum_values(
    first: Optional[List[EnumValue]],
    second: Optional[List[EnumValue]],
    occurrences: int,
) -> Optional[List[EnumValue]]:
    if first is None and second is None:
        return None
    counts: Dict[Tuple[str, Any], int] = {}
    values: Dict[Tuple[str, Any], Any] = {}
    for item in (first or []) + (second or []):
        key = _sample_key(item.value)
        values.setdefault(key, item.value)
        counts[key] = counts.get(key, 0) + item.count
    return [
        EnumValue(
            value=values[key],
            count=count,
            percent=(count / occurrences * 100) if occurrences else 0.0,
        )
        for key, count in counts.items()
    ]


def merge_field_stats(
    first: FieldStatistics,
    second: FieldStatistics,
    max_samples: int = DEFAULT_MAX_UNIQUE_VALUES,
) -> FieldStatistics:
    """
    Combine two partial statistics of the same field into a new object.

    Counts add, numeric ranges widen and the mean is weighted by numeric
    counts. Samples are unioned and capped; ``unique_values`` becomes the
    size of the full union.

    Raises:
        StatisticsStateError: If the statistics belong to different paths
    """
    if first.path != second.path:
        raise StatisticsStateError(
            "Cannot merge statistics of different fields",
            details={"paths": [first.path, second.path]},
        )

    occurrences = first.occurrences + second.occurrences
    samples, sample_counts, union_size = _merge_samples(first, second, max_samples)

    return FieldStatistics(
        path=first.path,
        occurrences=occurrences,
        null_count=first.null_count + second.null_count,
        type_distribution=_add_counts(first.type_distribution, second.type_distribution),
        numeric_stats=_merge_numeric(first.numeric_stats, second.numeric_stats),
        unique_samples=samples,
        sample_counts=sample_counts,
        unique_values=max(union_size, first.unique_values, second.unique_values),
        capped=first.capped or second.capped or union_size > max_samples,
        formats=_add_counts(first.formats, second.formats),
        is_enum_candidate=first.is_enum_candidate or second.is_enum_candidate,
        enum_values=_merge_enum_values(first.enum_values, second.enum_values, occurrences),
        first_seen=min(first.first_seen, second.first_seen),
        last_seen=max(first.last_seen, second.last_seen),
        depth=max(first.depth, second.depth),
    )


def merge_field_stats_maps(
    first: Mapping[str, FieldStatistics],
    second: Mapping[str, FieldStatistics],
    max_samples: int = DEFAULT_MAX_UNIQUE_VALUES,
) -> Dict[str, FieldStatistics]:
    """Merge two path-keyed statistics maps; paths keep first-seen order."""
    merged: Dict[str, FieldStatistics] = {}
    for path, stats in first.items():
        if path in second:
            merged[path] = merge_field_stats(stats, second[path], max_samples)
        else:
            merged[path] = stats.model_copy(deep=True)
    for path, stats in second.items():
        if path not in merged:
            merged[path] = stats.model_copy(deep=True)
    return merged


def collect_field_stats(
    values: Iterable[Any],
    path: str = "",
    max_unique_values: int = DEFAULT_MAX_UNIQUE_VALUES,
) -> FieldStatistics:
    """Statistics of a whole column of values."""
    stats = create_field_stats(path)
    for value in values:
        update_field_stats(stats, value, max_unique_values)
    return stats
