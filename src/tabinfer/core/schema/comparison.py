"""
Structural schema comparison and rename detection.

Schemas are either JSON-schema-like objects (``properties`` plus optional
``required``) or plain ``{field: type}`` mappings.
"""

from dataclasses import dataclass, field
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from tabinfer.core.schema.similarity import (
    are_types_compatible,
    name_similarity,
    round_half_up,
)

logger = logging.getLogger(__name__)

RENAME_AFFIXES = ("start_", "end_", "_name", "event_")

NAME_WEIGHT = 0.7
TYPE_WEIGHT = 0.3
POSITION_BONUS = 0.1
AFFIX_SCORE = 0.85
SUBSTRING_SCORE = 0.7
MIN_SUBSTRING_LENGTH = 3
MIN_NAME_SCORE = 0.6
MIN_RENAME_CONFIDENCE = 60


@dataclass
class SchemaChange:
    """One difference between two schemas."""

    type: str  # new_field, removed_field, type_change, enum_change, format_change
    path: str
    details: Dict[str, Any] = field(default_factory=dict)
    severity: str = "info"  # info, warning, error
    auto_approvable: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "path": self.path,
            "details": self.details,
            "severity": self.severity,
            "auto_approvable": self.auto_approvable,
        }


@dataclass
class SchemaComparison:
    changes: List[SchemaChange]
    is_breaking: bool
    requires_approval: bool
    can_auto_approve: bool

    def changes_of_type(self, change_type: str) -> List[SchemaChange]:
        return [c for c in self.changes if c.type == change_type]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "changes": [c.to_dict() for c in self.changes],
            "is_breaking": self.is_breaking,
            "requires_approval": self.requires_approval,
            "can_auto_approve": self.can_auto_approve,
        }


@dataclass(frozen=True)
class TransformSuggestion:
    """
    Proposed rename of an incoming field onto an existing one.

    ``from_field`` is the name found in the new data, ``to_field`` the
    existing field it replaces.
    """

    from_field: str
    to_field: str
    confidence: int
    reason: str
    type: str = "rename"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "from": self.from_field,
            "to": self.to_field,
            "confidence": self.confidence,
            "reason": self.reason,
        }


def schema_properties(schema: Optional[Mapping[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Field name -> property dict, whichever form the schema takes."""
    if not schema:
        return {}
    properties = schema.get("properties")
    if isinstance(properties, Mapping):
        return {
            name: dict(prop) if isinstance(prop, Mapping) else {}
            for name, prop in properties.items()
        }
    if schema.get("type") == "object":
        return {}
    return {
        name: dict(value) if isinstance(value, Mapping) else {"type": value}
        for name, value in schema.items()
    }


def schema_required(schema: Optional[Mapping[str, Any]]) -> List[str]:
    if not schema or not isinstance(schema.get("properties"), Mapping):
        return []
    return list(schema.get("required") or [])


def get_field_type(prop: Optional[Mapping[str, Any]]) -> str:
    """Declared type of a property; ``null`` members of unions are ignored."""
    if not prop:
        return "unknown"
    declared = prop.get("type")
    if declared:
        if isinstance(declared, (list, tuple)):
            return " | ".join(str(t) for t in declared if t != "null")
        if isinstance(declared, Mapping):
            return json.dumps(declared, sort_keys=True)
        return str(declared)
    if prop.get("oneOf") or prop.get("anyOf"):
        return "union"
    if prop.get("enum"):
        return "enum"
    return "unknown"


def compare_schemas(
    old_schema: Mapping[str, Any], new_schema: Mapping[str, Any]
) -> SchemaComparison:
    """
    List the changes between two schemas.

    Removed fields, type changes, removed enum values and fields that
    became required are breaking.
    """
    old_props = schema_properties(old_schema)
    new_props = schema_properties(new_schema)
    old_required = schema_required(old_schema)
    new_required = schema_required(new_schema)

    changes: List[SchemaChange] = []
    is_breaking = False

    for name in old_props:
        if name not in new_props:
            changes.append(
                SchemaChange(
                    type="removed_field",
                    path=name,
                    details={"description": f"Field '{name}' was removed"},
                    severity="error",
                    auto_approvable=False,
                )
            )
            is_breaking = True

    for name in new_props:
        if name in old_props:
            continue
        required = name in new_required
        changes.append(
            SchemaChange(
                type="new_field",
                path=name,
                details={
                    "description": f"Field '{name}' was added"
                    + (" (required)" if required else ""),
                    "required": required,
                },
                severity="error" if required else "info",
                auto_approvable=not required,
            )
        )
        is_breaking = is_breaking or required

    for name, old_prop in old_props.items():
        if name not in new_props:
            continue
        new_prop = new_props[name]
        old_type, new_type = get_field_type(old_prop), get_field_type(new_prop)
        if old_type != new_type:
            changes.append(
                SchemaChange(
                    type="type_change",
                    path=name,
                    details={
                        "description": f"Field '{name}' type changed from {old_type} to {new_type}",
                        "old_type": old_type,
                        "new_type": new_type,
                    },
                    severity="error",
                    auto_approvable=False,
                )
            )
            is_breaking = True
        elif old_prop.get("enum") and new_prop.get("enum"):
            old_enum, new_enum = list(old_prop["enum"]), list(new_prop["enum"])
            added = [v for v in new_enum if v not in old_enum]
            removed = [v for v in old_enum if v not in new_enum]
            if added or removed:
                changes.append(
                    SchemaChange(
                        type="enum_change",
                        path=name,
                        details={
                            "description": f"Enum values changed for '{name}'",
                            "added": added,
                            "removed": removed,
                        },
                        severity="warning" if removed else "info",
                        auto_approvable=not removed,
                    )
                )
                is_breaking = is_breaking or bool(removed)

    for name in new_required:
        if name not in old_required and name in old_props:
            changes.append(
                SchemaChange(
                    type="format_change",
                    path=name,
                    details={"description": f"Field '{name}' became required"},
                    severity="error",
                    auto_approvable=False,
                )
            )
            is_breaking = True

    for name in old_required:
        if name not in new_required and name in new_props:
            changes.append(
                SchemaChange(
                    type="format_change",
                    path=name,
                    details={"description": f"Field '{name}' became optional"},
                )
            )

    return SchemaComparison(
        changes=changes,
        is_breaking=is_breaking,
        requires_approval=any(c.severity in ("error", "warning") for c in changes),
        can_auto_approve=all(c.auto_approvable for c in changes),
    )


def generate_change_summary(comparison: SchemaComparison) -> str:
    """Human-readable report of a comparison."""
    if not comparison.changes:
        return "No schema changes detected"

    def yes_no(flag: bool) -> str:
        return "Yes" if flag else "No"

    lines = [
        "Schema Changes Summary:",
        f"- Total changes: {len(comparison.changes)}",
        f"- Breaking changes: {yes_no(comparison.is_breaking)}",
        f"- Requires approval: {yes_no(comparison.requires_approval)}",
        f"- Can auto-approve: {yes_no(comparison.can_auto_approve)}",
    ]

    for title, selected in (
        ("Breaking Changes:", [c for c in comparison.changes if c.severity == "error"]),
        ("Non-Breaking Changes:", [c for c in comparison.changes if c.severity != "error"]),
    ):
        if not selected:
            continue
        lines.append("")
        lines.append(title)
        for change in selected:
            description = change.details.get("description") or (
                f"{change.type} at {change.path}"
            )
            lines.append(f"  - {description}")

    return "\n".join(lines)


def _affix_match(added: str, removed: str) -> bool:
    for affix in RENAME_AFFIXES:
        for longer, shorter in ((added, removed), (removed, added)):
            if longer in (affix + shorter, shorter + affix):
                return True
    return False


def _name_score(added: str, removed: str) -> Tuple[float, str]:
    a, r = added.lower(), removed.lower()
    if a == r:
        return 1.0, "names differ only in case"

    score = name_similarity(added, removed)
    reason = "similar names"
    if _affix_match(a, r) and AFFIX_SCORE > score:
        score, reason = AFFIX_SCORE, "name gained or lost a common prefix/suffix"
    shorter, longer = sorted((a, r), key=len)
    if (
        len(shorter) >= MIN_SUBSTRING_LENGTH
        and shorter in longer
        and SUBSTRING_SCORE > score
    ):
        score, reason = SUBSTRING_SCORE, f"'{shorter}' is contained in '{longer}'"
    return score, reason


def _type_score(old_type: str, new_type: str) -> float:
    if "unknown" in (old_type, new_type):
        return 0.5
    old_types = old_type.split(" | ")
    new_types = new_type.split(" | ")
    if any(are_types_compatible(o, n) for o in old_types for n in new_types):
        return 1.0
    return 0.0


def detect_transforms(
    old_schema: Mapping[str, Any],
    new_schema: Mapping[str, Any],
    changes: Optional[Sequence[SchemaChange]] = None,
) -> List[TransformSuggestion]:
    """
    Propose renames that map new fields back onto removed ones.

    Every removed field is scored against every added field on name
    similarity (70%) and type compatibility (30%), with a bonus when both
    sit at the same position. Pairs are claimed greedily from the highest
    confidence down; each field takes part in at most one suggestion.

    Args:
        old_schema: Stored schema
        new_schema: Schema of the incoming data
        changes: Precomputed changes; computed with compare_schemas if omitted

    Returns:
        Suggestions ordered by decreasing confidence
    """
    if changes is None:
        changes = compare_schemas(old_schema, new_schema).changes

    old_props = schema_properties(old_schema)
    new_props = schema_properties(new_schema)
    old_order = {name: i for i, name in enumerate(old_props)}
    new_order = {name: i for i, name in enumerate(new_props)}

    removed = [c.path for c in changes if c.type == "removed_field"]
    added = [c.path for c in changes if c.type == "new_field"]

    candidates = []
    for old_name in removed:
        old_type = get_field_type(old_props.get(old_name))
        for new_name in added:
            name_score, reason = _name_score(new_name, old_name)
            if name_score < MIN_NAME_SCORE:
                continue
            type_score = _type_score(old_type, get_field_type(new_props.get(new_name)))
            bonus = 0.0
            if (
                old_name in old_order
                and new_name in new_order
                and old_order[old_name] == new_order[new_name]
            ):
                bonus = POSITION_BONUS
            raw = NAME_WEIGHT * name_score + TYPE_WEIGHT * type_score + bonus
            confidence = min(100, round_half_up(raw * 100))
            if confidence < MIN_RENAME_CONFIDENCE:
                continue
            if type_score == 0.0:
                reason += ", types differ"
            elif bonus:
                reason += ", same position"
            candidates.append((confidence, old_name, new_name, reason))

    candidates.sort(key=lambda item: item[0], reverse=True)

    suggestions: List[TransformSuggestion] = []
    claimed_old, claimed_new = set(), set()
    for confidence, old_name, new_name, reason in candidates:
        if old_name in claimed_old or new_name in claimed_new:
            continue
        claimed_old.add(old_name)
        claimed_new.add(new_name)
        suggestions.append(
            TransformSuggestion(
                from_field=new_name,
                to_field=old_name,
                confidence=confidence,
                reason=f"Possible rename of '{old_name}' to '{new_name}': {reason}",
            )
        )

    logger.debug("Detected %d rename suggestions", len(suggestions))
    return suggestions
