"""
Tests for schema comparison and rename detection.
"""

from tabinfer.core.schema.comparison import (
    compare_schemas,
    detect_transforms,
    generate_change_summary,
    get_field_type,
    schema_properties,
    schema_required,
)


def _schema(properties, required=None):
    return {"type": "object", "properties": properties, "required": required or []}


def test_schema_properties_accepts_both_forms():
    assert schema_properties({"a": "string"}) == {"a": {"type": "string"}}
    assert schema_properties(_schema({"a": {"type": "integer"}})) == {
        "a": {"type": "integer"}
    }
    assert schema_properties(None) == {}
    assert schema_properties({"type": "object"}) == {}


def test_schema_required():
    assert schema_required(_schema({"a": {}}, ["a"])) == ["a"]
    assert schema_required({"a": "string"}) == []


def test_get_field_type():
    assert get_field_type({"type": "string"}) == "string"
    assert get_field_type({"type": ["string", "null"]}) == "string"
    assert get_field_type({"type": ["integer", "string"]}) == "integer | string"
    assert get_field_type({"oneOf": [{"type": "string"}]}) == "union"
    assert get_field_type({"enum": ["a"]}) == "enum"
    assert get_field_type({}) == "unknown"
    assert get_field_type(None) == "unknown"


class TestCompareSchemas:
    """Tests for compare_schemas."""

    def test_identical(self):
        schema = _schema({"a": {"type": "string"}}, ["a"])
        comparison = compare_schemas(schema, schema)
        assert comparison.changes == []
        assert not comparison.is_breaking
        assert not comparison.requires_approval
        assert comparison.can_auto_approve

    def test_removed_field_is_breaking(self):
        comparison = compare_schemas({"a": "string", "b": "string"}, {"a": "string"})
        [change] = comparison.changes
        assert change.type == "removed_field"
        assert change.path == "b"
        assert change.severity == "error"
        assert comparison.is_breaking
        assert not comparison.can_auto_approve

    def test_optional_new_field_is_safe(self):
        comparison = compare_schemas({"a": "string"}, {"a": "string", "b": "integer"})
        [change] = comparison.changes
        assert change.type == "new_field"
        assert change.severity == "info"
        assert not comparison.is_breaking
        assert comparison.can_auto_approve

    def test_required_new_field_is_breaking(self):
        old = _schema({"a": {"type": "string"}})
        new = _schema({"a": {"type": "string"}, "b": {"type": "string"}}, ["b"])
        comparison = compare_schemas(old, new)
        assert comparison.is_breaking
        assert comparison.changes[0].details["required"] is True

    def test_type_change(self):
        comparison = compare_schemas({"a": "string"}, {"a": "integer"})
        [change] = comparison.changes
        assert change.type == "type_change"
        assert change.details["old_type"] == "string"
        assert change.details["new_type"] == "integer"
        assert comparison.is_breaking

    def test_nullable_union_is_not_a_type_change(self):
        old = _schema({"a": {"type": "string"}})
        new = _schema({"a": {"type": ["string", "null"]}})
        assert compare_schemas(old, new).changes == []

    def test_enum_values_added(self):
        old = _schema({"s": {"type": "string", "enum": ["a", "b"]}})
        new = _schema({"s": {"type": "string", "enum": ["a", "b", "c"]}})
        [change] = compare_schemas(old, new).changes
        assert change.type == "enum_change"
        assert change.details["added"] == ["c"]
        assert change.severity == "info"

    def test_enum_values_removed_is_breaking(self):
        old = _schema({"s": {"type": "string", "enum": ["a", "b"]}})
        new = _schema({"s": {"type": "string", "enum": ["a"]}})
        comparison = compare_schemas(old, new)
        assert comparison.is_breaking
        assert comparison.changes[0].severity == "warning"
        assert comparison.requires_approval

    def test_field_became_required(self):
        old = _schema({"a": {"type": "string"}})
        new = _schema({"a": {"type": "string"}}, ["a"])
        comparison = compare_schemas(old, new)
        [change] = comparison.changes
        assert change.type == "format_change"
        assert comparison.is_breaking

    def test_field_became_optional(self):
        old = _schema({"a": {"type": "string"}}, ["a"])
        new = _schema({"a": {"type": "string"}})
        comparison = compare_schemas(old, new)
        [change] = comparison.changes
        assert change.type == "format_change"
        assert not comparison.is_breaking

    def test_to_dict(self):
        data = compare_schemas({"a": "string"}, {}).to_dict()
        assert data["is_breaking"] is True
        assert data["changes"][0]["type"] == "removed_field"


def test_generate_change_summary():
    assert generate_change_summary(compare_schemas({}, {})) == "No schema changes detected"

    comparison = compare_schemas({"a": "string"}, {"b": "string"})
    summary = generate_change_summary(comparison)
    assert "Schema Changes Summary:" in summary
    assert "- Total changes: 2" in summary
    assert "- Breaking changes: Yes" in summary
    assert "Breaking Changes:" in summary
    assert "Field 'a' was removed" in summary
    assert "Non-Breaking Changes:" in summary
    assert "Field 'b' was added" in summary


class TestDetectTransforms:
    """Tests for detect_transforms."""

    def test_prefix_rename(self):
        old = {"title": "string", "date": "string"}
        new = {"title": "string", "start_date": "string"}
        [suggestion] = detect_transforms(old, new)
        assert suggestion.from_field == "start_date"
        assert suggestion.to_field == "date"
        assert suggestion.confidence >= 70
        assert suggestion.type == "rename"

    def test_unrelated_names_are_not_renames(self):
        old = {"title": "string", "date": "string"}
        new = {"title": "string", "location": "string"}
        assert detect_transforms(old, new) == []

    def test_case_only_rename(self):
        [suggestion] = detect_transforms({"Title": "string"}, {"title": "string"})
        assert suggestion.confidence == 100

    def test_type_mismatch_lowers_confidence(self):
        same = detect_transforms({"venue": "string"}, {"venue_name": "string"})
        different = detect_transforms({"venue": "string"}, {"venue_name": "boolean_list"})
        assert same[0].confidence > different[0].confidence
        assert "types differ" in different[0].reason

    def test_each_field_used_once(self):
        old = {"date": "string"}
        new = {"start_date": "string", "end_date": "string"}
        suggestions = detect_transforms(old, new)
        assert len(suggestions) == 1
        assert suggestions[0].to_field == "date"

    def test_sorted_by_confidence(self):
        old = {"Title": "string", "venue": "string"}
        new = {"title": "string", "venue_name": "string"}
        suggestions = detect_transforms(old, new)
        confidences = [s.confidence for s in suggestions]
        assert confidences == sorted(confidences, reverse=True)
        assert len(suggestions) == 2

    def test_uses_precomputed_changes(self):
        old = {"date": "string"}
        new = {"start_date": "string"}
        changes = compare_schemas(old, new).changes
        assert detect_transforms(old, new, changes) == detect_transforms(old, new)

    def test_to_dict_keys(self):
        [suggestion] = detect_transforms({"date": "string"}, {"start_date": "string"})
        data = suggestion.to_dict()
        assert data["from"] == "start_date"
        assert data["to"] == "date"
