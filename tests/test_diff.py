"""Tests for the structural differ."""

import json

from argocd_mcp.shaping import (
    DiffEntry,
    DiffKind,
    canonical,
    diff,
    diff_documents,
    format_diff,
)


class TestCanonical:
    """Tests for canonical()."""

    def test_scalars(self):
        assert canonical("abc") == "abc"
        assert canonical(True) == "true"
        assert canonical(False) == "false"
        assert canonical(None) == "null"
        assert canonical(3) == "3"
        assert canonical(3.0) == "3"
        assert canonical(2.5) == "2.5"

    def test_containers_sorted(self):
        assert canonical({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'

    def test_string_and_number_compare_equal(self):
        assert canonical("1") == canonical(1)


class TestDiff:
    """Tests for diff() on document trees."""

    def test_reflexive(self):
        tree = {"spec": {"replicas": 3, "containers": [{"image": "nginx"}]}, "data": None}
        assert diff(tree, tree) == []

    def test_single_changed_entry(self):
        entries = diff({"k": "a"}, {"k": "b"})
        assert entries == [DiffEntry("k", DiffKind.CHANGED, "a", "b")]

    def test_removed_key(self):
        entries = diff({"a": 1, "b": 2}, {"a": 1})
        assert entries == [DiffEntry("b", DiffKind.REMOVED, target_value=2)]

    def test_added_key(self):
        entries = diff({"a": 1}, {"a": 1, "c": {"x": 1}})
        assert entries == [DiffEntry("c", DiffKind.ADDED, live_value={"x": 1})]

    def test_nested_path(self):
        target = {"spec": {"template": {"containers": [{"image": "nginx:1.25"}]}}}
        live = {"spec": {"template": {"containers": [{"image": "nginx:1.24"}]}}}
        entries = diff(target, live)
        assert len(entries) == 1
        assert entries[0].path == "spec.template.containers[0].image"
        assert entries[0].target_value == "nginx:1.25"
        assert entries[0].live_value == "nginx:1.24"

    def test_emission_order(self):
        target = {"keep": 1, "gone": 2, "change": "x"}
        live = {"new1": 0, "keep": 1, "change": "y", "new2": 0}
        paths = [(e.path, e.kind) for e in diff(target, live)]
        assert paths == [
            ("gone", DiffKind.REMOVED),
            ("change", DiffKind.CHANGED),
            ("new1", DiffKind.ADDED),
            ("new2", DiffKind.ADDED),
        ]

    def test_sequence_extra_live_element(self):
        entries = diff({"l": [1, 2]}, {"l": [1, 2, 3]})
        assert entries == [DiffEntry("l[2]", DiffKind.ADDED, live_value=3)]

    def test_sequence_missing_live_element(self):
        entries = diff({"l": [1, 2, 3]}, {"l": [1]})
        assert [(e.path, e.kind) for e in entries] == [
            ("l[1]", DiffKind.REMOVED),
            ("l[2]", DiffKind.REMOVED),
        ]

    def test_reordered_sequence_is_positional(self):
        entries = diff({"l": ["a", "b"]}, {"l": ["b", "a"]})
        assert [(e.path, e.kind) for e in entries] == [
            ("l[0]", DiffKind.CHANGED),
            ("l[1]", DiffKind.CHANGED),
        ]

    def test_shape_mismatch_is_changed(self):
        entries = diff({"a": {"x": 1}}, {"a": [1]})
        assert entries == [DiffEntry("a", DiffKind.CHANGED, {"x": 1}, [1])]

    def test_equal_canonical_text_is_not_a_change(self):
        assert diff({"port": "80"}, {"port": 80}) == []
        assert diff({"n": 1.0}, {"n": 1}) == []

    def test_null_differs_from_string_null(self):
        assert diff({"k": None}, {"k": "null"}) == [DiffEntry("k", DiffKind.CHANGED, None, "null")]
        assert diff({"k": "null"}, {"k": None}) == [DiffEntry("k", DiffKind.CHANGED, "null", None)]
        assert diff({"k": None}, {"k": None}) == []

    def test_top_level_scalars(self):
        assert diff("a", "a") == []
        assert diff("a", "b") == [DiffEntry("", DiffKind.CHANGED, "a", "b")]

    def test_inputs_not_mutated(self):
        target = {"a": [1, {"b": 2}]}
        live = {"a": [1, {"b": 3}], "c": 4}
        diff(target, live)
        assert target == {"a": [1, {"b": 2}]}
        assert live == {"a": [1, {"b": 3}], "c": 4}


class TestDiffEntry:
    """Tests for DiffEntry serialization."""

    def test_to_dict_changed(self):
        entry = DiffEntry("a.b", DiffKind.CHANGED, 1, 2)
        assert entry.to_dict() == {"path": "a.b", "kind": "changed", "target": 1, "live": 2}

    def test_to_dict_added_has_no_target(self):
        assert DiffEntry("x", DiffKind.ADDED, live_value=1).to_dict() == {
            "path": "x", "kind": "added", "live": 1,
        }

    def test_to_dict_removed_has_no_live(self):
        assert DiffEntry("x", DiffKind.REMOVED, target_value=1).to_dict() == {
            "path": "x", "kind": "removed", "target": 1,
        }


class TestDiffDocuments:
    """Tests for diff_documents() and format_diff()."""

    def test_configmap_data_change(self):
        target = json.dumps({"kind": "ConfigMap", "data": {"key": "new"}})
        live = json.dumps({"kind": "ConfigMap", "data": {"key": "old"}})
        entries = diff_documents(target, live)
        assert entries == [DiffEntry("data.key", DiffKind.CHANGED, "new", "old")]

    def test_managed_fields_ignored(self):
        target = json.dumps({"kind": "ConfigMap"})
        live = json.dumps({"kind": "ConfigMap", "managedFields": [{"manager": "kubectl"}]})
        assert diff_documents(target, live) == []

    def test_empty_side_yields_nothing(self):
        assert diff_documents("", '{"a": 1}') == []
        assert diff_documents('{"a": 1}', "") == []

    def test_unparsable_side_is_opaque(self):
        assert diff_documents("not json", "not json") == []
        entries = diff_documents("not json", '{"a": 1}')
        assert entries == [DiffEntry("", DiffKind.CHANGED, "not json", '{"a": 1}')]

    def test_format_diff_lines(self):
        entries = [
            DiffEntry("data.gone", DiffKind.REMOVED, target_value="x"),
            DiffEntry("spec.replicas", DiffKind.CHANGED, 3, 2),
            DiffEntry("metadata.labels", DiffKind.ADDED, live_value={"a": "b"}),
        ]
        assert format_diff(entries) == "\n".join([
            "  data.gone: x (REMOVED)",
            "  spec.replicas: 2 -> 3",
            '  metadata.labels: {"a":"b"} (ADDED)',
        ])

    def test_format_diff_empty(self):
        assert format_diff([]) == ""
