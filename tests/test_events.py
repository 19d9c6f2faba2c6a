"""Tests for event normalization."""

import json

import pytest

from argocd_mcp.shaping import EventRecord, MalformedEventsError, normalize


class TestEventRecord:
    """Tests for EventRecord projection."""

    def test_projects_known_fields(self):
        record = EventRecord.from_mapping({
            "type": "Warning",
            "reason": "BackOff",
            "message": "Back-off restarting failed container",
            "timestamp": "2024-05-01T10:00:00Z",
            "involvedObject": {"kind": "Pod"},
        })
        assert record.to_dict() == {
            "type": "Warning",
            "reason": "BackOff",
            "message": "Back-off restarting failed container",
            "timestamp": "2024-05-01T10:00:00Z",
        }

    def test_missing_fields_are_empty(self):
        assert EventRecord.from_mapping({"reason": "Synced"}).to_dict() == {
            "type": "",
            "reason": "Synced",
            "message": "",
            "timestamp": "",
        }

    def test_timestamp_falls_back_to_kubernetes_fields(self):
        assert EventRecord.from_mapping({"lastTimestamp": "t1", "firstTimestamp": "t0"}).timestamp == "t1"
        assert EventRecord.from_mapping({"eventTime": "t2"}).timestamp == "t2"
        assert EventRecord.from_mapping({"firstTimestamp": "t0"}).timestamp == "t0"

    def test_explicit_timestamp_wins(self):
        record = EventRecord.from_mapping({"timestamp": "t", "lastTimestamp": "other"})
        assert record.timestamp == "t"

    def test_non_mapping_is_empty_record(self):
        assert EventRecord.from_mapping("junk") == EventRecord()

    def test_non_string_values_are_stringified(self):
        assert EventRecord.from_mapping({"message": 42}).message == "42"


class TestNormalize:
    """Tests for normalize() shape recognition."""

    def test_wrapped_list(self):
        events = normalize({"items": [{"type": "Normal", "reason": "Created"}]})
        assert events == [EventRecord(type="Normal", reason="Created")]

    def test_direct_list(self):
        events = normalize([{"type": "Warning"}, {"type": "Normal"}])
        assert [e.type for e in events] == ["Warning", "Normal"]

    def test_json_text(self):
        raw = json.dumps({"items": [{"reason": "Pulled"}]})
        assert normalize(raw) == [EventRecord(reason="Pulled")]

    def test_empty_wrapped_list(self):
        assert normalize({"items": []}) == []
        assert normalize({"items": None}) == []

    def test_empty_direct_list(self):
        assert normalize([]) == []

    def test_non_mapping_elements(self):
        assert normalize([1, {"type": "Normal"}]) == [EventRecord(), EventRecord(type="Normal")]

    @pytest.mark.parametrize("raw", [{}, None, 42, "\"text\"", {"events": []}, {"items": "x"}])
    def test_malformed(self, raw):
        with pytest.raises(MalformedEventsError):
            normalize(raw)

    def test_unparsable_text(self):
        with pytest.raises(MalformedEventsError):
            normalize("{not json")

    def test_input_not_mutated(self):
        raw = {"items": [{"type": "Normal", "extra": 1}]}
        normalize(raw)
        assert raw == {"items": [{"type": "Normal", "extra": 1}]}
