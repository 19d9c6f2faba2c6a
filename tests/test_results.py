"""Tests for CallToolResult construction."""

import json

from argocd_mcp.shaping import Limits, ResponseBounder
from argocd_mcp.tools import error_result, result, result_list, text_result


def _payload(outcome):
    assert outcome.isError is False
    return json.loads(outcome.content[0].text)


class TestResult:
    """Tests for result()."""

    def test_json_text(self):
        outcome = result({"name": "guestbook", "health": "Healthy"})
        assert _payload(outcome) == {"name": "guestbook", "health": "Healthy"}
        assert outcome.content[0].text.startswith("{\n  ")

    def test_truncated_flag(self):
        outcome = result({"items": list(range(10))}, ResponseBounder(Limits(max_items=2)))
        assert _payload(outcome) == {"items": [0, 1], "truncated": True}

    def test_no_flag_when_complete(self):
        assert "truncated" not in _payload(result({"a": [1]}))

    def test_caller_truncation_flagged(self):
        assert _payload(result({"a": "ab..."}, truncated=True)) == {"a": "ab...", "truncated": True}

    def test_unicode_kept(self):
        outcome = result({"message": "déployé"})
        assert "déployé" in outcome.content[0].text

    def test_unserializable_values_stringified(self):
        class Thing:
            def __str__(self):
                return "thing"

        assert _payload(result({"x": Thing()})) == {"x": "thing"}


class TestResultList:
    """Tests for result_list()."""

    def test_envelope(self):
        outcome = result_list(["a", "b"])
        assert _payload(outcome) == {"items": ["a", "b"], "total": 2, "limited": False}

    def test_limited(self):
        outcome = result_list(list(range(10)), bounder=ResponseBounder(Limits(max_items=3)))
        assert _payload(outcome) == {
            "items": [0, 1, 2],
            "total": 10,
            "limited": True,
            "truncated": True,
        }

    def test_limit_argument(self):
        data = _payload(result_list(list(range(10)), limit=4))
        assert data["items"] == [0, 1, 2, 3]
        assert data["total"] == 10


class TestTextResults:
    """Tests for plain text and error results."""

    def test_text_result(self):
        outcome = text_result("ok")
        assert outcome.isError is False
        assert outcome.content[0].type == "text"
        assert outcome.content[0].text == "ok"

    def test_error_result(self):
        outcome = error_result("boom")
        assert outcome.isError is True
        assert outcome.content[0].text == "boom"
