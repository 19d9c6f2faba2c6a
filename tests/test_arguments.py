"""Tests for tool argument accessors."""

from argocd_mcp.tools import arg_bool, arg_dict, arg_int, arg_list, arg_str, arg_str_list


class TestArgumentAccessors:
    """Typed access to untrusted tool arguments."""

    def test_arg_str(self):
        args = {"name": "guestbook", "count": 3}
        assert arg_str(args, "name") == "guestbook"
        assert arg_str(args, "count") == ""
        assert arg_str(args, "missing", "HEAD") == "HEAD"

    def test_arg_bool(self):
        args = {"prune": True, "cascade": "true"}
        assert arg_bool(args, "prune") is True
        assert arg_bool(args, "cascade") is False
        assert arg_bool(args, "missing", True) is True

    def test_arg_int(self):
        assert arg_int({"limit": 5}, "limit") == 5
        assert arg_int({"limit": 5.0}, "limit") == 5
        assert arg_int({"limit": 5.5}, "limit") == 0
        assert arg_int({"limit": "5"}, "limit") == 0
        assert arg_int({}, "limit", 7) == 7

    def test_arg_int_rejects_bool(self):
        assert arg_int({"limit": True}, "limit") == 0

    def test_arg_dict(self):
        assert arg_dict({"config": {"a": 1}}, "config") == {"a": 1}
        assert arg_dict({"config": "a=1"}, "config") == {}
        assert arg_dict({}, "config") == {}

    def test_arg_list(self):
        assert arg_list({"repos": ["a"]}, "repos") == ["a"]
        assert arg_list({"repos": "a"}, "repos") == []

    def test_arg_str_list_drops_non_strings(self):
        assert arg_str_list({"repos": ["a", 1, None, "b"]}, "repos") == ["a", "b"]
