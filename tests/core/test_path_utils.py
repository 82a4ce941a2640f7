"""
Tests for form key helpers.
"""

from formschema.core.path_utils import is_index, join_key, split_key


class TestSplitJoin:
    def test_split(self):
        assert split_key("readers.0.name") == ["readers", "0", "name"]
        assert split_key("title") == ["title"]
        assert split_key("") == []

    def test_split_keeps_empty_segments(self):
        assert split_key("a..b") == ["a", "", "b"]

    def test_join(self):
        assert join_key("readers", 0, "name") == "readers.0.name"
        assert join_key("", "title") == "title"


class TestIsIndex:
    def test_digits(self):
        assert is_index("0")
        assert is_index("12")

    def test_not_index(self):
        for segment in ["", "-1", "+1", "1.5", "a1", "one", "１"]:
            assert not is_index(segment)
