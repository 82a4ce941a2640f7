"""
Tests for form key parsing and the path cache.
"""

import threading

import pytest

from formschema.exceptions import InvalidPathError
from formschema.structure.registry import Index, Path, PathCache, Select, path_cache
from formschema.structure.shape import FieldKind
from tests.support import BlogPost, Customer, EmbedPerson, Person


def selected(path: Path) -> list:
    return list(path.route)


class TestParsePath:
    """Test resolution of keys to structural paths."""

    def setup_method(self):
        self.cache = PathCache()

    def test_simple_field(self):
        path = self.cache.parse_path("title", BlogPost)
        assert selected(path) == ["title"]
        assert path.leaf.kind is FieldKind.SCALAR
        assert path.segments[-1].field.key == "title"

    def test_renamed_field(self):
        assert selected(self.cache.parse_path("rating", BlogPost)) == ["ratings"]

    def test_attribute_name_fallback(self):
        assert selected(self.cache.parse_path("header_image", BlogPost)) == ["header_image"]

    def test_nested_struct(self):
        assert selected(self.cache.parse_path("author.name", BlogPost)) == ["author", "name"]

    def test_optional_struct(self):
        assert selected(self.cache.parse_path("coauthor.email", BlogPost)) == [
            "coauthor",
            "email",
        ]

    def test_list_of_structs(self):
        path = self.cache.parse_path("contributors.2.name", BlogPost)
        assert selected(path) == ["contributors", 2, "name"]
        assert isinstance(path.segments[1], Index)
        assert path.segments[1].shape.optional

    def test_scalar_list_leaf(self):
        path = self.cache.parse_path("rating", BlogPost)
        assert path.leaf.kind is FieldKind.SEQUENCE
        assert isinstance(path.segments[-1], Select)

    def test_scalar_list_index(self):
        path = self.cache.parse_path("rating.1", BlogPost)
        assert selected(path) == ["ratings", 1]
        assert isinstance(path.segments[-1], Index)
        assert path.leaf.kind is FieldKind.SCALAR

    def test_embedded_fields_promoted(self):
        path = self.cache.parse_path("name", EmbedPerson)
        assert selected(path) == ["person", "name"]

    def test_spellings_share_route(self):
        assert (
            self.cache.parse_path("name", EmbedPerson).route
            == self.cache.parse_path("person.name", EmbedPerson).route
        )
        assert (
            self.cache.parse_path("rating", BlogPost).route
            == self.cache.parse_path("ratings", BlogPost).route
        )

    def test_embedded_field_by_own_key(self):
        path = self.cache.parse_path("person.email", EmbedPerson)
        assert selected(path) == ["person", "email"]

    def test_dataclass(self):
        assert selected(self.cache.parse_path("previous.0.street", Customer)) == [
            "previous",
            0,
            "street",
        ]

    @pytest.mark.parametrize(
        "key",
        [
            "",
            "unknown",
            "Title",
            "ignored",
            "_unexported",
            "author",
            "author.age",
            "author..name",
            "readers",
            "readers.name",
            "readers.-1.name",
            "readers.+1.name",
            "readers.0",
            "rating.x",
            "rating.0.value",
            "title.length",
            "headerImage.filename",
        ],
    )
    def test_invalid(self, key):
        with pytest.raises(InvalidPathError) as exc_info:
            self.cache.parse_path(key, BlogPost)
        assert exc_info.value.key == key


class TestCaching:
    """Test memoization of paths and failures."""

    def test_paths_are_memoized(self):
        cache = PathCache()
        first = cache.parse_path("readers.0.name", BlogPost)
        assert cache.parse_path("readers.0.name", BlogPost) is first
        assert len(cache) == 1

    def test_cache_is_per_model(self):
        cache = PathCache()
        cache.parse_path("name", Person)
        cache.parse_path("name", EmbedPerson)
        assert len(cache) == 2

    def test_failures_are_memoized(self, monkeypatch):
        cache = PathCache()
        with pytest.raises(InvalidPathError):
            cache.parse_path("nope", BlogPost)

        calls = []
        original = cache._parse
        monkeypatch.setattr(cache, "_parse", lambda *a: calls.append(a) or original(*a))

        with pytest.raises(InvalidPathError, match="no field 'nope'"):
            cache.parse_path("nope", BlogPost)
        assert calls == []

    def test_shapes_are_memoized(self):
        cache = PathCache()
        assert cache.shape(BlogPost) is cache.shape(BlogPost)

    def test_clear(self):
        cache = PathCache()
        cache.parse_path("title", BlogPost)
        cache.clear()
        assert len(cache) == 0

    def test_default_cache_is_shared(self):
        from formschema import Decoder, MultipartDecoder

        assert Decoder().cache is path_cache
        assert MultipartDecoder().cache is path_cache

    def test_concurrent_first_access(self):
        cache = PathCache()
        results = []
        barrier = threading.Barrier(8)

        def parse():
            barrier.wait()
            results.append(cache.parse_path("contributors.3.email", BlogPost))

        threads = [threading.Thread(target=parse) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert all(result == results[0] for result in results)
        assert len(cache) == 1
