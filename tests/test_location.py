"""Tests for perch.routing.location — parse, resolve, normalize."""

import logging

import pytest

from perch.routing.location import Location, clean_path, normalize_location, parse_path, resolve_path
from perch.routing.matcher import Matcher
from perch.routing.route import create_route


def _at(path: str):
    return create_route(None, Location(path=path))


class TestParsePath:
    def test_plain(self) -> None:
        assert parse_path("/a") == ("/a", "", "")

    def test_query_and_hash(self) -> None:
        assert parse_path("/a?b=1#c") == ("/a", "b=1", "#c")

    def test_question_mark_inside_hash(self) -> None:
        assert parse_path("/a#c?d") == ("/a", "", "#c?d")


class TestResolvePath:
    @pytest.mark.parametrize(
        ("relative", "base", "append", "expected"),
        [
            ("/abs", "/a/b", False, "/abs"),
            ("c", "/a/b", False, "/a/c"),
            ("c", "/a/b", True, "/a/b/c"),
            ("c", "/a/b/", False, "/a/b/c"),
            ("../c", "/a/b", False, "/c"),
            ("./c", "/a/b", False, "/a/c"),
            ("?x=1", "/a/b", False, "/a/b?x=1"),
            ("#top", "/a/b", False, "/a/b#top"),
            ("c", "/", False, "/c"),
        ],
    )
    def test_resolve(self, relative: str, base: str, append: bool, expected: str) -> None:
        assert resolve_path(relative, base, append) == expected


class TestCleanPath:
    def test_collapses_double_slashes(self) -> None:
        assert clean_path("/a//b") == "/a/b"


class TestNormalize:
    def test_string(self) -> None:
        loc = normalize_location("/a?b=1#c")
        assert loc == Location(path="/a", query={"b": "1"}, hash="#c", normalized=True)

    def test_relative_to_current(self) -> None:
        assert normalize_location("c", _at("/a/b")).path == "/a/c"

    def test_relative_without_current(self) -> None:
        assert normalize_location("c").path == "/c"

    def test_append(self) -> None:
        assert normalize_location({"path": "c", "append": True}, _at("/a/b")).path == "/a/b/c"
        assert normalize_location("c", _at("/a/b"), append=True).path == "/a/b/c"

    def test_query_only_keeps_path(self) -> None:
        loc = normalize_location("?x=1", _at("/a/b"))
        assert loc.path == "/a/b"
        assert loc.query == {"x": "1"}

    def test_explicit_query_overrides_parsed(self) -> None:
        loc = normalize_location({"path": "/a?x=1", "query": {"x": 2, "y": "3"}})
        assert loc.query == {"x": "2", "y": "3"}

    def test_hash_gets_marker(self) -> None:
        assert normalize_location({"path": "/a", "hash": "top"}).hash == "#top"

    def test_named(self) -> None:
        loc = normalize_location({"name": "user", "params": {"id": 1}})
        assert loc.name == "user"
        assert loc.params == {"id": 1}
        assert loc.normalized is False

    def test_normalized_location_passes_through(self) -> None:
        loc = Location(path="/a", normalized=True)
        assert normalize_location(loc, _at("/x")) is loc

    def test_unnormalized_location_is_resolved(self) -> None:
        assert normalize_location(Location(path="c"), _at("/a/b")).path == "/a/c"

    def test_does_not_mutate_input(self) -> None:
        raw = {"path": "/a", "query": {"x": ["1"]}}
        normalize_location(raw)
        assert raw == {"path": "/a", "query": {"x": ["1"]}}

    def test_custom_query_parser(self) -> None:
        loc = normalize_location("/a?raw", parse_query=lambda q: {"q": q})
        assert loc.query == {"q": "raw"}


class TestRelativeParams:
    def test_named_current_route(self) -> None:
        current = Matcher([{"path": "/user/:id", "name": "user"}]).match("/user/1")
        loc = normalize_location({"params": {"id": "2"}}, current)
        assert loc.name == "user"
        assert loc.params == {"id": "2"}

    def test_unnamed_current_route(self) -> None:
        current = Matcher([{"path": "/user/:id/post/:post"}]).match("/user/1/post/9")
        loc = normalize_location({"params": {"post": "10"}}, current)
        assert loc.path == "/user/1/post/10"
        assert loc.params == {"id": "1", "post": "10"}
        assert loc.normalized is True

    def test_unfillable_params(self, caplog: pytest.LogCaptureFixture) -> None:
        current = Matcher([{"path": r"/user/:id(\d+)"}]).match("/user/1")
        with caplog.at_level(logging.WARNING, logger="perch.routing"):
            loc = normalize_location({"params": {"id": "abc"}}, current)
        assert loc.path == ""
        assert "relative params navigation" in caplog.text
