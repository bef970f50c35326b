"""Tests for perch.routing.route — Route creation and comparison."""

import dataclasses

import pytest

from perch.routing.location import Location
from perch.routing.route import START, Route, create_route, get_full_path, is_included_route, is_same_route
from perch.routing.table import build_route_table


def _route(path: str = "/", **kwargs) -> Route:
    return create_route(None, Location(path=path, **kwargs))


class TestCreateRoute:
    def test_full_path(self) -> None:
        route = _route("/a", query={"x": "1"}, hash="#h")
        assert route.full_path == "/a?x=1#h"

    def test_record_fields(self) -> None:
        table = build_route_table(
            [{"path": "/user/:id", "name": "user", "meta": {"auth": True}, "children": [{"path": "posts"}]}]
        )
        record = table.path_map["/user/:id/posts"]
        route = create_route(record, Location(path="/user/1/posts", params={"id": "1"}))
        assert route.name is None
        assert route.meta == {}
        assert [r.path for r in route.matched] == ["/user/:id", "/user/:id/posts"]

        parent = create_route(table.path_map["/user/:id"], Location(path="/user/1"))
        assert parent.name == "user"
        assert parent.meta == {"auth": True}

    def test_query_is_copied(self) -> None:
        query = {"a": ["1"]}
        route = _route("/a", query=query)
        query["a"].append("2")
        assert route.query == {"a": ["1"]}

    def test_redirected_from(self) -> None:
        route = create_route(None, Location(path="/b"), Location(path="/a", query={"x": "1"}))
        assert route.redirected_from == "/a?x=1"

    def test_custom_stringify(self) -> None:
        route = create_route(None, Location(path="/a", query={"x": "1"}), stringify=lambda q: "?custom")
        assert route.full_path == "/a?custom"

    def test_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            _route().path = "/x"  # type: ignore[misc]

    def test_get_full_path_defaults_to_root(self) -> None:
        assert get_full_path(Location()) == "/"


class TestStart:
    def test_start_is_empty_root(self) -> None:
        assert START.path == "/"
        assert START.matched == ()

    def test_start_only_equals_itself(self) -> None:
        assert is_same_route(START, START)
        assert not is_same_route(_route("/"), START)


class TestIsSameRoute:
    def test_trailing_slash_ignored(self) -> None:
        assert is_same_route(_route("/a/"), _route("/a"))

    def test_hash_differs(self) -> None:
        assert not is_same_route(_route("/a", hash="#x"), _route("/a"))

    def test_query_compared_as_strings(self) -> None:
        assert is_same_route(_route("/a", query={"n": 1}), _route("/a", query={"n": "1"}))
        assert not is_same_route(_route("/a", query={"n": "1"}), _route("/a", query={"n": "2"}))

    def test_none(self) -> None:
        assert not is_same_route(_route("/a"), None)

    def test_named_routes(self) -> None:
        a = Route(path="", name="user", params={"id": 1})
        b = Route(path="", name="user", params={"id": "1"})
        c = Route(path="", name="user", params={"id": "2"})
        assert is_same_route(a, b)
        assert not is_same_route(a, c)


class TestIsIncludedRoute:
    def test_prefix(self) -> None:
        assert is_included_route(_route("/user/1/posts"), _route("/user/1"))
        assert not is_included_route(_route("/user/10"), _route("/user/1"))

    def test_query_subset(self) -> None:
        current = _route("/a", query={"x": "1", "y": "2"})
        assert is_included_route(current, _route("/a", query={"x": "1"}))
        assert not is_included_route(current, _route("/a", query={"z": "1"}))

    def test_hash(self) -> None:
        assert not is_included_route(_route("/a", hash="#x"), _route("/a", hash="#y"))
        assert is_included_route(_route("/a", hash="#x"), _route("/a"))
