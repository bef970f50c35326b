"""Tests for perch.routing.table — route table builder."""

import logging

import pytest

from perch.errors import ConfigError
from perch.routing.record import RecordKind
from perch.routing.table import build_route_table, normalize_path


class UserView:
    pass


class ProfileView:
    pass


class TestNormalizePath:
    def test_absolute(self) -> None:
        assert normalize_path("/about", None) == "/about"

    def test_strips_trailing_slash(self) -> None:
        assert normalize_path("/users/", None) == "/users"

    def test_strict_keeps_trailing_slash(self) -> None:
        assert normalize_path("/users/", None, strict=True) == "/users/"

    def test_child_joins_parent(self) -> None:
        parent = build_route_table([{"path": "/user/:id"}]).path_map["/user/:id"]
        assert normalize_path("posts", parent) == "/user/:id/posts"

    def test_absolute_child_ignores_parent(self) -> None:
        parent = build_route_table([{"path": "/user"}]).path_map["/user"]
        assert normalize_path("/elsewhere", parent) == "/elsewhere"


class TestBuild:
    def test_flat(self) -> None:
        table = build_route_table([{"path": "/a"}, {"path": "/b", "name": "b"}])
        assert table.path_list == ["/a", "/b"]
        assert table.name_map["b"] is table.path_map["/b"]

    def test_nested_children_register_first(self) -> None:
        table = build_route_table(
            [
                {
                    "path": "/user/:id",
                    "component": UserView,
                    "children": [{"path": "profile", "component": ProfileView}],
                }
            ]
        )
        assert table.path_list == ["/user/:id/profile", "/user/:id"]
        child = table.path_map["/user/:id/profile"]
        assert child.parent is table.path_map["/user/:id"]
        assert [r.path for r in child.chain] == ["/user/:id", "/user/:id/profile"]

    def test_handlers_and_props(self) -> None:
        table = build_route_table([{"path": "/u", "component": UserView, "props": True}])
        record = table.path_map["/u"]
        assert record.handlers == {"default": UserView}
        assert record.props == {"default": True}

    def test_named_views(self) -> None:
        table = build_route_table(
            [
                {
                    "path": "/dash",
                    "components": {"default": UserView, "side": ProfileView},
                    "props": {"side": {"compact": True}},
                }
            ]
        )
        record = table.path_map["/dash"]
        assert record.handlers == {"default": UserView, "side": ProfileView}
        assert record.props == {"side": {"compact": True}}

    def test_record_kinds(self) -> None:
        table = build_route_table(
            [
                {"path": "/old", "redirect": "/new"},
                {"path": "/new", "alias": "/newer"},
            ]
        )
        assert table.path_map["/old"].kind is RecordKind.REDIRECT
        assert table.path_map["/new"].kind is RecordKind.NORMAL
        assert table.path_map["/newer"].kind is RecordKind.ALIAS
        assert table.path_map["/newer"].alias_of == "/new"

    def test_meta_defaults_to_empty(self) -> None:
        table = build_route_table([{"path": "/a"}, {"path": "/b", "meta": {"auth": True}}])
        assert table.path_map["/a"].meta == {}
        assert table.path_map["/b"].meta == {"auth": True}

    def test_case_sensitive_option(self) -> None:
        table = build_route_table([{"path": "/About", "case_sensitive": True}])
        assert table.path_map["/About"].pattern.match("/about") is None


class TestPriority:
    def test_duplicate_path_first_wins(self) -> None:
        table = build_route_table([{"path": "/a", "name": "first"}, {"path": "/a", "name": "second"}])
        assert table.path_list == ["/a"]
        assert table.path_map["/a"].name == "first"

    def test_wildcard_moves_last(self) -> None:
        table = build_route_table([{"path": "*"}, {"path": "/a"}, {"path": "/b"}])
        assert table.path_list == ["/a", "/b", "*"]

    def test_default_child_claims_parent_path(self) -> None:
        table = build_route_table(
            [{"path": "/parent", "component": UserView, "children": [{"path": "", "component": ProfileView}]}]
        )
        assert table.path_list == ["/parent/", "/parent"]
        assert table.path_map["/parent/"].pattern.match("/parent") == {}


class TestAliases:
    def test_alias_record(self) -> None:
        table = build_route_table([{"path": "/home", "name": "home", "alias": "/start"}])
        assert table.path_list == ["/home", "/start"]
        alias = table.path_map["/start"]
        assert alias.alias_of == "/home"
        assert alias.name is None
        assert table.name_map["home"] is table.path_map["/home"]

    def test_multiple_aliases(self) -> None:
        table = build_route_table([{"path": "/home", "alias": ["/a", "/b"]}])
        assert table.path_list == ["/home", "/a", "/b"]

    def test_alias_children_use_alias_path(self) -> None:
        table = build_route_table(
            [{"path": "/users", "alias": "/people", "children": [{"path": "list", "component": UserView}]}]
        )
        assert table.path_list == ["/users/list", "/users", "/people/list", "/people"]
        assert table.path_map["/people/list"].alias_of == "/users/list"
        assert table.path_map["/people/list"].parent is table.path_map["/people"]

    def test_alias_same_as_path_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="perch.routing"):
            table = build_route_table([{"path": "/home", "alias": "/home"}])
        assert table.path_list == ["/home"]
        assert "same value as the path" in caplog.text


class TestValidation:
    def test_missing_path(self) -> None:
        with pytest.raises(ConfigError, match='"path" is required'):
            build_route_table([{"name": "nowhere"}])

    def test_duplicate_param_names(self) -> None:
        with pytest.raises(ConfigError, match="Duplicate param keys"):
            build_route_table([{"path": "/a/:id/:id"}])

    def test_duplicate_name_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="perch.routing"):
            table = build_route_table([{"path": "/a", "name": "x"}, {"path": "/b", "name": "x"}])
        assert table.name_map["x"].path == "/a"
        assert "Duplicate named routes" in caplog.text

    def test_missing_leading_slash_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="perch.routing"):
            build_route_table([{"path": "about"}])
        assert "leading slash" in caplog.text

    def test_string_component_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="perch.routing"):
            build_route_table([{"path": "/a", "component": "UserView"}])
        assert "cannot be a string id" in caplog.text

    def test_named_route_with_default_child_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="perch.routing"):
            build_route_table([{"path": "/p", "name": "p", "children": [{"path": ""}]}])
        assert "default child route" in caplog.text


class TestAdditive:
    def test_extends_existing_table(self) -> None:
        table = build_route_table([{"path": "/a", "name": "a"}, {"path": "*"}])
        original = table.path_map["/a"]

        same = build_route_table([{"path": "/b", "name": "b"}, {"path": "/a", "name": "other"}], table)

        assert same is table
        assert table.path_list == ["/a", "/b", "*"]
        assert table.path_map["/a"] is original
        assert "b" in table.name_map

    def test_failed_build_keeps_wildcard_last(self) -> None:
        table = build_route_table([{"path": "/a"}, {"path": "*"}])

        with pytest.raises(ConfigError):
            build_route_table([{"path": "/b"}, {"name": "nopath"}], table)

        assert table.path_list == ["/a", "/b", "*"]
