"""Tests for perch.errors — exception hierarchy and failure messages."""

import pytest

from perch.errors import (
    ConfigError,
    NavigationAborted,
    NavigationCancelled,
    NavigationDuplicated,
    NavigationFailure,
    NavigationRedirected,
    ParamFillError,
    PerchError,
)
from perch.routing.location import Location
from perch.routing.route import START, create_route


def _route(path: str):
    return create_route(None, Location(path=path))


class TestHierarchy:
    @pytest.mark.parametrize("cls", [ConfigError, ParamFillError, NavigationFailure])
    def test_perch_error_base(self, cls: type) -> None:
        assert issubclass(cls, PerchError)

    @pytest.mark.parametrize(
        "cls",
        [NavigationDuplicated, NavigationCancelled, NavigationAborted, NavigationRedirected],
    )
    def test_navigation_failures(self, cls: type) -> None:
        assert issubclass(cls, NavigationFailure)


class TestParamFillError:
    def test_attributes(self) -> None:
        err = ParamFillError("/user/:id", 'Expected "id" to be defined')
        assert err.template == "/user/:id"
        assert err.detail == 'Expected "id" to be defined'
        assert str(err) == 'missing param for /user/:id: Expected "id" to be defined'


class TestNavigationFailure:
    def test_keeps_routes(self) -> None:
        to, from_ = _route("/b"), _route("/a")
        err = NavigationAborted(to, from_)
        assert err.to is to
        assert err.from_ is from_
        assert err.reason == "aborted"

    @pytest.mark.parametrize(
        ("cls", "reason"),
        [
            (NavigationCancelled, "cancelled"),
            (NavigationAborted, "aborted"),
            (NavigationRedirected, "redirected"),
        ],
    )
    def test_default_message(self, cls: type[NavigationFailure], reason: str) -> None:
        err = cls(_route("/b"), _route("/a"))
        assert str(err) == f"Navigation {reason} from '/a' to '/b'"

    def test_duplicated_message(self) -> None:
        err = NavigationDuplicated(_route("/a"), _route("/a"))
        assert err.reason == "duplicated"
        assert "redundant navigation" in str(err)
        assert "'/a'" in str(err)

    def test_explicit_detail(self) -> None:
        err = NavigationAborted(_route("/b"), START, "not logged in")
        assert str(err) == "not logged in"
