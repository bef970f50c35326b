"""Perch exception hierarchy.

Shared across the route table, matcher, and transition engine so every
module raises and catches the same types.
"""

from typing import Any


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigError(PerchError):
    """Raised when a route configuration is invalid.

    Typically raised while the route table is being built at startup.
    """


class ParamFillError(PerchError):
    """A path template could not be filled with the given params.

    Raised by ``PathPattern.fill()``. The matcher catches it and resolves
    the target to a non-matching route, so navigation callers never see it.
    """

    def __init__(self, template: str, detail: str) -> None:
        self.template = template
        self.detail = detail
        super().__init__(f"missing param for {template}: {detail}")


class NavigationFailure(PerchError):
    """A navigation ended without committing its target route.

    Delivered through the abort callback (or raised from ``push()`` /
    ``replace()`` when no callbacks are given). Never routed to the
    error observers registered with ``on_error()``.
    """

    reason = "failed"

    def __init__(self, to: Any, from_: Any, detail: str = "") -> None:
        self.to = to
        self.from_ = from_
        self.detail = detail or self._default_detail()
        super().__init__(self.detail)

    def _default_detail(self) -> str:
        return f"Navigation {self.reason} from {_full_path(self.from_)!r} to {_full_path(self.to)!r}"


class NavigationDuplicated(NavigationFailure):
    """The target route is identical to the current one."""

    reason = "duplicated"

    def _default_detail(self) -> str:
        return f"Avoided redundant navigation to current location: {_full_path(self.to)!r}"


class NavigationCancelled(NavigationFailure):
    """Superseded by a newer navigation before it could commit."""

    reason = "cancelled"


class NavigationAborted(NavigationFailure):
    """A guard stopped the navigation (returned ``False`` or ``Abort()``)."""

    reason = "aborted"


class NavigationRedirected(NavigationFailure):
    """A guard redirected the navigation to another location."""

    reason = "redirected"


def _full_path(route: Any) -> str:
    return getattr(route, "full_path", None) or str(route)
