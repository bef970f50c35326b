"""Guard outcomes.

A guard returns one of ``Continue``, ``Abort`` or ``Redirect``, or a
shorthand that ``to_outcome()`` maps onto them::

    None / True              -> Continue()
    False                    -> Abort()
    Exception instance       -> Abort(error)
    "/login"                 -> Redirect("/login")
    {"name": "login"}        -> Redirect({"name": "login"})
    {"path": "/x", "replace": True} -> Redirect(..., replace=True)
    callable                 -> Continue(callback)   # entering guards
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from perch._internal.types import RawLocation


@dataclass(frozen=True, slots=True)
class Continue:
    """Proceed to the next step.

    ``callback`` (entering guards only) is called with the rendered
    instance once it is available.
    """

    callback: Callable[[Any], Any] | None = None


@dataclass(frozen=True, slots=True)
class Abort:
    """Stop the navigation. An ``error`` goes to the error observers."""

    error: Exception | None = None


@dataclass(frozen=True, slots=True)
class Redirect:
    """Stop the navigation and start a new one at ``target``."""

    target: RawLocation
    replace: bool = False


Outcome = Continue | Abort | Redirect


def _is_location(value: Any) -> bool:
    return isinstance(value, Mapping) and (isinstance(value.get("path"), str) or isinstance(value.get("name"), str))


def to_outcome(value: Any) -> Outcome:
    """Map a guard's return value onto an ``Outcome``."""
    if isinstance(value, (Continue, Abort, Redirect)):
        return value
    if value is None or value is True:
        return Continue()
    if value is False:
        return Abort()
    if isinstance(value, Exception):
        return Abort(value)
    if isinstance(value, str):
        return Redirect(value)
    if _is_location(value):
        return Redirect(value, replace=bool(value.get("replace")))
    if callable(value):
        return Continue(value)
    return Continue()
