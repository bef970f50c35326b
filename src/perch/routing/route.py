"""Route frozen dataclass and route comparison helpers."""

from __future__ import annotations

import copy
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from perch.routing.location import Location
from perch.routing.query import stringify_query
from perch.routing.record import RouteRecord

_TRAILING_SLASH_RE = re.compile(r"/?$")


@dataclass(frozen=True, slots=True)
class Route:
    """A resolved navigation result. Never mutated after creation.

    ``matched`` runs from the root ancestor to the deepest matched
    record; it is empty when nothing matched.
    """

    path: str = "/"
    full_path: str = "/"
    name: str | None = None
    hash: str = ""
    query: dict[str, Any] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    meta: Mapping[str, Any] = field(default_factory=dict)
    matched: tuple[RouteRecord, ...] = ()
    redirected_from: str | None = None


def get_full_path(
    location: Location | Route,
    stringify: Callable[[Mapping[str, Any]], str] | None = None,
) -> str:
    """``path`` + serialized query + hash."""
    stringify = stringify or stringify_query
    return (location.path or "/") + stringify(location.query) + location.hash


def create_route(
    record: RouteRecord | None,
    location: Location,
    redirected_from: Location | None = None,
    stringify: Callable[[Mapping[str, Any]], str] | None = None,
) -> Route:
    """Build a ``Route`` for *record* (or a non-matching one for None)."""
    return Route(
        path=location.path or "/",
        full_path=get_full_path(location, stringify),
        name=location.name or (record.name if record else None),
        hash=location.hash,
        query=copy.deepcopy(location.query),
        params=dict(location.params),
        meta=record.meta if record else {},
        matched=tuple(record.chain) if record else (),
        redirected_from=get_full_path(redirected_from, stringify) if redirected_from else None,
    )


# The "nowhere" route every history starts at
START = create_route(None, Location(path="/"))


def _stringified(obj: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in obj.items():
        if isinstance(value, Mapping):
            result[key] = _stringified(value)
        elif isinstance(value, (list, tuple)):
            result[key] = [None if v is None else str(v) for v in value]
        else:
            result[key] = None if value is None else str(value)
    return result


def is_same_route(a: Route, b: Route | None) -> bool:
    """True if *a* and *b* point at the same location.

    ``START`` only equals itself. Paths compare without a trailing slash.
    """
    if b is START:
        return a is b
    if b is None:
        return False
    if a.path and b.path:
        return (
            _TRAILING_SLASH_RE.sub("", a.path, count=1) == _TRAILING_SLASH_RE.sub("", b.path, count=1)
            and a.hash == b.hash
            and _stringified(a.query) == _stringified(b.query)
        )
    if a.name and b.name:
        return (
            a.name == b.name
            and a.hash == b.hash
            and _stringified(a.query) == _stringified(b.query)
            and _stringified(a.params) == _stringified(b.params)
        )
    return False


def is_included_route(current: Route, target: Route) -> bool:
    """True if *current* is at or below *target* (path prefix, hash, query subset)."""
    current_path = _TRAILING_SLASH_RE.sub("/", current.path, count=1)
    target_path = _TRAILING_SLASH_RE.sub("/", target.path, count=1)
    return (
        current_path.startswith(target_path)
        and (not target.hash or current.hash == target.hash)
        and all(key in current.query for key in target.query)
    )
