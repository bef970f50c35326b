"""Location normalization.

Turns a raw navigation target (a URL string or a mapping with
``name``/``path``/``params``/``query``/``hash``) into an absolute
``Location``, resolving relative paths against the current route.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from perch._internal.types import RawLocation
from perch.errors import ParamFillError
from perch.routing.pattern import fill_params
from perch.routing.query import resolve_query

if TYPE_CHECKING:
    from perch.routing.route import Route

logger = logging.getLogger("perch.routing")

_DOUBLE_SLASH_RE = re.compile(r"//")


@dataclass(frozen=True, slots=True)
class Location:
    """A normalized navigation target.

    ``normalized`` is True once the path is absolute and the query is
    parsed. Named locations skip path resolution and keep it False.
    """

    path: str | None = None
    name: str | None = None
    query: dict[str, Any] = field(default_factory=dict)
    hash: str = ""
    params: dict[str, Any] = field(default_factory=dict)
    normalized: bool = False


def clean_path(path: str) -> str:
    """Collapse double slashes: ``"/a//b"`` -> ``"/a/b"``."""
    return _DOUBLE_SLASH_RE.sub("/", path)


def parse_path(path: str) -> tuple[str, str, str]:
    """Split ``"/a?b=1#c"`` into ``("/a", "b=1", "#c")``."""
    hash_ = ""
    query = ""

    hash_index = path.find("#")
    if hash_index >= 0:
        hash_ = path[hash_index:]
        path = path[:hash_index]

    query_index = path.find("?")
    if query_index >= 0:
        query = path[query_index + 1 :]
        path = path[:query_index]

    return path, query, hash_


def resolve_path(relative: str, base: str, append: bool = False) -> str:
    """Resolve *relative* against *base*.

    Examples::

        resolve_path("/abs", "/a/b")           -> "/abs"
        resolve_path("c", "/a/b")              -> "/a/c"
        resolve_path("c", "/a/b", append=True) -> "/a/b/c"
        resolve_path("../c", "/a/b")           -> "/c"
        resolve_path("?x=1", "/a/b")           -> "/a/b?x=1"
    """
    first = relative[:1]
    if first == "/":
        return relative
    if first in ("?", "#"):
        return base + relative

    stack = base.split("/")

    # Drop the last segment unless appending or the base ends with a slash
    if not append or not stack[-1]:
        stack.pop()

    for segment in relative.lstrip("/").split("/"):
        if segment == "..":
            if stack:
                stack.pop()
        elif segment != ".":
            stack.append(segment)

    if not stack or stack[0] != "":
        stack.insert(0, "")

    return "/".join(stack)


def _format_hash(value: str | None) -> str:
    if value and not value.startswith("#"):
        return f"#{value}"
    return value or ""


def normalize_location(
    raw: RawLocation | Location,
    current: Route | None = None,
    append: bool = False,
    *,
    parse_query: Callable[[str], dict[str, Any]] | None = None,
) -> Location:
    """Normalize *raw* into a ``Location``. Never mutates its inputs.

    Relative paths resolve against ``current.path``; with no current
    route they resolve against ``/``.
    """
    if isinstance(raw, Location):
        if raw.normalized or raw.name:
            return raw
        raw = {"path": raw.path, "query": raw.query, "hash": raw.hash, "params": raw.params}

    target: Mapping[str, Any] = {"path": raw} if isinstance(raw, str) else raw

    if target.get("name"):
        return Location(
            path=target.get("path"),
            name=target["name"],
            query=resolve_query("", target.get("query"), parse_query),
            hash=_format_hash(target.get("hash")),
            params=dict(target.get("params") or {}),
        )

    # Relative params: same route, different params
    if not target.get("path") and target.get("params") is not None and current is not None:
        params = {**current.params, **target["params"]}
        query = resolve_query("", target.get("query"), parse_query)
        hash_ = _format_hash(target.get("hash"))
        if current.name:
            return Location(name=current.name, query=query, hash=hash_, params=params)

        path = ""
        if current.matched:
            template = current.matched[-1].path
            try:
                path = fill_params(template, params)
            except ParamFillError as exc:
                logger.warning("Could not fill path %s for relative params navigation: %s", current.path, exc)
        else:
            logger.warning("Relative params navigation requires a current route.")
        return Location(path=path, query=query, hash=hash_, params=params, normalized=True)

    parsed_path, parsed_query, parsed_hash = parse_path(target.get("path") or "")
    base_path = current.path if current is not None else "/"
    path = resolve_path(parsed_path, base_path, append or bool(target.get("append"))) if parsed_path else base_path

    return Location(
        path=path,
        query=resolve_query(parsed_query, target.get("query"), parse_query),
        hash=_format_hash(target.get("hash") or parsed_hash),
        normalized=True,
    )
