"""RouteConfig input shape and the compiled RouteRecord."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypedDict

from perch._internal.types import Guard, Handler, RawLocation
from perch.routing.pattern import PathPattern


class PathOptions(TypedDict, total=False):
    """Options passed through to ``compile_path()``."""

    strict: bool
    sensitive: bool
    end: bool


class RouteConfig(TypedDict, total=False):
    """One node of the declarative route configuration tree.

    Only ``path`` is required. Plain dicts work just as well::

        {"path": "/user/:id", "name": "user", "component": UserView,
         "children": [{"path": "posts", "component": PostsView}]}
    """

    path: str
    name: str
    component: Handler
    components: Mapping[str, Handler]
    children: Sequence[RouteConfig]
    redirect: RawLocation | Callable[..., Any]
    alias: str | Sequence[str]
    before_enter: Guard
    meta: Mapping[str, Any]
    props: Any
    case_sensitive: bool
    path_options: PathOptions


class RecordKind(Enum):
    """Classification of a record, resolved once per match."""

    NORMAL = "normal"
    REDIRECT = "redirect"
    ALIAS = "alias"


@dataclass(slots=True, eq=False)
class RouteRecord:
    """One compiled route definition node.

    Records compare by identity: the transition engine diffs matched
    chains record by record.

    ``handlers`` and ``instances`` are keyed by view slot name
    (``"default"`` for the unnamed slot). ``instances`` belongs to the
    rendering side; perch only reads it while polling for entering-guard
    callbacks.
    """

    path: str
    pattern: PathPattern
    handlers: dict[str, Handler] = field(default_factory=dict)
    name: str | None = None
    parent: RouteRecord | None = None
    alias_of: str | None = None
    redirect: Any = None
    before_enter: Guard | None = None
    meta: Mapping[str, Any] = field(default_factory=dict)
    props: dict[str, Any] = field(default_factory=dict)
    instances: dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> RecordKind:
        if self.redirect is not None:
            return RecordKind.REDIRECT
        if self.alias_of is not None:
            return RecordKind.ALIAS
        return RecordKind.NORMAL

    @property
    def chain(self) -> list[RouteRecord]:
        """This record and its ancestors, root first."""
        records: list[RouteRecord] = []
        record: RouteRecord | None = self
        while record is not None:
            records.insert(0, record)
            record = record.parent
        return records

    def __repr__(self) -> str:
        return f"RouteRecord(path={self.path!r}, name={self.name!r}, kind={self.kind.value})"
