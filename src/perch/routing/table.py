"""Route table builder.

Compiles a nested route configuration into a flat lookup structure:
an ordered path list (match priority), a path -> record map, and a
name -> record map. Building again with an existing table merges new
records in without replacing any that are already registered.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from perch.errors import ConfigError
from perch.routing.location import clean_path
from perch.routing.pattern import compile_path
from perch.routing.record import RouteConfig, RouteRecord

logger = logging.getLogger("perch.routing")

WILDCARD = "*"

_DEFAULT_CHILD_RE = re.compile(r"^/?$")


@dataclass(slots=True)
class RouteTable:
    """All registered route records.

    ``path_list`` order is match priority: registration order, with
    ``*`` records moved to the end.
    """

    path_list: list[str] = field(default_factory=list)
    path_map: dict[str, RouteRecord] = field(default_factory=dict)
    name_map: dict[str, RouteRecord] = field(default_factory=dict)

    @property
    def records(self) -> list[RouteRecord]:
        """Records in match priority order."""
        return [self.path_map[path] for path in self.path_list]


def build_route_table(
    configs: Iterable[RouteConfig | Mapping[str, Any]],
    table: RouteTable | None = None,
    *,
    strict: bool = False,
    case_sensitive: bool = False,
) -> RouteTable:
    """Compile *configs* into a ``RouteTable``.

    Pass the previous *table* to register more routes into it; paths and
    names that are already registered keep their first record.

    Raises ``ConfigError`` for a node without ``path`` or a template that
    declares the same param twice.
    """
    table = table if table is not None else RouteTable()
    defaults = {"strict": strict, "sensitive": case_sensitive}

    try:
        for config in configs:
            _add_record(table, config, defaults)
    finally:
        # Wildcards always match last, even after a failed additive build
        table.path_list.sort(key=lambda path: path == WILDCARD)

    missing_slash = [p for p in table.path_list if p and p[0] not in ("*", "/")]
    if missing_slash:
        listing = "\n".join(f"- {p}" for p in missing_slash)
        logger.warning(
            "Non-nested routes must include a leading slash character. Fix the following routes:\n%s",
            listing,
        )

    return table


def _add_record(
    table: RouteTable,
    config: Mapping[str, Any],
    defaults: Mapping[str, bool],
    parent: RouteRecord | None = None,
    match_as: str | None = None,
) -> None:
    path = config.get("path")
    name = config.get("name")

    if path is None:
        msg = f'"path" is required in a route configuration (name={name!r}).'
        raise ConfigError(msg)
    if isinstance(config.get("component"), str):
        logger.warning(
            'route config "component" for path: %s cannot be a string id. Use an actual component instead.',
            path or name,
        )

    options = {**defaults, **config.get("path_options", {})}
    if isinstance(config.get("case_sensitive"), bool):
        options["sensitive"] = config["case_sensitive"]

    normalized_path = normalize_path(path, parent, strict=options.get("strict", False))

    components = config.get("components")
    props = config.get("props")
    if components:
        handlers = dict(components)
    else:
        component = config.get("component")
        handlers = {"default": component} if component is not None else {}

    if props is None:
        record_props: dict[str, Any] = {}
    elif components:
        record_props = dict(props)
    else:
        record_props = {"default": props}

    record = RouteRecord(
        path=normalized_path,
        pattern=compile_path(normalized_path, **options),
        handlers=handlers,
        name=name,
        parent=parent,
        alias_of=match_as,
        redirect=config.get("redirect"),
        before_enter=config.get("before_enter"),
        meta=config.get("meta") or {},
        props=record_props,
    )

    children = config.get("children")
    if children:
        if name and record.redirect is None and any(
            _DEFAULT_CHILD_RE.match(child.get("path") or "") for child in children
        ):
            logger.warning(
                "Named Route %r has a default child route. When navigating to this named route "
                "({'name': %r}), the default child route will not be rendered. Remove the name "
                "from this route and use the name of the default child route for named links instead.",
                name,
                name,
            )
        for child in children:
            child_match_as = clean_path(f"{match_as}/{child.get('path')}") if match_as else None
            _add_record(table, child, defaults, record, child_match_as)

    # Children register before their parent, so an empty-path default child
    # claims the parent's path first.
    if record.path not in table.path_map:
        table.path_list.append(record.path)
        table.path_map[record.path] = record

    alias = config.get("alias")
    if alias is not None:
        aliases = [alias] if isinstance(alias, str) else list(alias)
        for alias_path in aliases:
            if alias_path == path:
                logger.warning(
                    'Found an alias with the same value as the path: "%s". You have to remove that alias. '
                    "It will be ignored.",
                    path,
                )
                continue
            alias_config = {"path": alias_path, "children": children}
            _add_record(table, alias_config, defaults, parent, record.path or "/")

    if name:
        if name not in table.name_map:
            table.name_map[name] = record
        elif not match_as:
            logger.warning('Duplicate named routes definition: { name: "%s", path: "%s" }', name, record.path)


def normalize_path(path: str, parent: RouteRecord | None, *, strict: bool = False) -> str:
    """Make a child path absolute by joining it to its parent's path.

    Examples::

        normalize_path("/about", None)      -> "/about"
        normalize_path("posts", user_record) -> "/user/:id/posts"
        normalize_path("/users/", None)     -> "/users"
    """
    if not strict and path.endswith("/"):
        path = path[:-1]
    if path.startswith("/"):
        return path
    if parent is None:
        return path
    return clean_path(f"{parent.path}/{path}")
