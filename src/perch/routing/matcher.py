"""Matcher — resolves raw navigation targets into ``Route`` values.

The matcher never raises for an unknown or misconfigured target. Missing
named routes, bad redirects, and unfillable params are logged and
resolve to a route with an empty ``matched`` chain.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from perch._internal.types import RawLocation
from perch.config import RouterConfig
from perch.errors import ParamFillError
from perch.routing.location import Location, normalize_location, resolve_path
from perch.routing.pattern import fill_params
from perch.routing.record import RecordKind, RouteConfig, RouteRecord
from perch.routing.route import Route, create_route
from perch.routing.table import RouteTable, build_route_table

logger = logging.getLogger("perch.routing")


class Matcher:
    """Owns the route table and matches locations against it.

    Usage::

        matcher = Matcher([{"path": "/user/:id", "name": "user"}])
        route = matcher.match("/user/42")
        route.params  # {"id": "42"}
    """

    __slots__ = ("config", "table")

    def __init__(
        self,
        routes: Iterable[RouteConfig | Mapping[str, Any]] = (),
        config: RouterConfig | None = None,
    ) -> None:
        self.config: RouterConfig = config or RouterConfig()
        self.table: RouteTable = build_route_table(
            routes,
            strict=self.config.strict,
            case_sensitive=self.config.case_sensitive,
        )

    def add_routes(self, routes: Iterable[RouteConfig | Mapping[str, Any]]) -> None:
        """Register more routes; existing paths and names keep their records."""
        build_route_table(
            routes,
            self.table,
            strict=self.config.strict,
            case_sensitive=self.config.case_sensitive,
        )

    def match(
        self,
        raw: RawLocation | Location,
        current: Route | None = None,
        redirected_from: Location | None = None,
    ) -> Route:
        """Resolve *raw* (relative to *current*) into a ``Route``."""
        location = normalize_location(raw, current, parse_query=self.config.parse_query)

        if location.name:
            record = self.table.name_map.get(location.name)
            if record is None:
                logger.warning("Route with name %r does not exist", location.name)
                return self._create_route(None, location)

            # Reuse required params from the current route when omitted
            required = record.pattern.required_names
            params = dict(location.params)
            if current is not None:
                for key, value in current.params.items():
                    if key not in params and key in required:
                        params[key] = value

            try:
                path = record.pattern.fill(params)
            except ParamFillError as exc:
                logger.warning('Cannot resolve named route "%s": %s', location.name, exc.detail)
                return self._create_route(None, replace(location, params=params))

            return self._create_route(record, replace(location, path=path, params=params), redirected_from)

        if location.path:
            for record in self.table.records:
                params = record.pattern.match(location.path)
                if params is not None:
                    return self._create_route(record, replace(location, params=params), redirected_from)

        return self._create_route(None, location)

    def _create_route(
        self,
        record: RouteRecord | None,
        location: Location,
        redirected_from: Location | None = None,
    ) -> Route:
        if record is not None:
            kind = record.kind
            if kind is RecordKind.REDIRECT:
                return self._redirect(record, redirected_from or location)
            if kind is RecordKind.ALIAS:
                return self._alias(record, location, record.alias_of or "/")
        return create_route(record, location, redirected_from, self.config.stringify_query)

    def _redirect(self, record: RouteRecord, location: Location) -> Route:
        """Follow *record*'s redirect; *location* is the first cause of the chain."""
        target = record.redirect
        if callable(target):
            try:
                target = target(create_route(record, location, None, self.config.stringify_query))
            except Exception:
                logger.warning('Redirect function for "%s" raised', record.path, exc_info=True)
                return self._create_route(None, location)
        if isinstance(target, str):
            target = {"path": target}

        if not isinstance(target, Mapping):
            logger.warning("Invalid redirect option: %r", target)
            return self._create_route(None, location)

        name = target.get("name")
        path = target.get("path")
        query = target["query"] if "query" in target else location.query
        hash_ = target["hash"] if "hash" in target else location.hash
        params = target["params"] if "params" in target else location.params

        if name:
            if name not in self.table.name_map:
                logger.warning('Redirect failed: named route "%s" not found.', name)
            redirect_location = Location(
                name=name,
                query=dict(query or {}),
                hash=hash_ or "",
                params=dict(params or {}),
                normalized=True,
            )
            return self.match(redirect_location, None, location)

        if path:
            # Relative redirects resolve against the parent record
            raw_path = resolve_path(path, record.parent.path if record.parent else "/", True)
            try:
                resolved_path = fill_params(raw_path, params)
            except ParamFillError as exc:
                logger.warning('Cannot fill redirect route with path "%s": %s', raw_path, exc.detail)
                return self._create_route(None, location)
            redirect_location = Location(
                path=resolved_path,
                query=dict(query or {}),
                hash=hash_ or "",
                normalized=True,
            )
            return self.match(redirect_location, None, location)

        logger.warning("Invalid redirect option: %r", target)
        return self._create_route(None, location)

    def _alias(self, record: RouteRecord, location: Location, match_as: str) -> Route:
        """Resolve the real record behind an alias, keeping the alias URL."""
        try:
            aliased_path = fill_params(match_as, location.params)
        except ParamFillError as exc:
            logger.warning('Cannot fill aliased route with path "%s": %s', match_as, exc.detail)
            return self._create_route(None, location)

        aliased = self.match(Location(path=aliased_path, normalized=True))
        if aliased.matched:
            return self._create_route(aliased.matched[-1], replace(location, params=aliased.params))
        return self._create_route(None, location)
