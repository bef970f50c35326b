"""Rendering seam.

A renderer asks which handler to show at a given nesting depth and view
slot, with which props, and reports the instance it created so that
entering-guard callbacks can reach it.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from perch._internal.types import Handler
from perch.routing.record import RouteRecord
from perch.routing.route import Route

logger = logging.getLogger("perch.routing")


def resolve_props(route: Route, config: Any) -> dict[str, Any] | None:
    """Compute the props for a view from its route config.

    ``None`` -> no props; ``True`` -> all params; a mapping -> static
    props; a callable -> ``config(route)``.
    """
    if config is None:
        return None
    if isinstance(config, bool):
        return dict(route.params) if config else None
    if isinstance(config, Mapping):
        return dict(config)
    if callable(config):
        result = config(route)
        return dict(result) if result is not None else None
    logger.warning(
        'props in "%s" is a %s, expecting a mapping, callable or bool.',
        route.path,
        type(config).__name__,
    )
    return None


@dataclass(frozen=True, slots=True)
class ViewMatch:
    """What to render for one view slot of a route."""

    record: RouteRecord
    name: str
    handler: Handler
    props: dict[str, Any] | None

    def register(self, instance: Any) -> None:
        """Bind the rendered *instance* to this slot (on mount or update)."""
        self.record.instances[self.name] = instance

    def unregister(self, instance: Any) -> None:
        """Unbind *instance* on unmount; a newer binding is left alone."""
        if self.record.instances.get(self.name) is instance:
            del self.record.instances[self.name]


def resolve_view(route: Route, depth: int, name: str = "default") -> ViewMatch | None:
    """The view for slot *name* at nesting *depth*, or None if nothing renders there."""
    if depth < 0 or depth >= len(route.matched):
        return None
    record = route.matched[depth]
    handler = record.handlers.get(name)
    if handler is None:
        return None
    return ViewMatch(
        record=record,
        name=name,
        handler=handler,
        props=resolve_props(route, record.props.get(name)),
    )
