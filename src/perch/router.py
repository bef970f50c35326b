"""Perch router.

Ties the matcher and a history transport together and holds the global
guards. Route configuration may grow at any time via ``add_routes()``.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Any

import anyio
from anyio.abc import TaskGroup

from perch._internal.types import AfterHook, Guard, Handler, RawLocation
from perch.config import RouterConfig
from perch.navigation.history import AbortCallback, CompleteCallback, History
from perch.navigation.memory import MemoryHistory
from perch.routing.location import Location, clean_path, normalize_location
from perch.routing.matcher import Matcher
from perch.routing.record import RouteConfig
from perch.routing.route import START, Route

logger = logging.getLogger("perch.navigation")


@dataclass(frozen=True, slots=True)
class Resolved:
    """Result of ``Router.resolve()``."""

    location: Location
    route: Route
    href: str


def _register_hook(hooks: list[Any], fn: Any) -> Callable[[], None]:
    hooks.append(fn)

    def unregister() -> None:
        if fn in hooks:
            hooks.remove(fn)

    return unregister


def create_href(base: str, full_path: str, mode: str) -> str:
    """Join *base* and *full_path*; hash mode puts the path after ``#``."""
    path = f"#{full_path}" if mode == "hash" else full_path
    return clean_path(f"{base}/{path}") if base else path


class Router:
    """The application-facing router.

    Usage::

        router = Router([
            {"path": "/", "redirect": "/home"},
            {"path": "/home", "component": Home},
            {"path": "/user/:id", "name": "user", "component": User},
        ])

        async def require_login(to, from_):
            if to.meta.get("auth") and not session.user:
                return "/login"

        unregister = router.before_each(require_login)

        async with router:
            await router.start()
            route = await router.push({"name": "user", "params": {"id": "42"}})

    Deferred entering-guard callbacks (which wait for a rendered instance)
    run in the task group opened by ``async with router``.
    """

    __slots__ = (
        "_exit_stack",
        "_task_group",
        "after_hooks",
        "before_hooks",
        "config",
        "history",
        "matcher",
        "resolve_hooks",
    )

    def __init__(
        self,
        routes: Iterable[RouteConfig | Mapping[str, Any]] = (),
        config: RouterConfig | None = None,
        *,
        history: Callable[["Router"], History] | None = None,
    ) -> None:
        self.config: RouterConfig = config or RouterConfig()
        self.matcher: Matcher = Matcher(routes, self.config)
        self.before_hooks: list[Guard] = []
        self.resolve_hooks: list[Guard] = []
        self.after_hooks: list[AfterHook] = []
        self._task_group: TaskGroup | None = None
        self._exit_stack: AsyncExitStack | None = None
        self.history: History = (history or MemoryHistory)(self)

    # -- Lifecycle --

    async def __aenter__(self) -> "Router":
        self._exit_stack = AsyncExitStack()
        self._task_group = await self._exit_stack.enter_async_context(anyio.create_task_group())
        return self

    async def __aexit__(self, *exc_info: Any) -> bool | None:
        if self._exit_stack is None or self._task_group is None:
            raise RuntimeError("Router context exited without being entered")
        # Pending pollers have no deadline of their own
        self._task_group.cancel_scope.cancel()
        try:
            return await self._exit_stack.__aexit__(*exc_info)
        finally:
            self._task_group = None
            self._exit_stack = None

    async def start(self) -> None:
        """Navigate to the transport's current location."""
        await self.history.start()

    async def defer(self, func: Callable[[], Awaitable[Any]]) -> None:
        """Run *func* in the background task group.

        Outside ``async with router`` it gets a single inline run, which
        only succeeds if the instance it waits for is already bound.
        """
        if self._task_group is not None:
            self._task_group.start_soon(func)
            return
        logger.debug("No task group active; running deferred callback inline.")
        with anyio.move_on_after(self.config.poll_interval):
            await func()

    # -- Matching --

    @property
    def current_route(self) -> Route:
        return self.history.current

    def match(
        self,
        raw: RawLocation | Location,
        current: Route | None = None,
        redirected_from: Location | None = None,
    ) -> Route:
        return self.matcher.match(raw, current, redirected_from)

    def resolve(self, to: RawLocation, current: Route | None = None, append: bool = False) -> Resolved:
        """Resolve *to* without navigating; also builds its ``href``."""
        current = current or self.history.current
        location = normalize_location(to, current, append, parse_query=self.config.parse_query)
        route = self.match(location, current)
        full_path = route.redirected_from or route.full_path
        return Resolved(
            location=location,
            route=route,
            href=create_href(self.history.base, full_path, self.config.mode),
        )

    def get_matched_handlers(self, to: RawLocation | Route | None = None) -> list[Handler]:
        """Handlers of every record matched by *to* (default: the current route)."""
        if to is None:
            route = self.current_route
        elif isinstance(to, Route):
            route = to
        else:
            route = self.resolve(to).route
        return [handler for record in route.matched for handler in record.handlers.values()]

    async def add_routes(self, routes: Iterable[RouteConfig | Mapping[str, Any]]) -> None:
        """Register more routes, then re-resolve the current location."""
        self.matcher.add_routes(routes)
        if self.history.current is not START:
            await self.history.transition_to(self.history.get_current_location())

    # -- Guards and observers --

    def before_each(self, fn: Guard) -> Callable[[], None]:
        """Register a global guard run before route guards. Returns an unregister function."""
        return _register_hook(self.before_hooks, fn)

    def before_resolve(self, fn: Guard) -> Callable[[], None]:
        """Register a global guard run after entering guards. Returns an unregister function."""
        return _register_hook(self.resolve_hooks, fn)

    def after_each(self, fn: AfterHook) -> Callable[[], None]:
        """Register a ``(to, from_)`` hook called after each commit. Returns an unregister function."""
        return _register_hook(self.after_hooks, fn)

    def listen(self, callback: Callable[[Route], Any]) -> None:
        self.history.listen(callback)

    async def on_ready(
        self, callback: Callable[[Route], Any], error_callback: Callable[[Exception], Any] | None = None
    ) -> None:
        await self.history.on_ready(callback, error_callback)

    def on_error(self, callback: Callable[[Exception], Any]) -> None:
        self.history.on_error(callback)

    # -- Navigation --

    async def push(
        self,
        location: RawLocation,
        on_complete: CompleteCallback | None = None,
        on_abort: AbortCallback | None = None,
    ) -> Route | None:
        """Navigate to *location*, adding a history entry.

        With callbacks, the outcome goes to exactly one of them. Without,
        returns the committed route or raises the abort reason.
        """
        if on_complete is None and on_abort is None:
            return await _await_outcome(self.history.push, location)
        await self.history.push(location, on_complete, on_abort)
        return None

    async def replace(
        self,
        location: RawLocation,
        on_complete: CompleteCallback | None = None,
        on_abort: AbortCallback | None = None,
    ) -> Route | None:
        """Like ``push()``, but replaces the current history entry."""
        if on_complete is None and on_abort is None:
            return await _await_outcome(self.history.replace, location)
        await self.history.replace(location, on_complete, on_abort)
        return None

    async def go(self, n: int) -> None:
        await self.history.go(n)

    async def back(self) -> None:
        await self.go(-1)

    async def forward(self) -> None:
        await self.go(1)


async def _await_outcome(navigate: Callable[..., Awaitable[None]], location: RawLocation) -> Route:
    outcome: dict[str, Any] = {}

    def complete(route: Route) -> None:
        outcome.setdefault("route", route)

    def abort(error: Exception) -> None:
        outcome.setdefault("error", error)

    await navigate(location, complete, abort)
    if "error" in outcome:
        raise outcome["error"]
    return outcome["route"]
