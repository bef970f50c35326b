"""History — the navigation state machine.

A navigation resolves its target, diffs the matched chains, and runs two
guard queues strictly one step at a time:

1. leave guards (innermost first), global ``before_each`` guards, update
   guards, route ``before_enter`` guards, lazy handler loading;
2. entering guards, global ``before_resolve`` guards.

Only the newest navigation may commit. Each navigation captures a
generation number; a step whose generation is stale aborts with
``NavigationCancelled`` instead of running. Guards that are already
suspended are not interrupted.

Concrete transports (browser history, hash, in-memory) subclass
``History`` and implement ``go``, ``push``, ``replace``, ``ensure_url``
and ``get_current_location``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any

from perch._internal.invoke import invoke
from perch._internal.types import Guard, RawLocation
from perch.errors import (
    NavigationAborted,
    NavigationCancelled,
    NavigationDuplicated,
    NavigationFailure,
    NavigationRedirected,
)
from perch.navigation.guards import (
    extract_enter_guards,
    extract_leave_guards,
    extract_update_guards,
    resolve_lazy_handlers,
    resolve_queue,
)
from perch.navigation.outcome import Abort, Redirect, to_outcome
from perch.routing.route import START, Route, is_same_route

if TYPE_CHECKING:
    from perch.router import Router

logger = logging.getLogger("perch.navigation")

CompleteCallback = Callable[[Route], Any]
AbortCallback = Callable[[Exception], Any]


class History(ABC):
    """Base transport: owns the current route and runs transitions."""

    def __init__(self, router: Router) -> None:
        self.router = router
        self.base: str = router.config.normalized_base
        self.current: Route = START
        self.pending: Route | None = None
        self.ready: bool = False
        self._generation: int = 0
        self._listener: Callable[[Route], Any] | None = None
        self._ready_callbacks: list[Callable[[Route], Any]] = []
        self._ready_error_callbacks: list[Callable[[Exception], Any]] = []
        self._error_callbacks: list[Callable[[Exception], Any]] = []

    # -- Transport interface --

    @abstractmethod
    async def go(self, n: int) -> None: ...

    @abstractmethod
    async def push(
        self,
        location: RawLocation,
        on_complete: CompleteCallback | None = None,
        on_abort: AbortCallback | None = None,
    ) -> None: ...

    @abstractmethod
    async def replace(
        self,
        location: RawLocation,
        on_complete: CompleteCallback | None = None,
        on_abort: AbortCallback | None = None,
    ) -> None: ...

    @abstractmethod
    def ensure_url(self, push: bool = False) -> None:
        """Bring the transport's URL in line with ``current``."""

    @abstractmethod
    def get_current_location(self) -> str: ...

    async def start(self) -> None:
        """Run the initial navigation to the transport's current location."""
        await self.transition_to(self.get_current_location())

    # -- Observers --

    def listen(self, callback: Callable[[Route], Any]) -> None:
        """Set the single listener called on every commit (replaces any previous one)."""
        self._listener = callback

    async def on_ready(
        self, callback: Callable[[Route], Any], error_callback: Callable[[Exception], Any] | None = None
    ) -> None:
        """Call *callback* once the first navigation commits (now, if it already has).

        Either callback may be sync or async.
        """
        if self.ready:
            await invoke(callback, self.current)
            return
        self._ready_callbacks.append(callback)
        if error_callback is not None:
            self._ready_error_callbacks.append(error_callback)

    def on_error(self, callback: Callable[[Exception], Any]) -> None:
        """Register an observer for errors raised or returned by guards."""
        self._error_callbacks.append(callback)

    # -- Transitions --

    async def transition_to(
        self,
        location: RawLocation,
        on_complete: CompleteCallback | None = None,
        on_abort: AbortCallback | None = None,
    ) -> None:
        """Navigate to *location*.

        Never raises for a failed navigation: every outcome is reported
        through exactly one of *on_complete* or *on_abort*.
        """
        route = self.router.match(location, self.current)

        async def complete(committed: Route) -> None:
            await self.update_route(committed)
            if on_complete is not None:
                await invoke(on_complete, committed)
            self.ensure_url()

            if not self.ready:
                self.ready = True
                callbacks, self._ready_callbacks = self._ready_callbacks, []
                self._ready_error_callbacks = []
                for callback in callbacks:
                    await invoke(callback, committed)

        async def abort(error: Exception) -> None:
            if on_abort is not None:
                await invoke(on_abort, error)
            # Aborted, cancelled and redirected navigations leave ready pending
            if not self.ready and not isinstance(error, (NavigationAborted, NavigationCancelled, NavigationRedirected)):
                self.ready = True
                callbacks, self._ready_error_callbacks = self._ready_error_callbacks, []
                self._ready_callbacks = []
                for callback in callbacks:
                    await invoke(callback, error)

        await self.confirm_transition(route, complete, abort)

    async def confirm_transition(
        self,
        route: Route,
        on_complete: Callable[[Route], Awaitable[None]],
        on_abort: Callable[[Exception], Awaitable[None]] | None = None,
    ) -> None:
        """Run the guard pipeline for *route* and commit it if allowed."""
        current = self.current

        async def abort(error: Exception) -> None:
            if not isinstance(error, NavigationFailure):
                if self._error_callbacks:
                    for callback in self._error_callbacks:
                        await invoke(callback, error)
                else:
                    logger.error("Uncaught error during route navigation", exc_info=error)
            if on_abort is not None:
                await on_abort(error)

        if is_same_route(route, current) and len(route.matched) == len(current.matched):
            self.ensure_url()
            await abort(NavigationDuplicated(route, current))
            return

        updated, activated, deactivated = resolve_queue(current.matched, route.matched)
        queue: list[Guard | None] = [
            *extract_leave_guards(deactivated),
            *self.router.before_hooks,
            *extract_update_guards(updated),
            *(record.before_enter for record in activated),
            resolve_lazy_handlers(activated),
        ]

        self._generation += 1
        generation = self._generation
        self.pending = route

        async def run_queue(guards: Sequence[Guard | None]) -> bool:
            for guard in guards:
                if guard is None:
                    continue
                if generation != self._generation:
                    await abort(NavigationCancelled(route, current))
                    return False
                try:
                    outcome = to_outcome(await invoke(guard, route, current))
                except Exception as exc:
                    await abort(exc)
                    return False

                if isinstance(outcome, Abort):
                    self.ensure_url(push=True)
                    await abort(outcome.error or NavigationAborted(route, current))
                    return False
                if isinstance(outcome, Redirect):
                    await abort(NavigationRedirected(route, current))
                    if outcome.replace:
                        await self.replace(outcome.target)
                    else:
                        await self.push(outcome.target)
                    return False
            return True

        if not await run_queue(queue):
            return

        deferred: list[Callable[[], Any]] = []
        enter_guards = extract_enter_guards(
            activated,
            deferred,
            lambda: self.current is route,
            self.router.config.poll_interval,
        )
        if not await run_queue([*enter_guards, *self.router.resolve_hooks]):
            return

        if generation != self._generation:
            await abort(NavigationCancelled(route, current))
            return

        self.pending = None
        await on_complete(route)

        for poller in deferred:
            await self.router.defer(poller)

    async def update_route(self, route: Route) -> None:
        """Commit *route* as current and notify the listener and after hooks."""
        previous = self.current
        self.current = route
        if self._listener is not None:
            await invoke(self._listener, route)
        for hook in list(self.router.after_hooks):
            await invoke(hook, route, previous)
