"""In-memory history transport.

Keeps the visited routes on a stack with a cursor. Used when there is no
browser-like host (servers, tests, headless runs).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from perch._internal.invoke import invoke
from perch._internal.types import RawLocation
from perch.errors import NavigationDuplicated
from perch.navigation.history import AbortCallback, CompleteCallback, History
from perch.routing.route import Route

if TYPE_CHECKING:
    from perch.router import Router


class MemoryHistory(History):
    """History backed by a list of routes.

    Usage::

        router = Router(routes, history=MemoryHistory)
        await router.push("/users/42")
        await router.back()
    """

    def __init__(self, router: Router, initial: str = "/") -> None:
        super().__init__(router)
        self.initial = initial
        self.stack: list[Route] = []
        self.index: int = -1

    async def start(self) -> None:
        await self.replace(self.get_current_location())

    async def push(
        self,
        location: RawLocation,
        on_complete: CompleteCallback | None = None,
        on_abort: AbortCallback | None = None,
    ) -> None:
        async def complete(route: Route) -> None:
            self.stack = [*self.stack[: self.index + 1], route]
            self.index += 1
            if on_complete is not None:
                await invoke(on_complete, route)

        await self.transition_to(location, complete, on_abort)

    async def replace(
        self,
        location: RawLocation,
        on_complete: CompleteCallback | None = None,
        on_abort: AbortCallback | None = None,
    ) -> None:
        async def complete(route: Route) -> None:
            if self.index < 0:
                self.stack = [route]
                self.index = 0
            else:
                self.stack = [*self.stack[: self.index], route]
            if on_complete is not None:
                await invoke(on_complete, route)

        await self.transition_to(location, complete, on_abort)

    async def go(self, n: int) -> None:
        """Move the cursor by *n*; out-of-range moves are ignored."""
        target_index = self.index + n
        if target_index < 0 or target_index >= len(self.stack):
            return
        route = self.stack[target_index]

        async def complete(committed: Route) -> None:
            self.index = target_index
            await self.update_route(committed)

        async def abort(error: Exception) -> None:
            if isinstance(error, NavigationDuplicated):
                self.index = target_index

        await self.confirm_transition(route, complete, abort)

    def ensure_url(self, push: bool = False) -> None:
        """Nothing to sync: the stack is the URL."""

    def get_current_location(self) -> str:
        if 0 <= self.index < len(self.stack):
            return self.stack[self.index].full_path
        return self.initial
