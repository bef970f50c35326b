"""Guard extraction from matched records.

Handlers (the opaque per-slot view objects) may declare in-component
guards as attributes:

- ``before_route_leave(instance, to, from_)`` — bound to the live instance
- ``before_route_update(instance, to, from_)`` — bound to the live instance
- ``before_route_enter(to, from_)`` — no instance exists yet

Each attribute may also hold a list of guards. Leave and update guards
are skipped when no instance is bound for the slot.
"""

import functools
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import anyio

from perch._internal.invoke import invoke
from perch._internal.types import Guard, Handler
from perch.navigation.outcome import Continue, Outcome, to_outcome
from perch.routing.record import RouteRecord

LEAVE_GUARD = "before_route_leave"
UPDATE_GUARD = "before_route_update"
ENTER_GUARD = "before_route_enter"


@dataclass(slots=True, eq=False)
class LazyHandler:
    """A handler that must be loaded before its route can be entered.

    ``loader`` is a sync or async zero-argument callable. The loaded
    handler replaces the ``LazyHandler`` in its record.
    """

    loader: Callable[[], Any]
    resolved: Any = None

    async def load(self) -> Any:
        if self.resolved is None:
            self.resolved = await invoke(self.loader)
        return self.resolved


def resolve_queue(
    current: Sequence[RouteRecord],
    target: Sequence[RouteRecord],
) -> tuple[list[RouteRecord], list[RouteRecord], list[RouteRecord]]:
    """Diff two matched chains by record identity.

    Returns ``(updated, activated, deactivated)``: the shared prefix, the
    target's records after it, and the current's records after it.
    """
    index = 0
    shared = min(len(current), len(target))
    while index < shared and current[index] is target[index]:
        index += 1
    return list(target[:index]), list(target[index:]), list(current[index:])


def _extract_guards(
    records: Iterable[RouteRecord],
    attr: str,
    bind: Callable[[Guard, Any, RouteRecord, str], Guard | None],
    *,
    reverse: bool = False,
) -> list[Guard]:
    per_handler: list[list[Guard]] = []
    for record in records:
        for slot, handler in record.handlers.items():
            guard = getattr(handler, attr, None)
            if guard is None:
                continue
            guards = guard if isinstance(guard, (list, tuple)) else [guard]
            bound = [bind(g, record.instances.get(slot), record, slot) for g in guards]
            per_handler.append([g for g in bound if g is not None])

    if reverse:
        per_handler.reverse()
    return [guard for group in per_handler for guard in group]


def _bind_to_instance(guard: Guard, instance: Any, record: RouteRecord, slot: str) -> Guard | None:
    if instance is None:
        return None
    return functools.partial(guard, instance)


def extract_leave_guards(deactivated: Iterable[RouteRecord]) -> list[Guard]:
    """Leave guards, innermost record first."""
    return _extract_guards(deactivated, LEAVE_GUARD, _bind_to_instance, reverse=True)


def extract_update_guards(updated: Iterable[RouteRecord]) -> list[Guard]:
    """Update guards, outermost record first."""
    return _extract_guards(updated, UPDATE_GUARD, _bind_to_instance)


def extract_enter_guards(
    activated: Iterable[RouteRecord],
    deferred: list[Callable[[], Any]],
    is_valid: Callable[[], bool],
    poll_interval: float,
) -> list[Guard]:
    """Entering guards, outermost record first.

    A guard that continues with a callback gets a poller appended to
    *deferred*; the engine runs those once the navigation commits.
    """

    def bind(guard: Guard, _instance: Any, record: RouteRecord, slot: str) -> Guard:
        async def route_enter_guard(to: Any, from_: Any) -> Outcome:
            outcome = to_outcome(await invoke(guard, to, from_))
            if isinstance(outcome, Continue) and outcome.callback is not None:
                callback = outcome.callback
                deferred.append(
                    functools.partial(poll_instance, callback, record.instances, slot, is_valid, poll_interval)
                )
            return outcome

        return route_enter_guard

    return _extract_guards(activated, ENTER_GUARD, bind)


async def poll_instance(
    callback: Callable[[Any], Any],
    instances: dict[str, Any],
    slot: str,
    is_valid: Callable[[], bool],
    interval: float,
) -> None:
    """Call *callback* with the instance bound to *slot* once it appears.

    Stops without calling it when *is_valid* turns False (the route is
    no longer current). There is no deadline otherwise.
    """
    while True:
        instance = instances.get(slot)
        if instance is not None:
            await invoke(callback, instance)
            return
        if not is_valid():
            return
        await anyio.sleep(interval)


def resolve_lazy_handlers(activated: Sequence[RouteRecord]) -> Guard:
    """A queue step that loads every ``LazyHandler`` in *activated*.

    Loaders run concurrently. The first loader error aborts the navigation.
    """

    async def resolve_step(to: Any, from_: Any) -> Exception | None:
        pending = [
            (record, slot, handler)
            for record in activated
            for slot, handler in record.handlers.items()
            if isinstance(handler, LazyHandler)
        ]
        if not pending:
            return None

        errors: list[Exception] = []

        async def load(record: RouteRecord, slot: str, handler: LazyHandler) -> None:
            try:
                loaded: Handler = await handler.load()
            except Exception as exc:
                errors.append(exc)
                return
            record.handlers[slot] = loaded

        async with anyio.create_task_group() as tg:
            for record, slot, handler in pending:
                tg.start_soon(load, record, slot, handler)

        return errors[0] if errors else None

    return resolve_step
