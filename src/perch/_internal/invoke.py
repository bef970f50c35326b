"""Invoke helpers — call sync or async guards uniformly.

Perch guards, hooks, and handler loaders can be ``def`` or
``async def``. Any code that calls a user-provided callable must handle
both cases. This module provides a single helper so the sync/async check
lives in exactly one place.

Usage::

    from perch._internal.invoke import invoke

    outcome = await invoke(guard, to, from_)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it's awaitable.

    Works with both sync and async callables::

        # sync: the result is returned as is
        def require_login(to, from_):
            return session.user is not None

        # async: the coroutine is awaited
        async def require_login(to, from_):
            user = await load_user()
            return user is not None
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
