"""Perch — a navigation router for Python applications.

Resolves navigation targets (URLs, named routes, relative moves) into
structured routes, and runs the asynchronous guard pipeline that decides
whether a navigation may complete.

Basic usage::

    from perch import Router

    router = Router([
        {"path": "/", "redirect": "/home"},
        {"path": "/home", "component": Home},
        {"path": "/user/:id", "name": "user", "component": User},
    ])

    async with router:
        await router.start()
        route = await router.push("/user/42")
        route.params  # {"id": "42"}
"""

import importlib

__version__ = "0.1.0-dev"
__all__ = [
    "Abort",
    "ConfigError",
    "Continue",
    "LazyHandler",
    "Location",
    "Matcher",
    "MemoryHistory",
    "NavigationAborted",
    "NavigationCancelled",
    "NavigationDuplicated",
    "NavigationFailure",
    "NavigationRedirected",
    "ParamFillError",
    "PerchError",
    "Redirect",
    "Route",
    "RouteConfig",
    "RouteRecord",
    "Router",
    "RouterConfig",
    "START",
]

# public name -> defining module
_LAZY_IMPORTS: dict[str, str] = {
    "Abort": "perch.navigation.outcome",
    "ConfigError": "perch.errors",
    "Continue": "perch.navigation.outcome",
    "LazyHandler": "perch.navigation.guards",
    "Location": "perch.routing.location",
    "Matcher": "perch.routing.matcher",
    "MemoryHistory": "perch.navigation.memory",
    "NavigationAborted": "perch.errors",
    "NavigationCancelled": "perch.errors",
    "NavigationDuplicated": "perch.errors",
    "NavigationFailure": "perch.errors",
    "NavigationRedirected": "perch.errors",
    "ParamFillError": "perch.errors",
    "PerchError": "perch.errors",
    "Redirect": "perch.navigation.outcome",
    "Route": "perch.routing.route",
    "RouteConfig": "perch.routing.record",
    "RouteRecord": "perch.routing.record",
    "Router": "perch.router",
    "RouterConfig": "perch.config",
    "START": "perch.routing.route",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    return getattr(importlib.import_module(module_name), name)
