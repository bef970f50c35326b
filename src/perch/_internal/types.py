"""Shared type aliases used across perch modules."""

from collections.abc import Callable, Mapping
from typing import Any, TypeAlias

# Raw navigation target: a URL string or a structured location mapping
RawLocation: TypeAlias = str | Mapping[str, Any]

# Navigation guard: (to, from_) -> outcome, sync or async
Guard: TypeAlias = Callable[..., Any]

# After-navigation hook: (to, from_) -> None
AfterHook: TypeAlias = Callable[..., Any]

# Opaque view handler (component) stored per named view slot
Handler: TypeAlias = Any
