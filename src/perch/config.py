"""Router configuration.

RouterConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

MODES = ("history", "hash", "abstract")


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(base="/app", mode="hash")
    """

    # Href generation
    base: str = "/"
    mode: str = "abstract"  # "history" | "hash" | "abstract"

    # Path matching defaults, overridable per route via path_options
    strict: bool = False  # trailing slash is significant
    case_sensitive: bool = False

    # Query string codec (None = built-in parse_query / stringify_query)
    parse_query: Callable[[str], dict[str, Any]] | None = None
    stringify_query: Callable[[Mapping[str, Any]], str] | None = None

    # Entering-guard callbacks poll for the rendered instance at this interval
    poll_interval: float = 0.016

    def __post_init__(self) -> None:
        if self.mode not in MODES:
            msg = f"Invalid router mode {self.mode!r}. Expected one of: {', '.join(MODES)}"
            raise ValueError(msg)
        if self.poll_interval <= 0:
            msg = f"poll_interval must be positive, got {self.poll_interval!r}"
            raise ValueError(msg)

    @property
    def normalized_base(self) -> str:
        """Base path with a leading slash and no trailing slash ("" for root)."""
        base = self.base or "/"
        if not base.startswith("/"):
            base = "/" + base
        return base.rstrip("/")
