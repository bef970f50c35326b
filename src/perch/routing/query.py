"""Query string parsing and serialization.

Repeated keys become lists, and a key without ``=`` maps to ``None``::

    parse_query("?a=1&a=2&flag") -> {"a": ["1", "2"], "flag": None}
    stringify_query({"a": ["1", "2"], "flag": None}) -> "?a=1&a=2&flag"
"""

import logging
import re
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import quote, unquote

logger = logging.getLogger("perch.routing")

_LEADING_RE = re.compile(r"^[?#&]")


def encode(value: str) -> str:
    """Percent-encode a query key or value, keeping commas readable."""
    return quote(value, safe=",")


def parse_query(query: str) -> dict[str, Any]:
    """Parse a raw query string (leading ``?``, ``#`` or ``&`` is ignored)."""
    result: dict[str, Any] = {}
    query = _LEADING_RE.sub("", query.strip())
    if not query:
        return result

    for param in query.split("&"):
        parts = param.replace("+", " ").split("=")
        key = unquote(parts[0])
        value = unquote("=".join(parts[1:])) if len(parts) > 1 else None

        if key not in result:
            result[key] = value
        elif isinstance(result[key], list):
            result[key].append(value)
        else:
            result[key] = [result[key], value]

    return result


def stringify_query(query: Mapping[str, Any] | None) -> str:
    """Serialize a query mapping, with a leading ``?`` unless empty."""
    if not query:
        return ""

    parts: list[str] = []
    for key, value in query.items():
        if value is None:
            parts.append(encode(key))
        elif isinstance(value, (list, tuple)):
            for item in value:
                if item is None:
                    parts.append(encode(key))
                else:
                    parts.append(f"{encode(key)}={encode(str(item))}")
        else:
            parts.append(f"{encode(key)}={encode(str(value))}")

    joined = "&".join(p for p in parts if p)
    return f"?{joined}" if joined else ""


def _cast(value: Any) -> Any:
    if value is None or isinstance(value, (Mapping, list, tuple)):
        return value
    return str(value)


def resolve_query(
    query: str,
    extra: Mapping[str, Any] | None = None,
    parse: Callable[[str], dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Parse *query* and overlay the explicit *extra* mapping.

    Extra values are stringified (lists element-wise). A parser that
    raises is reported and treated as an empty query.
    """
    parser = parse or parse_query
    try:
        parsed = dict(parser(query or ""))
    except Exception:
        logger.warning("Could not parse query string %r; using an empty query.", query, exc_info=True)
        parsed = {}

    for key, value in (extra or {}).items():
        parsed[key] = [_cast(v) for v in value] if isinstance(value, (list, tuple)) else _cast(value)

    return parsed
