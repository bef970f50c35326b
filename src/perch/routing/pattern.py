"""Path template compilation.

Turns a route path template into a regex plus ordered parameter slots,
and fills a template back into a concrete path.

Template syntax::

    "/users"               -> static
    "/users/:id"           -> one segment, pattern [^/]+?
    "/users/:id(\\d+)"     -> custom segment pattern
    "/files/:path*"        -> zero or more segments (also "?" and "+")
    "/legacy/(.*)"         -> unnamed group, keyed by position
    "*"                    -> unnamed catch-all, stored as "pathMatch"
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, unquote

from perch.errors import ConfigError, ParamFillError

DEFAULT_DELIMITER = "/"

# Params key for unnamed catch-all captures (positional key 0)
PATH_MATCH = "pathMatch"

_TOKEN_RE = re.compile(
    # Escaped characters: "\(" matches a literal "("
    r"(\\.)"
    # Prefix, then ":name" with optional "(pattern)", an unnamed "(pattern)",
    # an optional modifier, or a bare "*"
    r"|([/.])?(?:(?::(\w+)(?:\(((?:\\.|[^\\()])+)\))?|\(((?:\\.|[^\\()])+)\))([+*?])?|(\*))"
)

_GROUP_ESCAPE_RE = re.compile(r"([=!:$/()])")

# encodeURI-compatible safe sets; "/", "?" and "#" are always encoded in
# segments, but catch-all values keep their slashes.
_SEGMENT_SAFE = ";,:@&=+$!*'()"
_ASTERISK_SAFE = _SEGMENT_SAFE + "/"


@dataclass(frozen=True, slots=True)
class PathKey:
    """A parameter slot in a path template.

    Named keys come from ``:name``. Unnamed groups and ``*`` get their
    position (0, 1, ...) as name.
    """

    name: str | int
    prefix: str = ""
    delimiter: str = DEFAULT_DELIMITER
    optional: bool = False
    repeat: bool = False
    partial: bool = False
    asterisk: bool = False
    pattern: str = r"[^/]+?"

    @property
    def param_name(self) -> str:
        """Key under which a matched value is stored in route params."""
        if isinstance(self.name, int):
            return PATH_MATCH if self.name == 0 else str(self.name)
        return self.name


Token = str | PathKey


def tokenize(template: str, delimiter: str = DEFAULT_DELIMITER) -> list[Token]:
    """Split a template into literal strings and ``PathKey`` slots.

    Examples::

        "/users/:id"  -> ["/users", PathKey("id", prefix="/")]
        "/user/:id/*" -> ["/user", PathKey("id", prefix="/"), PathKey(0, prefix="/", asterisk=True)]
    """
    tokens: list[Token] = []
    position = 0
    index = 0
    path = ""

    for m in _TOKEN_RE.finditer(template):
        matched = m.group(0)
        escaped = m.group(1)
        offset = m.start()
        path += template[index:offset]
        index = offset + len(matched)

        if escaped:
            path += escaped[1]
            continue

        next_char = template[index] if index < len(template) else None
        prefix, name, capture, group, modifier, asterisk = m.group(2, 3, 4, 5, 6, 7)

        if path:
            tokens.append(path)
            path = ""

        key_name: str | int
        if name is None:
            key_name = position
            position += 1
        else:
            key_name = name

        key_delimiter = prefix or delimiter
        pattern = capture or group
        if pattern:
            key_pattern = _GROUP_ESCAPE_RE.sub(r"\\\1", pattern)
        elif asterisk:
            key_pattern = ".*"
        else:
            key_pattern = f"[^{re.escape(key_delimiter)}]+?"

        tokens.append(
            PathKey(
                name=key_name,
                prefix=prefix or "",
                delimiter=key_delimiter,
                optional=modifier in ("?", "*"),
                repeat=modifier in ("+", "*"),
                partial=prefix is not None and next_char is not None and next_char != prefix,
                asterisk=bool(asterisk),
                pattern=key_pattern,
            )
        )

    if index < len(template):
        path += template[index:]
    if path:
        tokens.append(path)

    return tokens


def _tokens_to_regex(tokens: list[Token], *, strict: bool, end: bool, sensitive: bool) -> re.Pattern[str]:
    route = ""
    for token in tokens:
        if isinstance(token, str):
            route += re.escape(token)
            continue

        prefix = re.escape(token.prefix)
        capture = f"(?:{token.pattern})"
        if token.repeat:
            capture += f"(?:{prefix}{capture})*"
        if token.optional:
            if not token.partial:
                capture = f"(?:{prefix}({capture}))?"
            else:
                capture = f"{prefix}({capture})?"
        else:
            capture = f"{prefix}({capture})"
        route += capture

    delimiter = re.escape(DEFAULT_DELIMITER)
    ends_with_delimiter = route.endswith(delimiter)

    # Non-strict: an optional trailing slash is allowed
    if not strict:
        if ends_with_delimiter:
            route = route[: -len(delimiter)]
        route += f"(?:{delimiter}(?=$))?"

    if end:
        route += "$"
    elif not (strict and ends_with_delimiter):
        route += f"(?={delimiter}|$)"

    return re.compile("^" + route, 0 if sensitive else re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class PathPattern:
    """A compiled path template.

    Created once per route record. ``match()`` tests a concrete path and
    extracts params; ``fill()`` builds a concrete path from params.
    """

    template: str
    regex: re.Pattern[str]
    keys: tuple[PathKey, ...]
    tokens: tuple[Token, ...]

    @property
    def required_names(self) -> list[str]:
        """Names of the non-optional named keys, in template order."""
        return [k.param_name for k in self.keys if not k.optional]

    def match(self, path: str) -> dict[str, str] | None:
        """Match *path*; return decoded params, or None if it doesn't match.

        Optional keys that didn't participate in the match are omitted.
        """
        m = self.regex.match(path)
        if m is None:
            return None
        params: dict[str, str] = {}
        for key, value in zip(self.keys, m.groups()):
            if value is not None:
                params[key.param_name] = unquote(value)
        return params

    def fill(self, params: Mapping[str, Any]) -> str:
        """Build a concrete path from *params*.

        Raises ``ParamFillError`` if a required param is missing, or a value
        does not fit its slot (e.g. contains ``/`` in a single segment).
        """
        path = ""
        for token in self.tokens:
            if isinstance(token, str):
                path += token
                continue

            value = params.get(token.param_name)
            if value is None and isinstance(token.name, int):
                value = params.get(token.name)
            if value is None:
                if token.optional:
                    if token.partial:
                        path += token.prefix
                    continue
                raise ParamFillError(self.template, f'Expected "{token.param_name}" to be defined')

            if isinstance(value, (list, tuple)):
                if not token.repeat:
                    raise ParamFillError(
                        self.template,
                        f'Expected "{token.param_name}" to not repeat, but received {list(value)!r}',
                    )
                if not value:
                    if token.optional:
                        continue
                    raise ParamFillError(self.template, f'Expected "{token.param_name}" to not be empty')
                for i, item in enumerate(value):
                    segment = self._segment(token, item)
                    path += (token.prefix if i == 0 else token.delimiter) + segment
                continue

            path += token.prefix + self._segment(token, value)

        return path

    def _segment(self, token: PathKey, value: Any) -> str:
        raw = str(value)
        checker = re.compile(f"^(?:{token.pattern})$", self.regex.flags)
        if not token.asterisk and "/" in raw and not checker.match(raw):
            raise ParamFillError(
                self.template,
                f'Expected "{token.param_name}" to be a single path segment, but received {raw!r}',
            )
        segment = quote(raw, safe=_ASTERISK_SAFE if token.asterisk else _SEGMENT_SAFE)
        if not checker.match(segment):
            raise ParamFillError(
                self.template,
                f'Expected "{token.param_name}" to match "{token.pattern}", but received {segment!r}',
            )
        return segment


def compile_path(
    template: str,
    *,
    strict: bool = False,
    sensitive: bool = False,
    end: bool = True,
) -> PathPattern:
    """Compile a path template into a ``PathPattern``.

    Raises ``ConfigError`` if the template declares the same param twice.
    """
    tokens = tokenize(template)
    keys = tuple(t for t in tokens if isinstance(t, PathKey))

    seen: set[str | int] = set()
    for key in keys:
        if key.name in seen:
            msg = f'Duplicate param keys in route with path: "{template}"'
            raise ConfigError(msg)
        seen.add(key.name)

    return PathPattern(
        template=template,
        regex=_tokens_to_regex(tokens, strict=strict, end=end, sensitive=sensitive),
        keys=keys,
        tokens=tuple(tokens),
    )


# Fillers are reused across navigations; templates come from a fixed table.
_FILL_CACHE: dict[str, PathPattern] = {}


def fill_params(template: str, params: Mapping[str, Any] | None) -> str:
    """Fill *template* with *params*, caching the compiled template.

    ``pathMatch`` is accepted for the positional catch-all key.
    Raises ``ParamFillError`` (or ``ConfigError`` for a malformed template).
    """
    pattern = _FILL_CACHE.get(template)
    if pattern is None:
        pattern = compile_path(template)
        _FILL_CACHE[template] = pattern
    return pattern.fill(dict(params or {}))
