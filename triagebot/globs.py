"""Shell-style glob patterns used to match label names."""

from __future__ import annotations

import re

_ERROR_WILDCARDS = "wildcards are either regular `*` or recursive `**`"
_ERROR_RECURSIVE_WILDCARDS = "recursive wildcards must form a single path component"
_ERROR_INVALID_RANGE = "invalid range pattern"


class GlobError(ValueError):
    """Raised when a glob pattern is malformed."""

    def __init__(self, pos: int, msg: str):
        self.pos = pos
        self.msg = msg
        super().__init__(f"Pattern syntax error near position {pos}: {msg}")


def _class_regex(specs: list[str], negated: bool) -> str:
    """Build a regex for the contents of a ``[...]`` character class."""
    items: list[str] = []
    i = 0
    while i < len(specs):
        if i + 3 <= len(specs) and specs[i + 1] == "-":
            low, high = specs[i], specs[i + 2]
            if low <= high:
                items.append(f"{re.escape(low)}-{re.escape(high)}")
            i += 3
        else:
            items.append(re.escape(specs[i]))
            i += 1
    if not items:
        return "." if negated else "(?!)"
    return "[" + ("^" if negated else "") + "".join(items) + "]"


def _translate(pattern: str) -> str:
    chars = list(pattern)
    n = len(chars)
    out: list[str] = []
    i = 0
    while i < n:
        c = chars[i]
        if c == "?":
            out.append(".")
            i += 1
        elif c == "*":
            old = i
            while i < n and chars[i] == "*":
                i += 1
            count = i - old
            if count > 2:
                raise GlobError(old + 2, _ERROR_WILDCARDS)
            if count == 1:
                out.append(".*")
                continue
            if not (old == 0 or chars[old - 1] == "/"):
                raise GlobError(old, _ERROR_RECURSIVE_WILDCARDS)
            if i < n and chars[i] == "/":
                i += 1
                out.append("(?:.*/)?")
            elif i == n:
                out.append(".*")
            else:
                raise GlobError(i, _ERROR_RECURSIVE_WILDCARDS)
        elif c == "[":
            if i + 4 <= n and chars[i + 1] == "!":
                try:
                    j = chars.index("]", i + 3)
                except ValueError:
                    raise GlobError(i, _ERROR_INVALID_RANGE) from None
                out.append(_class_regex(chars[i + 2:j], negated=True))
                i = j + 1
            elif i + 3 <= n and chars[i + 1] != "!":
                try:
                    j = chars.index("]", i + 2)
                except ValueError:
                    raise GlobError(i, _ERROR_INVALID_RANGE) from None
                out.append(_class_regex(chars[i + 1:j], negated=False))
                i = j + 1
            else:
                raise GlobError(i, _ERROR_INVALID_RANGE)
        else:
            out.append(re.escape(c))
            i += 1
    return "".join(out)


class GlobPattern:
    """A compiled glob: ``*``, ``**``, ``?`` and ``[...]`` classes with ``!`` negation."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        source = _translate(pattern)
        self._sensitive = re.compile(source, re.DOTALL)
        self._insensitive = re.compile(source, re.DOTALL | re.IGNORECASE)

    def matches(self, text: str, case_sensitive: bool = True) -> bool:
        """Return whether the whole of ``text`` matches this pattern."""
        regex = self._sensitive if case_sensitive else self._insensitive
        return regex.fullmatch(text) is not None

    def __repr__(self) -> str:
        return f"GlobPattern({self.pattern!r})"

    def __str__(self) -> str:
        return self.pattern

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GlobPattern):
            return NotImplemented
        return self.pattern == other.pattern

    def __hash__(self) -> int:
        return hash(self.pattern)