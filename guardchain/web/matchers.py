"""Request matchers: predicates selecting which requests a rule applies to.

* :class:`AnyRequestMatcher`: matches everything (the chain default).
* :class:`AntPathRequestMatcher`: Ant-style path globs:
  ``?`` one character, ``*`` anything within a path segment,
  ``**`` any number of segments (``/api/**`` also matches ``/api``).
* :class:`RegexRequestMatcher`: full-match regular expression against
  the path plus query string.

Both pattern matchers accept an optional HTTP method restriction.
"""

from __future__ import annotations

import re
from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class RequestMatcher(Protocol):
    """Predicate over an incoming request."""

    def matches(self, request: Any) -> bool: ...


class AnyRequestMatcher:
    """Matches every request."""

    def matches(self, request: Any) -> bool:
        return True

    def __eq__(self, other: object) -> bool:
        return isinstance(other, AnyRequestMatcher)

    def __hash__(self) -> int:
        return hash(AnyRequestMatcher)

    def __repr__(self) -> str:
        return "AnyRequestMatcher()"


def _ant_to_regex(pattern: str, case_sensitive: bool) -> re.Pattern[str]:
    """Translate an Ant-style path pattern into a compiled regex."""
    parts = []
    i = 0
    n = len(pattern)
    while i < n:
        if pattern.startswith("/**", i) and (i + 3 == n or pattern[i + 3] == "/"):
            parts.append("(?:/.*)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile("".join(parts), flags)


def _method_matches(expected: Optional[str], request: Any) -> bool:
    if expected is None:
        return True
    return getattr(request, "method", "").upper() == expected


class AntPathRequestMatcher:
    """Match the request path against an Ant-style pattern.

    Parameters
    ----------
    pattern:
        Ant-style pattern, e.g. ``"/admin/**"`` or ``"/static/*.css"``.
    method:
        Optional HTTP method the request must use.
    case_sensitive:
        Whether path comparison is case sensitive (default ``True``).
    """

    def __init__(
        self,
        pattern: str,
        method: Optional[str] = None,
        case_sensitive: bool = True,
    ) -> None:
        if not pattern:
            raise ValueError("Ant pattern must not be empty")
        self.pattern = pattern
        self.method = method.upper() if method else None
        self._regex = _ant_to_regex(pattern, case_sensitive)

    def matches(self, request: Any) -> bool:
        if not _method_matches(self.method, request):
            return False
        return self._regex.fullmatch(getattr(request, "path", "")) is not None

    def __repr__(self) -> str:
        return f"AntPathRequestMatcher(pattern={self.pattern!r}, method={self.method!r})"


class RegexRequestMatcher:
    """Match the request path plus query string against a regular expression."""

    def __init__(
        self,
        pattern: str,
        method: Optional[str] = None,
        case_insensitive: bool = False,
    ) -> None:
        self.pattern = pattern
        self.method = method.upper() if method else None
        self._regex = re.compile(pattern, re.IGNORECASE if case_insensitive else 0)

    def matches(self, request: Any) -> bool:
        if not _method_matches(self.method, request):
            return False
        url = getattr(request, "url", None) or getattr(request, "path", "")
        return self._regex.fullmatch(url) is not None

    def __repr__(self) -> str:
        return f"RegexRequestMatcher(pattern={self.pattern!r}, method={self.method!r})"
