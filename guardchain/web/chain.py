"""Security filter protocol and the built chain artifact.

:class:`DefaultSecurityFilterChain` is what
:meth:`HttpSecurityBuilder.build` produces: a request matcher paired with
an ordered, immutable tuple of filters.  The surrounding dispatch layer
checks :meth:`~DefaultSecurityFilterChain.matches` and, on a match, runs
the request through :meth:`~DefaultSecurityFilterChain.invoke`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol, Sequence, Tuple, runtime_checkable

# ── Type protocol ────────────────────────────────────────────────────────

NextFilter = Callable[[Any, Any], Awaitable[Any]]


@runtime_checkable
class SecurityFilter(Protocol):
    """One processing stage.

    A filter inspects or modifies the exchange and either calls
    ``next_filter(request, response)`` to continue or returns without
    calling it to stop the chain (e.g. after a redirect).
    """

    async def process(self, request: Any, response: Any, next_filter: NextFilter) -> Any: ...


# ── Chain builder ────────────────────────────────────────────────────────


def build_chain(filters: Sequence[Any], handler: NextFilter) -> NextFilter:
    """Compose *filters* around a final *handler*.

    Filters are applied in sequence order: the first filter is the
    outermost wrapper (executed first for requests, last for responses).
    """
    chain = handler
    for flt in reversed(filters):
        next_filter = chain

        async def _wrap(
            request: Any,
            response: Any,
            _flt: Any = flt,
            _next: Any = next_filter,
        ) -> Any:
            return await _flt.process(request, response, _next)

        chain = _wrap
    return chain


async def _terminal(request: Any, response: Any) -> Any:
    return None


@dataclass(frozen=True)
class DefaultSecurityFilterChain:
    """Immutable ``(request_matcher, filters)`` pair.

    Safe to share between concurrent requests: neither field can be
    rebound and ``filters`` is a tuple.
    """

    request_matcher: Any
    filters: Tuple[Any, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", tuple(self.filters))

    def matches(self, request: Any) -> bool:
        return bool(self.request_matcher.matches(request))

    @property
    def filter_kinds(self) -> Tuple[type, ...]:
        return tuple(type(f) for f in self.filters)

    async def invoke(self, request: Any, response: Any, handler: NextFilter = _terminal) -> Any:
        """Run *request* through every filter, then *handler*."""
        return await build_chain(self.filters, handler)(request, response)

    def __len__(self) -> int:
        return len(self.filters)

    def __repr__(self) -> str:
        names = ", ".join(k.__name__ for k in self.filter_kinds)
        return f"DefaultSecurityFilterChain(matcher={self.request_matcher!r}, filters=[{names}])"
