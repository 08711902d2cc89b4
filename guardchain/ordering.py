"""Filter ordering table.

Resolves the execution order of a chain's filters.  The table is a single
linear sequence of filter *kinds* (a filter's kind is its class).  Ad hoc
``register_before`` / ``register_after`` relations are recorded as they are
made and replayed onto a copy of the baseline when the order is resolved
at build time, so the resolved table is itself one total order.

Kinds that appear neither in the baseline nor in a relation sort at
:class:`CustomFilterSlot`: after every authentication mechanism
(including remember-me and anonymous) and before session management,
exception translation and authorization.  A custom filter therefore sees
the final principal and still runs under access control.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from guardchain.errors import AmbiguousFilterOrderError, FilterOrderError
from guardchain.web.filters import (
    AnonymousAuthenticationFilter,
    AuthorizationFilter,
    BasicAuthenticationFilter,
    ChannelProcessingFilter,
    ExceptionTranslationFilter,
    LogoutFilter,
    PreAuthenticatedProcessingFilter,
    RememberMeAuthenticationFilter,
    RequestCacheAwareFilter,
    SecurityContextHolderAwareRequestFilter,
    SecurityContextPersistenceFilter,
    SessionManagementFilter,
    UsernamePasswordAuthenticationFilter,
)

logger = logging.getLogger(__name__)

BEFORE = "before"
AFTER = "after"


class CustomFilterSlot:
    """Marker kind: where filters of unknown kind are placed."""


DEFAULT_FILTER_ORDER: Tuple[type, ...] = (
    ChannelProcessingFilter,
    SecurityContextPersistenceFilter,
    LogoutFilter,
    PreAuthenticatedProcessingFilter,
    UsernamePasswordAuthenticationFilter,
    BasicAuthenticationFilter,
    RequestCacheAwareFilter,
    SecurityContextHolderAwareRequestFilter,
    RememberMeAuthenticationFilter,
    AnonymousAuthenticationFilter,
    CustomFilterSlot,
    SessionManagementFilter,
    ExceptionTranslationFilter,
    AuthorizationFilter,
)


class FilterOrderingTable:
    """Partial order over filter kinds, resolved to a total order on demand.

    Parameters
    ----------
    baseline:
        Master sequence of kinds.  Must contain :class:`CustomFilterSlot`.
        Defaults to :data:`DEFAULT_FILTER_ORDER`.
    """

    def __init__(self, baseline: Optional[Sequence[type]] = None) -> None:
        self._baseline: List[type] = list(baseline if baseline is not None else DEFAULT_FILTER_ORDER)
        if CustomFilterSlot not in self._baseline:
            raise ValueError("Filter ordering baseline must contain CustomFilterSlot")
        if len(set(self._baseline)) != len(self._baseline):
            raise ValueError("Filter ordering baseline contains duplicate kinds")
        self._relations: Dict[type, Tuple[str, type]] = {}
        self._conflicts: List[Tuple[type, Tuple[str, type], Tuple[str, type]]] = []

    # ── Registration ─────────────────────────────────────────────────

    def register_before(self, kind: type, anchor: type) -> None:
        """Place *kind* immediately before *anchor*."""
        self._register(kind, BEFORE, anchor)

    def register_after(self, kind: type, anchor: type) -> None:
        """Place *kind* immediately after *anchor*."""
        self._register(kind, AFTER, anchor)

    def _register(self, kind: type, direction: str, anchor: type) -> None:
        relation = (direction, anchor)
        existing = self._relations.get(kind)
        if existing is None:
            self._relations[kind] = relation
        elif existing != relation:
            # Detected here, reported when the order is resolved.
            self._conflicts.append((kind, existing, relation))
        logger.debug("Filter order relation: %s %s %s", kind.__name__, direction, anchor.__name__)

    # ── Queries ──────────────────────────────────────────────────────

    @property
    def baseline(self) -> List[type]:
        """Return a copy of the baseline sequence (relations not applied)."""
        return list(self._baseline)

    @property
    def relations(self) -> Dict[type, Tuple[str, type]]:
        return dict(self._relations)

    def is_registered(self, kind: type) -> bool:
        """Return ``True`` if *kind* has an explicit position."""
        return kind in self._baseline or kind in self._relations

    def resolve(self) -> List[type]:
        """Apply all relations to the baseline and return the total order.

        Raises:
            FilterOrderError: A relation is anchored to an unknown kind.
            AmbiguousFilterOrderError: Relations contradict each other.
        """
        if self._conflicts:
            kind, first, second = self._conflicts[0]
            raise AmbiguousFilterOrderError(
                (kind, first[1], second[1]),
                f"'{kind.__name__}' is registered both {first[0]} '{first[1].__name__}' "
                f"and {second[0]} '{second[1].__name__}'",
            )

        known: Set[type] = set(self._baseline) | set(self._relations)
        for kind, (direction, anchor) in self._relations.items():
            if anchor is kind:
                raise AmbiguousFilterOrderError(
                    (kind,), "a filter kind cannot be ordered relative to itself"
                )
            if anchor not in known:
                raise FilterOrderError(kind, anchor, direction)

        # Relocated kinds leave their baseline position.
        order = [k for k in self._baseline if k not in self._relations]
        placed: Set[type] = set(order)
        pending = list(self._relations.items())

        while pending:
            remaining = []
            for kind, (direction, anchor) in pending:
                if anchor not in placed:
                    remaining.append((kind, (direction, anchor)))
                    continue
                if direction == BEFORE:
                    order.insert(order.index(anchor), kind)
                else:
                    order.insert(self._end_of_run(order, anchor), kind)
                placed.add(kind)
            if len(remaining) == len(pending):
                raise AmbiguousFilterOrderError(
                    [kind for kind, _ in remaining],
                    "relations anchor on each other in a cycle",
                )
            pending = remaining

        return order

    def _anchored_to(self, kind: type, anchor: type) -> bool:
        """Return ``True`` if *kind* was positioned relative to *anchor*, directly or via other kinds."""
        while kind in self._relations:
            kind = self._relations[kind][1]
            if kind is anchor:
                return True
        return False

    def _end_of_run(self, order: List[type], anchor: type) -> int:
        # Kinds already placed after anchor (and kinds anchored on those) keep
        # their adjacency; a new "after" kind goes past the whole run.
        idx = order.index(anchor) + 1
        while idx < len(order) and self._anchored_to(order[idx], anchor):
            idx += 1
        return idx

    def sort(self, filters: Sequence[Any]) -> List[Any]:
        """Return *filters* ordered by the resolved table.

        Filters of the same kind (or of different unknown kinds) keep
        their insertion order.
        """
        order = self.resolve()
        position = {kind: idx for idx, kind in enumerate(order)}
        custom_slot = position[CustomFilterSlot]

        announced: Set[type] = set()
        for f in filters:
            kind = type(f)
            if kind not in position and kind not in announced:
                announced.add(kind)
                logger.info(
                    "Filter kind '%s' has no registered position; placing it at the "
                    "custom filter slot (after authentication, before authorization)",
                    kind.__name__,
                )

        return sorted(filters, key=lambda f: position.get(type(f), custom_slot))

    def __repr__(self) -> str:
        return f"FilterOrderingTable(kinds={len(self._baseline)}, relations={len(self._relations)})"
