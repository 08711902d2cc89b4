"""Build-scoped shared object registry.

Configurators publish and consume collaborator objects (the authentication
registry, the security context repository, the request cache, ...) through
this mapping without knowing about each other.  Keys are compared by exact
type identity: a value stored under ``HttpSessionSecurityContextRepository``
is *not* found when looking up ``SecurityContextRepository``.

Usage::

    registry = SharedObjectRegistry()
    registry.set_if_absent(RequestCache, HttpSessionRequestCache())
    cache = registry.get(RequestCache)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Optional, Type, TypeVar

from guardchain.errors import BuilderStateError, MissingCollaboratorError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SharedObjectRegistry:
    """Typed ``type → instance`` store scoped to one build."""

    def __init__(self) -> None:
        self._objects: Dict[type, Any] = {}
        self._frozen = False

    def set(self, shared_type: Type[T], value: T) -> None:
        """Store *value* under *shared_type*, replacing any previous value."""
        self._check_writable(shared_type)
        self._objects[shared_type] = value
        logger.debug("Shared object set: %s", shared_type.__name__)

    def set_if_absent(self, shared_type: Type[T], value: T) -> bool:
        """Store *value* only if nothing is stored under *shared_type* yet.

        Returns ``True`` if the value was stored.
        """
        self._check_writable(shared_type)
        if shared_type in self._objects:
            return False
        self._objects[shared_type] = value
        logger.debug("Shared object default set: %s", shared_type.__name__)
        return True

    def get(self, shared_type: Type[T], default: Optional[T] = None) -> Optional[T]:
        """Return the value stored under *shared_type*, or *default*."""
        return self._objects.get(shared_type, default)

    def require(self, shared_type: Type[T], consumer: Optional[str] = None) -> T:
        """Return the value stored under *shared_type* or raise.

        Raises:
            MissingCollaboratorError: If nothing is stored under *shared_type*.
        """
        if shared_type not in self._objects:
            raise MissingCollaboratorError(shared_type, consumer)
        return self._objects[shared_type]

    def contains(self, shared_type: type) -> bool:
        return shared_type in self._objects

    def freeze(self) -> None:
        """Reject further writes (called when the build completes)."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_writable(self, shared_type: type) -> None:
        if self._frozen:
            raise BuilderStateError(
                f"Cannot set shared object '{shared_type.__name__}': the build has completed."
            )

    def __contains__(self, shared_type: object) -> bool:
        return shared_type in self._objects

    def __iter__(self) -> Iterator[type]:
        return iter(self._objects)

    def __len__(self) -> int:
        return len(self._objects)

    def __repr__(self) -> str:
        names = sorted(t.__name__ for t in self._objects)
        return f"SharedObjectRegistry(types={names})"
