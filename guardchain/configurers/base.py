"""Configurator base class.

A configurator is one policy area (session management, form login, ...)
applied to an :class:`~guardchain.builder.HttpSecurityBuilder`.  It takes
part in two build phases:

1. ``initialize(builder)``: publish shared-object defaults, register
   authentication providers, adjust other configurators.
2. ``configure(builder)``: add filters, reading whatever phase 1 left
   in the shared object registry.

Configurators never see each other directly; they communicate through
the builder's registry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from guardchain.errors import BuilderStateError

if TYPE_CHECKING:
    from guardchain.builder import HttpSecurityBuilder


class SecurityConfigurator:
    """Base class for all configurators.  Both phases are no-ops by default."""

    def __init__(self) -> None:
        self._builder: Optional[HttpSecurityBuilder] = None

    @property
    def builder(self) -> HttpSecurityBuilder:
        if self._builder is None:
            raise BuilderStateError(f"{type(self).__name__} has not been applied to a builder")
        return self._builder

    def set_builder(self, builder: HttpSecurityBuilder) -> None:
        self._builder = builder

    def initialize(self, builder: HttpSecurityBuilder) -> None:
        pass

    def configure(self, builder: HttpSecurityBuilder) -> None:
        pass

    def and_(self) -> HttpSecurityBuilder:
        """Return the builder to continue chaining on it."""
        return self.builder

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
