"""Security context persistence configurator."""

from __future__ import annotations

from typing import Any, Optional

from guardchain.configurers.base import SecurityConfigurator
from guardchain.configurers.session_management import is_stateless
from guardchain.web.context import (
    HttpSessionSecurityContextRepository,
    NullSecurityContextRepository,
    SecurityContextRepository,
)
from guardchain.web.filters import SecurityContextPersistenceFilter


class SecurityContextConfigurator(SecurityConfigurator):
    def __init__(self) -> None:
        super().__init__()
        self._repository: Optional[Any] = None

    def security_context_repository(self, repository: Any) -> SecurityContextConfigurator:
        self._repository = repository
        return self

    def initialize(self, builder: Any) -> None:
        if self._repository is not None:
            builder.set_shared_object(SecurityContextRepository, self._repository)
        elif is_stateless(builder):
            builder.default_shared_object(SecurityContextRepository, NullSecurityContextRepository())
        else:
            builder.default_shared_object(SecurityContextRepository, HttpSessionSecurityContextRepository())

    def configure(self, builder: Any) -> None:
        repository = builder.shared_objects.require(SecurityContextRepository, type(self).__name__)
        builder.add_filter(SecurityContextPersistenceFilter(repository))
