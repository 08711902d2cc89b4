"""Session management configurator."""

from __future__ import annotations

from typing import Any, Optional

from guardchain.configurers.base import SecurityConfigurator
from guardchain.web.context import (
    HttpSessionSecurityContextRepository,
    NullSecurityContextRepository,
    SecurityContextRepository,
)
from guardchain.web.filters import SessionManagementFilter
from guardchain.web.savedrequest import NullRequestCache, RequestCache
from guardchain.web.session import SessionAuthenticationStrategy, session_strategy_for


class SessionManagementConfigurator(SecurityConfigurator):
    """Publishes the session authentication strategy and adds :class:`SessionManagementFilter`.

    ``stateless()`` turns off session use: fixation protection is disabled
    and, unless another configurator set them, the context repository and
    request cache default to their null implementations.
    """

    def __init__(self) -> None:
        super().__init__()
        self._fixation = "migrate"
        self._strategy: Optional[Any] = None
        self._invalid_session_url: Optional[str] = None
        self._stateless = False

    def session_fixation(self, strategy_name: str) -> SessionManagementConfigurator:
        """``"migrate"`` (default), ``"new"`` or ``"none"``."""
        session_strategy_for(strategy_name)
        self._fixation = strategy_name
        return self

    def session_authentication_strategy(self, strategy: Any) -> SessionManagementConfigurator:
        self._strategy = strategy
        return self

    def invalid_session_url(self, url: str) -> SessionManagementConfigurator:
        self._invalid_session_url = url
        return self

    def stateless(self) -> SessionManagementConfigurator:
        self._stateless = True
        self._fixation = "none"
        return self

    @property
    def is_stateless(self) -> bool:
        return self._stateless

    def initialize(self, builder: Any) -> None:
        if self._strategy is not None:
            builder.set_shared_object(SessionAuthenticationStrategy, self._strategy)
        else:
            builder.default_shared_object(SessionAuthenticationStrategy, session_strategy_for(self._fixation))
        if self._stateless:
            builder.default_shared_object(SecurityContextRepository, NullSecurityContextRepository())
            builder.default_shared_object(RequestCache, NullRequestCache())

    def configure(self, builder: Any) -> None:
        repository = builder.get_shared_object(SecurityContextRepository)
        if repository is None:
            repository = HttpSessionSecurityContextRepository()
        strategy = builder.shared_objects.require(SessionAuthenticationStrategy, type(self).__name__)
        builder.add_filter(SessionManagementFilter(repository, strategy, self._invalid_session_url))


def is_stateless(builder: Any) -> bool:
    """Return ``True`` if *builder* has a stateless session management configurator.

    Configurators that publish session-backed defaults consult this during
    initialize, so the outcome does not depend on application order.
    """
    configurator = builder.get_configurator(SessionManagementConfigurator)
    return configurator is not None and configurator.is_stateless
