"""Remember-me configurator."""

from __future__ import annotations

import uuid
from typing import Any, Optional

from guardchain.authentication import RememberMeAuthenticationProvider, UserDetailsService
from guardchain.configurers.base import SecurityConfigurator
from guardchain.constants import REMEMBER_ME_COOKIE, REMEMBER_ME_PARAMETER, REMEMBER_ME_VALIDITY_SECONDS
from guardchain.logging_config import secret_redaction_filter
from guardchain.web.filters import RememberMeAuthenticationFilter
from guardchain.web.remember_me import RememberMeServices, TokenBasedRememberMeServices


class RememberMeConfigurator(SecurityConfigurator):
    """Shares :class:`RememberMeServices` and adds :class:`RememberMeAuthenticationFilter`.

    Token services need a user lookup: the one passed to
    ``user_details_service()`` or the ``UserDetailsService`` shared object
    (seeded by :meth:`HttpSecurityBuilder.from_user_details_service`).
    """

    def __init__(self) -> None:
        super().__init__()
        self._key: Optional[str] = None
        self._services: Optional[Any] = None
        self._user_details_service: Optional[Any] = None
        self._validity_seconds = REMEMBER_ME_VALIDITY_SECONDS
        self._cookie_name = REMEMBER_ME_COOKIE
        self._parameter = REMEMBER_ME_PARAMETER
        self._always_remember = False

    def key(self, key: str) -> RememberMeConfigurator:
        self._key = key
        return self

    def remember_me_services(self, services: Any) -> RememberMeConfigurator:
        self._services = services
        return self

    def user_details_service(self, service: Any) -> RememberMeConfigurator:
        self._user_details_service = service
        return self

    def token_validity_seconds(self, seconds: int) -> RememberMeConfigurator:
        self._validity_seconds = seconds
        return self

    def cookie_name(self, name: str) -> RememberMeConfigurator:
        self._cookie_name = name
        return self

    def parameter(self, name: str) -> RememberMeConfigurator:
        self._parameter = name
        return self

    def always_remember(self, always: bool = True) -> RememberMeConfigurator:
        self._always_remember = always
        return self

    def initialize(self, builder: Any) -> None:
        if self._key is not None:
            secret_redaction_filter.register(self._key)
        key = self._key or uuid.uuid4().hex
        self._key = key

        if self._services is None:
            uds = self._user_details_service or builder.shared_objects.require(
                UserDetailsService, type(self).__name__
            )
            self._services = TokenBasedRememberMeServices(
                key,
                uds,
                cookie_name=self._cookie_name,
                parameter=self._parameter,
                validity_seconds=self._validity_seconds,
                always_remember=self._always_remember,
            )
        builder.set_shared_object(RememberMeServices, self._services)
        builder.authentication_provider(RememberMeAuthenticationProvider(key))

    def configure(self, builder: Any) -> None:
        builder.add_filter(RememberMeAuthenticationFilter(builder.authentication_manager(), self._services))
