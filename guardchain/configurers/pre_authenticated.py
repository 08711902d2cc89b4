"""Container/proxy pre-authentication configurator."""

from __future__ import annotations

from typing import Any, Optional

from guardchain.authentication import PreAuthenticatedAuthenticationProvider, UserDetailsService
from guardchain.configurers.base import SecurityConfigurator
from guardchain.constants import DEFAULT_PRINCIPAL_HEADER
from guardchain.web.filters import PreAuthenticatedProcessingFilter


class PreAuthenticatedConfigurator(SecurityConfigurator):
    """Trusts a principal header set by the container or a fronting proxy.

    Only enable this behind infrastructure that strips the header from
    client requests.
    """

    def __init__(self) -> None:
        super().__init__()
        self._principal_header = DEFAULT_PRINCIPAL_HEADER
        self._roles_header: Optional[str] = None
        self._mappable_roles: tuple = ()
        self._user_details_service: Optional[Any] = None

    def principal_header(self, header: str) -> PreAuthenticatedConfigurator:
        self._principal_header = header
        return self

    def mappable_roles(self, *roles: str, header: str = "x-remote-roles") -> PreAuthenticatedConfigurator:
        self._roles_header = header
        self._mappable_roles = roles
        return self

    def user_details_service(self, service: Any) -> PreAuthenticatedConfigurator:
        self._user_details_service = service
        return self

    def initialize(self, builder: Any) -> None:
        uds = self._user_details_service or builder.get_shared_object(UserDetailsService)
        builder.authentication_provider(PreAuthenticatedAuthenticationProvider(uds))

    def configure(self, builder: Any) -> None:
        builder.add_filter(
            PreAuthenticatedProcessingFilter(
                builder.authentication_manager(),
                principal_header=self._principal_header,
                roles_header=self._roles_header,
                mappable_roles=self._mappable_roles,
            )
        )
