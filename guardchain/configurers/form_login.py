"""Form login configurator."""

from __future__ import annotations

from typing import Any, Optional

from guardchain.configurers.base import SecurityConfigurator
from guardchain.configurers.url_authorization import UrlAuthorizationConfigurator
from guardchain.constants import (
    DEFAULT_LOGIN_PAGE,
    DEFAULT_PASSWORD_PARAMETER,
    DEFAULT_USERNAME_PARAMETER,
)
from guardchain.web.entry_points import LoginUrlAuthenticationEntryPoint
from guardchain.web.filters import UsernamePasswordAuthenticationFilter
from guardchain.web.matchers import AntPathRequestMatcher
from guardchain.web.remember_me import RememberMeServices
from guardchain.web.savedrequest import RequestCache
from guardchain.web.session import SessionAuthenticationStrategy


class FormLoginConfigurator(SecurityConfigurator):
    """Adds :class:`UsernamePasswordAuthenticationFilter`.

    During initialization it offers a login-page redirect as the builder's
    default entry point and, with ``permit_all()``, opens the login URLs
    in the URL authorization rules.
    """

    def __init__(self) -> None:
        super().__init__()
        self._login_page = DEFAULT_LOGIN_PAGE
        self._processing_url: Optional[str] = None
        self._failure_url: Optional[str] = None
        self._success_url = "/"
        self._always_use_default_target = False
        self._username_parameter = DEFAULT_USERNAME_PARAMETER
        self._password_parameter = DEFAULT_PASSWORD_PARAMETER
        self._permit_all = False

    def login_page(self, url: str) -> FormLoginConfigurator:
        self._login_page = url
        return self

    def login_processing_url(self, url: str) -> FormLoginConfigurator:
        self._processing_url = url
        return self

    def failure_url(self, url: str) -> FormLoginConfigurator:
        self._failure_url = url
        return self

    def default_success_url(self, url: str, always_use: bool = False) -> FormLoginConfigurator:
        self._success_url = url
        self._always_use_default_target = always_use
        return self

    def username_parameter(self, name: str) -> FormLoginConfigurator:
        self._username_parameter = name
        return self

    def password_parameter(self, name: str) -> FormLoginConfigurator:
        self._password_parameter = name
        return self

    def permit_all(self, permit: bool = True) -> FormLoginConfigurator:
        self._permit_all = permit
        return self

    @property
    def processing_url(self) -> str:
        return self._processing_url or self._login_page

    @property
    def effective_failure_url(self) -> str:
        return self._failure_url or f"{self._login_page}?error"

    def initialize(self, builder: Any) -> None:
        builder.default_authentication_entry_point(LoginUrlAuthenticationEntryPoint(self._login_page))
        if self._permit_all:
            authz = builder.get_configurator(UrlAuthorizationConfigurator)
            if authz is not None:
                failure_path = self.effective_failure_url.split("?", 1)[0]
                authz.permit_first(*dict.fromkeys([self._login_page, self.processing_url, failure_path]))

    def configure(self, builder: Any) -> None:
        builder.add_filter(
            UsernamePasswordAuthenticationFilter(
                builder.authentication_manager(),
                AntPathRequestMatcher(self.processing_url, "POST"),
                success_url=self._success_url,
                failure_url=self.effective_failure_url,
                username_parameter=self._username_parameter,
                password_parameter=self._password_parameter,
                always_use_default_target=self._always_use_default_target,
                session_strategy=builder.get_shared_object(SessionAuthenticationStrategy),
                remember_me_services=builder.get_shared_object(RememberMeServices),
                request_cache=builder.get_shared_object(RequestCache),
            )
        )
