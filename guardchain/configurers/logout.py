"""Logout configurator."""

from __future__ import annotations

from typing import Any, List

from guardchain.configurers.base import SecurityConfigurator
from guardchain.constants import DEFAULT_LOGOUT_SUCCESS_URL, DEFAULT_LOGOUT_URL
from guardchain.web.filters import CookieClearingLogoutHandler, LogoutFilter, SecurityContextLogoutHandler
from guardchain.web.matchers import AntPathRequestMatcher
from guardchain.web.remember_me import RememberMeServices


class LogoutConfigurator(SecurityConfigurator):
    """Adds :class:`LogoutFilter`.

    Handlers run in this order: remember-me services (if another
    configurator shared them), custom handlers, cookie clearing, and
    finally context clearing / session invalidation.
    """

    def __init__(self) -> None:
        super().__init__()
        self._logout_url = DEFAULT_LOGOUT_URL
        self._success_url = DEFAULT_LOGOUT_SUCCESS_URL
        self._invalidate_session = True
        self._cookies: List[str] = []
        self._handlers: List[Any] = []

    def logout_url(self, url: str) -> LogoutConfigurator:
        self._logout_url = url
        return self

    def logout_success_url(self, url: str) -> LogoutConfigurator:
        self._success_url = url
        return self

    def invalidate_http_session(self, invalidate: bool) -> LogoutConfigurator:
        self._invalidate_session = invalidate
        return self

    def delete_cookies(self, *names: str) -> LogoutConfigurator:
        self._cookies.extend(names)
        return self

    def add_logout_handler(self, handler: Any) -> LogoutConfigurator:
        self._handlers.append(handler)
        return self

    def configure(self, builder: Any) -> None:
        handlers: List[Any] = []
        remember_me = builder.get_shared_object(RememberMeServices)
        if remember_me is not None:
            handlers.append(remember_me)
        handlers.extend(self._handlers)
        if self._cookies:
            handlers.append(CookieClearingLogoutHandler(self._cookies))
        handlers.append(SecurityContextLogoutHandler(self._invalidate_session))
        builder.add_filter(
            LogoutFilter(AntPathRequestMatcher(self._logout_url), handlers, self._success_url)
        )
