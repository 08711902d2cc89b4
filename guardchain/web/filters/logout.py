"""Logout filter and handlers."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Protocol

from guardchain.authentication import Authentication
from guardchain.web.context import get_authentication, get_security_context

logger = logging.getLogger(__name__)


class LogoutHandler(Protocol):
    def logout(self, request: Any, response: Any, authentication: Optional[Authentication]) -> None: ...


class SecurityContextLogoutHandler:
    """Clears the context and, optionally, invalidates the session."""

    def __init__(self, invalidate_session: bool = True) -> None:
        self.invalidate_session = invalidate_session

    def logout(self, request: Any, response: Any, authentication: Optional[Authentication]) -> None:
        if self.invalidate_session:
            session = request.get_session(create=False)
            if session is not None:
                session.invalidate()
        get_security_context(request).authentication = None


class CookieClearingLogoutHandler:
    def __init__(self, cookie_names: Iterable[str]) -> None:
        self.cookie_names = list(cookie_names)

    def logout(self, request: Any, response: Any, authentication: Optional[Authentication]) -> None:
        for name in self.cookie_names:
            response.delete_cookie(name)


class LogoutFilter:
    """Runs the handlers and redirects when the logout URL is requested."""

    def __init__(self, logout_matcher: Any, handlers: Iterable[Any], success_url: str) -> None:
        self.logout_matcher = logout_matcher
        self.handlers: List[Any] = list(handlers)
        self.success_url = success_url

    async def process(self, request: Any, response: Any, next_filter: Any) -> Any:
        if not self.logout_matcher.matches(request):
            return await next_filter(request, response)

        authentication = get_authentication(request)
        logger.debug("Logging out '%s'", authentication.name if authentication else None)
        for handler in self.handlers:
            handler.logout(request, response, authentication)
        response.redirect(self.success_url)
        return None
