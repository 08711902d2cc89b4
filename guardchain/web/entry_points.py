"""Authentication entry points and access-denied handlers.

An entry point starts authentication when an unauthenticated request hits
a protected resource; an access-denied handler answers authenticated
requests that lack permission.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from guardchain.constants import DEFAULT_REALM

logger = logging.getLogger(__name__)


class AuthenticationEntryPoint(Protocol):
    def commence(self, request: Any, response: Any, error: Optional[Exception]) -> None: ...


class AccessDeniedHandler(Protocol):
    def handle(self, request: Any, response: Any, error: Exception) -> None: ...


class Http403ForbiddenEntryPoint:
    """Rejects with 403.  The default when no mechanism supplies an entry point."""

    def commence(self, request: Any, response: Any, error: Optional[Exception]) -> None:
        logger.debug("Pre-authenticated entry point called. Rejecting access")
        response.send_error(403, "Access Denied")


class LoginUrlAuthenticationEntryPoint:
    """Redirects to a login page."""

    def __init__(self, login_url: str, force_https: bool = False) -> None:
        self.login_url = login_url
        self.force_https = force_https

    def commence(self, request: Any, response: Any, error: Optional[Exception]) -> None:
        target = self.login_url
        if self.force_https and not request.is_secure:
            host = request.header("host", "localhost")
            target = f"https://{host}{self.login_url}"
        response.redirect(target)


class BasicAuthenticationEntryPoint:
    """Sends a ``WWW-Authenticate: Basic`` challenge."""

    def __init__(self, realm_name: str = DEFAULT_REALM) -> None:
        self.realm_name = realm_name

    def commence(self, request: Any, response: Any, error: Optional[Exception]) -> None:
        response.set_header("www-authenticate", f'Basic realm="{self.realm_name}"')
        response.send_error(401, str(error) if error else "Unauthorized")


class DefaultAccessDeniedHandler:
    """403, or a redirect to *error_page* when one is configured."""

    def __init__(self, error_page: Optional[str] = None) -> None:
        if error_page is not None and not error_page.startswith("/"):
            raise ValueError("error_page must begin with '/'")
        self.error_page = error_page

    def handle(self, request: Any, response: Any, error: Exception) -> None:
        if self.error_page is None:
            response.send_error(403, str(error))
            return
        request.attributes["access_denied_error"] = error
        response.redirect(self.error_page)
