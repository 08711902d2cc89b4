"""Exception translation and URL authorization filters.

Slot order at the tail of every chain:
**... → SessionManagement → EXCEPTION TRANSLATION → AUTHORIZATION**.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from guardchain.errors import AccessDeniedError, AuthenticationError
from guardchain.web.authz import AccessPolicyEngine, PolicyDecision
from guardchain.web.context import get_authentication, get_security_context
from guardchain.web.entry_points import DefaultAccessDeniedHandler

logger = logging.getLogger(__name__)


class ExceptionTranslationFilter:
    """Turns authentication/authorization errors raised downstream into responses.

    * :class:`AuthenticationError` → save the request, start authentication
      via the entry point.
    * :class:`AccessDeniedError` for an anonymous user → same as above.
    * :class:`AccessDeniedError` otherwise → the access-denied handler.
    """

    def __init__(
        self,
        entry_point: Any,
        access_denied_handler: Optional[Any] = None,
        request_cache: Optional[Any] = None,
    ) -> None:
        self.entry_point = entry_point
        self.access_denied_handler = access_denied_handler or DefaultAccessDeniedHandler()
        self.request_cache = request_cache

    async def process(self, request: Any, response: Any, next_filter: Any) -> Any:
        try:
            return await next_filter(request, response)
        except AuthenticationError as exc:
            self._start_authentication(request, response, exc)
        except AccessDeniedError as exc:
            auth = get_authentication(request)
            if auth is None or auth.is_anonymous:
                self._start_authentication(
                    request,
                    response,
                    AuthenticationError("Full authentication is required to access this resource"),
                )
            else:
                logger.debug("Access denied for '%s'", auth.name)
                self.access_denied_handler.handle(request, response, exc)
        return None

    def _start_authentication(self, request: Any, response: Any, error: AuthenticationError) -> None:
        get_security_context(request).authentication = None
        if self.request_cache is not None:
            self.request_cache.save_request(request, response)
        logger.debug("Starting authentication for %s: %s", request.path, error)
        self.entry_point.commence(request, response, error)


class AuthorizationFilter:
    """Enforces URL access rules via an :class:`AccessPolicyEngine`."""

    def __init__(self, engine: AccessPolicyEngine) -> None:
        self.engine = engine

    async def process(self, request: Any, response: Any, next_filter: Any) -> Any:
        auth = get_authentication(request)
        decision = self.engine.evaluate(auth, request)

        if decision == PolicyDecision.DENY:
            subject = auth.name if auth else "unknown"
            logger.warning(
                "Authorization DENIED: user=%s, path=%s, authorities=%s",
                subject,
                request.path,
                list(auth.authorities) if auth else [],
            )
            raise AccessDeniedError(f"Access denied for '{request.path}'")

        return await next_filter(request, response)
