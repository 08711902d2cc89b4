"""Session management filter."""

from __future__ import annotations

import logging
from typing import Any, Optional

from guardchain.errors import AuthenticationError
from guardchain.web.context import get_security_context

logger = logging.getLogger(__name__)


class SessionManagementFilter:
    """Applies the session strategy to non-interactive logins.

    Authentication established during this request by a mechanism that
    does not redirect (basic, remember-me, pre-authentication) has not yet
    been stored; this filter runs the session strategy for it.  It also
    redirects requests carrying a stale session id to
    ``invalid_session_url`` when one is configured (the transport layer
    puts the id the client sent in ``request.attributes["requested_session_id"]``).
    """

    def __init__(
        self,
        context_repository: Any,
        session_strategy: Any,
        invalid_session_url: Optional[str] = None,
    ) -> None:
        self.context_repository = context_repository
        self.session_strategy = session_strategy
        self.invalid_session_url = invalid_session_url

    async def process(self, request: Any, response: Any, next_filter: Any) -> Any:
        if not self.context_repository.contains_context(request):
            ctx = get_security_context(request)
            if ctx.is_authenticated:
                try:
                    self.session_strategy.on_authentication(ctx.authentication, request, response)
                except AuthenticationError as exc:
                    logger.warning("Session strategy rejected '%s': %s", ctx.authentication.name, exc)
                    ctx.authentication = None
                    response.send_error(401, str(exc))
                    return None
                self.context_repository.save_context(ctx, request, response)
            elif self._requested_session_invalid(request):
                logger.debug("Requested session id is invalid; redirecting to %s", self.invalid_session_url)
                response.redirect(self.invalid_session_url)
                return None
        return await next_filter(request, response)

    def _requested_session_invalid(self, request: Any) -> bool:
        if self.invalid_session_url is None:
            return False
        requested = request.attributes.get("requested_session_id")
        if not requested:
            return False
        session = request.get_session(create=False)
        return session is None or session.id != requested
