"""Per-request security context and its persistence between requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from guardchain.authentication import Authentication
from guardchain.constants import SECURITY_CONTEXT_SESSION_KEY

logger = logging.getLogger(__name__)


@dataclass
class SecurityContext:
    """Holds the current :class:`Authentication` (or ``None``)."""

    authentication: Optional[Authentication] = None

    @property
    def is_authenticated(self) -> bool:
        auth = self.authentication
        return auth is not None and auth.authenticated and not auth.is_anonymous


def get_security_context(request: Any) -> SecurityContext:
    """Return the request's context, attaching an empty one if missing."""
    ctx = getattr(request, "security_context", None)
    if ctx is None:
        ctx = SecurityContext()
        request.security_context = ctx
    return ctx


def get_authentication(request: Any) -> Optional[Authentication]:
    return get_security_context(request).authentication


class SecurityContextRepository(Protocol):
    def load_context(self, request: Any) -> SecurityContext: ...

    def save_context(self, context: SecurityContext, request: Any, response: Any) -> None: ...

    def contains_context(self, request: Any) -> bool: ...


class HttpSessionSecurityContextRepository:
    """Stores the context in the request's session.

    Anonymous and empty contexts are never written; an existing session
    entry is removed instead.
    """

    def __init__(self, session_key: str = SECURITY_CONTEXT_SESSION_KEY, allow_session_creation: bool = True) -> None:
        self.session_key = session_key
        self.allow_session_creation = allow_session_creation

    def load_context(self, request: Any) -> SecurityContext:
        session = request.get_session(create=False)
        if session is None:
            return SecurityContext()
        stored = session.get(self.session_key)
        if isinstance(stored, SecurityContext):
            return SecurityContext(stored.authentication)
        return SecurityContext()

    def save_context(self, context: SecurityContext, request: Any, response: Any) -> None:
        if not context.is_authenticated:
            session = request.get_session(create=False)
            if session is not None:
                session.pop(self.session_key)
            return
        session = request.get_session(create=self.allow_session_creation)
        if session is None:
            logger.debug("No session and creation disallowed; context not stored")
            return
        session.set(self.session_key, SecurityContext(context.authentication))

    def contains_context(self, request: Any) -> bool:
        session = request.get_session(create=False)
        return session is not None and session.get(self.session_key) is not None


class NullSecurityContextRepository:
    """Stateless repository: every request starts with an empty context."""

    def load_context(self, request: Any) -> SecurityContext:
        return SecurityContext()

    def save_context(self, context: SecurityContext, request: Any, response: Any) -> None:
        return None

    def contains_context(self, request: Any) -> bool:
        return False
