"""Session authentication strategies (session fixation protection)."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from guardchain.authentication import Authentication
from guardchain.web.exchange import HttpSession

logger = logging.getLogger(__name__)


class SessionAuthenticationStrategy(Protocol):
    def on_authentication(self, authentication: Authentication, request: Any, response: Any) -> None: ...


class NullAuthenticatedSessionStrategy:
    def on_authentication(self, authentication: Authentication, request: Any, response: Any) -> None:
        return None


class SessionFixationProtectionStrategy:
    """Issues a new session id on authentication.

    With ``migrate_attributes`` the old session's attributes are carried
    over; otherwise the new session starts empty.
    """

    def __init__(self, migrate_attributes: bool = True) -> None:
        self.migrate_attributes = migrate_attributes

    def on_authentication(self, authentication: Authentication, request: Any, response: Any) -> None:
        old = request.get_session(create=False)
        if old is None:
            return
        attributes = dict(old.attributes) if self.migrate_attributes else {}
        old.invalidate()
        request.session = HttpSession(attributes=attributes)
        logger.debug(
            "Session fixation protection: replaced session for '%s'", authentication.name
        )


_STRATEGIES = {
    "migrate": lambda: SessionFixationProtectionStrategy(migrate_attributes=True),
    "new": lambda: SessionFixationProtectionStrategy(migrate_attributes=False),
    "none": NullAuthenticatedSessionStrategy,
}


def session_strategy_for(name: str) -> SessionAuthenticationStrategy:
    """Create the strategy named ``"migrate"``, ``"new"`` or ``"none"``."""
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown session fixation strategy {name!r} (expected one of {sorted(_STRATEGIES)})"
        ) from None
