"""Filters that load, save and expose the request's security context."""

from __future__ import annotations

import logging
from typing import Any

from guardchain.web.authz import role_authority
from guardchain.web.context import get_authentication

logger = logging.getLogger(__name__)

_APPLIED = "__security_context_persistence_applied"


class SecurityContextPersistenceFilter:
    """Loads the context before the chain runs and saves it afterwards."""

    def __init__(self, repository: Any) -> None:
        self.repository = repository

    async def process(self, request: Any, response: Any, next_filter: Any) -> Any:
        if request.attributes.get(_APPLIED):
            return await next_filter(request, response)
        request.attributes[_APPLIED] = True

        request.security_context = self.repository.load_context(request)
        try:
            return await next_filter(request, response)
        finally:
            self.repository.save_context(request.security_context, request, response)


class SecurityContextHolderAwareRequestFilter:
    """Exposes the current user to request handlers.

    Sets ``request.attributes["remote_user"]`` (user name or ``None``) and
    ``request.attributes["is_user_in_role"]`` (``role -> bool``).
    """

    async def process(self, request: Any, response: Any, next_filter: Any) -> Any:
        def is_user_in_role(role: str) -> bool:
            auth = get_authentication(request)
            return auth is not None and not auth.is_anonymous and auth.has_authority(role_authority(role))

        auth = get_authentication(request)
        request.attributes["remote_user"] = auth.name if auth and not auth.is_anonymous else None
        request.attributes["is_user_in_role"] = is_user_in_role
        return await next_filter(request, response)
