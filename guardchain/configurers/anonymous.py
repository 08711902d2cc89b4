"""Anonymous authentication configurator."""

from __future__ import annotations

import uuid
from typing import Any, Iterable

from guardchain.authentication import AnonymousAuthenticationProvider
from guardchain.configurers.base import SecurityConfigurator
from guardchain.constants import ANONYMOUS_PRINCIPAL, ANONYMOUS_ROLE
from guardchain.logging_config import secret_redaction_filter
from guardchain.web.filters import AnonymousAuthenticationFilter


class AnonymousConfigurator(SecurityConfigurator):
    """Registers the anonymous provider and adds :class:`AnonymousAuthenticationFilter`.

    The filter and provider share a key; a random one is generated per
    builder unless ``key()`` is called.  Only a supplied key is registered
    for log redaction.
    """

    def __init__(self) -> None:
        super().__init__()
        self._key = uuid.uuid4().hex
        self._key_supplied = False
        self._principal = ANONYMOUS_PRINCIPAL
        self._authorities = (ANONYMOUS_ROLE,)

    def key(self, key: str) -> AnonymousConfigurator:
        self._key = key
        self._key_supplied = True
        return self

    def principal(self, principal: str) -> AnonymousConfigurator:
        self._principal = principal
        return self

    def authorities(self, authorities: Iterable[str]) -> AnonymousConfigurator:
        self._authorities = tuple(authorities)
        return self

    def initialize(self, builder: Any) -> None:
        if self._key_supplied:
            secret_redaction_filter.register(self._key)
        builder.authentication_provider(AnonymousAuthenticationProvider(self._key))

    def configure(self, builder: Any) -> None:
        builder.add_filter(AnonymousAuthenticationFilter(self._key, self._principal, self._authorities))
