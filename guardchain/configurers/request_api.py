"""Request API integration configurator."""

from __future__ import annotations

from typing import Any

from guardchain.configurers.base import SecurityConfigurator
from guardchain.web.filters import SecurityContextHolderAwareRequestFilter


class RequestApiConfigurator(SecurityConfigurator):
    """Adds :class:`SecurityContextHolderAwareRequestFilter`."""

    def configure(self, builder: Any) -> None:
        builder.add_filter(SecurityContextHolderAwareRequestFilter())
