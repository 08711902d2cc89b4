"""HTTP Basic configurator."""

from __future__ import annotations

from typing import Any, Optional

from guardchain.configurers.base import SecurityConfigurator
from guardchain.constants import DEFAULT_REALM
from guardchain.web.entry_points import BasicAuthenticationEntryPoint
from guardchain.web.filters import BasicAuthenticationFilter
from guardchain.web.remember_me import RememberMeServices


class HttpBasicConfigurator(SecurityConfigurator):
    def __init__(self) -> None:
        super().__init__()
        self._realm_name = DEFAULT_REALM
        self._entry_point: Optional[Any] = None

    def realm_name(self, realm: str) -> HttpBasicConfigurator:
        self._realm_name = realm
        return self

    def authentication_entry_point(self, entry_point: Any) -> HttpBasicConfigurator:
        self._entry_point = entry_point
        return self

    def _resolved_entry_point(self) -> Any:
        if self._entry_point is None:
            self._entry_point = BasicAuthenticationEntryPoint(self._realm_name)
        return self._entry_point

    def initialize(self, builder: Any) -> None:
        builder.default_authentication_entry_point(self._resolved_entry_point())

    def configure(self, builder: Any) -> None:
        builder.add_filter(
            BasicAuthenticationFilter(
                builder.authentication_manager(),
                self._resolved_entry_point(),
                builder.get_shared_object(RememberMeServices),
            )
        )
