"""Exception handling configurator."""

from __future__ import annotations

from typing import Any, Optional

from guardchain.configurers.base import SecurityConfigurator
from guardchain.web.entry_points import DefaultAccessDeniedHandler
from guardchain.web.filters import ExceptionTranslationFilter
from guardchain.web.savedrequest import HttpSessionRequestCache, RequestCache


class ExceptionHandlingConfigurator(SecurityConfigurator):
    """Adds :class:`ExceptionTranslationFilter`.

    The entry point defaults to the builder's (which authentication
    mechanisms such as form login set during initialization).
    """

    def __init__(self) -> None:
        super().__init__()
        self._entry_point: Optional[Any] = None
        self._access_denied_handler: Optional[Any] = None

    def authentication_entry_point(self, entry_point: Any) -> ExceptionHandlingConfigurator:
        self._entry_point = entry_point
        return self

    def access_denied_handler(self, handler: Any) -> ExceptionHandlingConfigurator:
        self._access_denied_handler = handler
        return self

    def access_denied_page(self, error_page: str) -> ExceptionHandlingConfigurator:
        return self.access_denied_handler(DefaultAccessDeniedHandler(error_page))

    def configure(self, builder: Any) -> None:
        entry_point = self._entry_point or builder.authentication_entry_point
        request_cache = builder.get_shared_object(RequestCache)
        if request_cache is None:
            request_cache = HttpSessionRequestCache()
        builder.add_filter(
            ExceptionTranslationFilter(entry_point, self._access_denied_handler, request_cache)
        )
