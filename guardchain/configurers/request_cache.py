"""Request cache configurator."""

from __future__ import annotations

from typing import Any, Optional

from guardchain.configurers.base import SecurityConfigurator
from guardchain.configurers.session_management import is_stateless
from guardchain.web.filters import RequestCacheAwareFilter
from guardchain.web.savedrequest import HttpSessionRequestCache, NullRequestCache, RequestCache


class RequestCacheConfigurator(SecurityConfigurator):
    def __init__(self) -> None:
        super().__init__()
        self._cache: Optional[Any] = None

    def request_cache(self, cache: Any) -> RequestCacheConfigurator:
        self._cache = cache
        return self

    def initialize(self, builder: Any) -> None:
        if self._cache is not None:
            builder.set_shared_object(RequestCache, self._cache)
        elif is_stateless(builder):
            builder.default_shared_object(RequestCache, NullRequestCache())
        else:
            builder.default_shared_object(RequestCache, HttpSessionRequestCache())

    def configure(self, builder: Any) -> None:
        cache = builder.shared_objects.require(RequestCache, type(self).__name__)
        builder.add_filter(RequestCacheAwareFilter(cache))
