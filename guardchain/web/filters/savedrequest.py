"""Restores a saved request after authentication."""

from __future__ import annotations

from typing import Any


class RequestCacheAwareFilter:
    """If the request matches the saved one, restore its parameters.

    The saved request is exposed as ``request.attributes["saved_request"]``
    and removed from the cache.
    """

    def __init__(self, request_cache: Any) -> None:
        self.request_cache = request_cache

    async def process(self, request: Any, response: Any, next_filter: Any) -> Any:
        saved = self.request_cache.get_matching_request(request)
        if saved is not None:
            request.attributes["saved_request"] = saved
            for name, value in saved.params.items():
                request.params.setdefault(name, value)
        return await next_filter(request, response)
