"""Channel security: redirect requests onto the required scheme."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List, Sequence, Tuple

logger = logging.getLogger(__name__)


class ChannelRequirement(Enum):
    REQUIRES_SECURE = "https"
    REQUIRES_INSECURE = "http"
    ANY = "any"


class ChannelProcessingFilter:
    """Redirects to ``https``/``http`` when a matching rule demands it.

    Rules are ``(matcher, requirement)`` pairs; the first matching rule
    decides.  Requests matching no rule pass through.
    """

    def __init__(self, rules: Sequence[Tuple[Any, ChannelRequirement]]) -> None:
        self.rules: List[Tuple[Any, ChannelRequirement]] = list(rules)

    async def process(self, request: Any, response: Any, next_filter: Any) -> Any:
        for matcher, requirement in self.rules:
            if not matcher.matches(request):
                continue
            if requirement is ChannelRequirement.ANY or request.scheme == requirement.value:
                break
            host = request.header("host", "localhost")
            target = f"{requirement.value}://{host}{request.url}"
            logger.debug("Channel requirement %s not met; redirecting to %s", requirement.name, target)
            response.redirect(target)
            return None
        return await next_filter(request, response)
