"""Request caches: remember the request that triggered authentication."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from guardchain.constants import SAVED_REQUEST_SESSION_KEY


@dataclass(frozen=True)
class SavedRequest:
    method: str
    path: str
    query_string: str = ""
    params: Dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    @property
    def redirect_url(self) -> str:
        return f"{self.path}?{self.query_string}" if self.query_string else self.path

    def matches(self, request: Any) -> bool:
        return request.method == self.method and request.path == self.path and (
            request.query_string == self.query_string
        )


class RequestCache(Protocol):
    def save_request(self, request: Any, response: Any) -> None: ...

    def get_request(self, request: Any) -> Optional[SavedRequest]: ...

    def get_matching_request(self, request: Any) -> Optional[SavedRequest]: ...

    def remove_request(self, request: Any) -> None: ...


class HttpSessionRequestCache:
    """Keeps the saved request in the session.  Only ``GET`` requests are saved."""

    def __init__(self, session_key: str = SAVED_REQUEST_SESSION_KEY) -> None:
        self.session_key = session_key

    def save_request(self, request: Any, response: Any) -> None:
        if request.method != "GET":
            return
        saved = SavedRequest(request.method, request.path, request.query_string, dict(request.params))
        request.get_session(create=True).set(self.session_key, saved)

    def get_request(self, request: Any) -> Optional[SavedRequest]:
        session = request.get_session(create=False)
        return session.get(self.session_key) if session is not None else None

    def get_matching_request(self, request: Any) -> Optional[SavedRequest]:
        saved = self.get_request(request)
        if saved is None or not saved.matches(request):
            return None
        self.remove_request(request)
        return saved

    def remove_request(self, request: Any) -> None:
        session = request.get_session(create=False)
        if session is not None:
            session.pop(self.session_key)


class NullRequestCache:
    def save_request(self, request: Any, response: Any) -> None:
        return None

    def get_request(self, request: Any) -> Optional[SavedRequest]:
        return None

    def get_matching_request(self, request: Any) -> Optional[SavedRequest]:
        return None

    def remove_request(self, request: Any) -> None:
        return None
