"""Request/response exchange objects threaded through a filter chain.

These are deliberately small: the transport layer (ASGI, WSGI, a test
harness) creates an :class:`HttpRequest` / :class:`HttpResponse` pair per
request and hands both to :meth:`DefaultSecurityFilterChain.invoke`.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class HttpSession:
    """Server-side session: an identifier plus an attribute bag."""

    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    attributes: Dict[str, Any] = field(default_factory=dict)
    invalidated: bool = False

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def pop(self, key: str, default: Any = None) -> Any:
        return self.attributes.pop(key, default)

    def invalidate(self) -> None:
        self.attributes.clear()
        self.invalidated = True


@dataclass
class HttpRequest:
    """Per-request data bag threaded through the filter chain.

    Attributes:
        method: HTTP method, upper-cased.
        path: Request path without the query string.
        query_string: Raw query string (no leading ``?``).
        headers: Header mapping; keys are normalised to lower case.
        params: Query/form parameters.
        cookies: Cookies sent by the client.
        scheme: ``"http"`` or ``"https"``.
        session: The current session, or ``None`` if none exists yet.
        request_id: Unique identifier for this request.
        start_time: High-resolution monotonic timestamp.
        attributes: Arbitrary key–value store for filters to attach data.
        security_context: Set by the context persistence filter.
    """

    path: str = "/"
    method: str = "GET"
    query_string: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    scheme: str = "http"
    session: Optional[HttpSession] = None
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    start_time: float = field(default_factory=time.monotonic)
    attributes: Dict[str, Any] = field(default_factory=dict)
    security_context: Any = None

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    @property
    def is_secure(self) -> bool:
        return self.scheme == "https"

    @property
    def url(self) -> str:
        """Path plus query string, as used by regex matchers and saved requests."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since request start."""
        return (time.monotonic() - self.start_time) * 1000.0

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)

    def get_session(self, create: bool = True) -> Optional[HttpSession]:
        """Return the current session, creating one if *create* is set."""
        if self.session is None or self.session.invalidated:
            self.session = HttpSession() if create else None
        return self.session


@dataclass
class HttpResponse:
    """Mutable response the filters write to.

    A response is *committed* once a filter redirected or sent an error;
    filters must not continue the chain after committing it.
    """

    status_code: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, Optional[str]] = field(default_factory=dict)
    body: str = ""
    committed: bool = False

    def set_header(self, name: str, value: str) -> None:
        self.headers[name.lower()] = value

    def set_cookie(self, name: str, value: str) -> None:
        self.cookies[name] = value

    def delete_cookie(self, name: str) -> None:
        """Instruct the client to drop *name* (stored as ``None``)."""
        self.cookies[name] = None

    def redirect(self, location: str, status_code: int = 302) -> None:
        self.status_code = status_code
        self.set_header("location", location)
        self.committed = True

    def send_error(self, status_code: int, message: str = "") -> None:
        self.status_code = status_code
        self.body = message
        self.committed = True
