"""Token-based remember-me services.

The cookie carries ``base64(username:expiry:signature)`` where the
signature is an HMAC over the username, expiry and stored password, so a
password change invalidates outstanding cookies.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import time
from typing import Any, Optional, Protocol

from guardchain.authentication import (
    Authentication,
    TokenKind,
    UserDetailsService,
    key_digest,
)
from guardchain.constants import (
    REMEMBER_ME_COOKIE,
    REMEMBER_ME_PARAMETER,
    REMEMBER_ME_VALIDITY_SECONDS,
)

logger = logging.getLogger(__name__)

_TRUTHY = frozenset({"true", "on", "yes", "1"})


class RememberMeServices(Protocol):
    def auto_login(self, request: Any, response: Any) -> Optional[Authentication]: ...

    def login_success(self, request: Any, response: Any, authentication: Authentication) -> None: ...

    def login_fail(self, request: Any, response: Any) -> None: ...

    def logout(self, request: Any, response: Any, authentication: Optional[Authentication]) -> None: ...


class TokenBasedRememberMeServices:
    def __init__(
        self,
        key: str,
        user_details_service: UserDetailsService,
        cookie_name: str = REMEMBER_ME_COOKIE,
        parameter: str = REMEMBER_ME_PARAMETER,
        validity_seconds: int = REMEMBER_ME_VALIDITY_SECONDS,
        always_remember: bool = False,
    ) -> None:
        if not key:
            raise ValueError("Remember-me key must not be empty")
        self._key = key
        self.user_details_service = user_details_service
        self.cookie_name = cookie_name
        self.parameter = parameter
        self.validity_seconds = validity_seconds
        self.always_remember = always_remember

    def _signature(self, username: str, expiry: int, password: str) -> str:
        message = f"{username}:{expiry}:{password}".encode("utf-8")
        return hmac.new(self._key.encode("utf-8"), message, hashlib.sha256).hexdigest()

    def make_cookie_value(self, username: str, password: str, expiry: int) -> str:
        raw = f"{username}:{expiry}:{self._signature(username, expiry, password)}"
        return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")

    def _decode(self, value: str) -> Optional[tuple]:
        try:
            raw = base64.urlsafe_b64decode(value.encode("ascii")).decode("utf-8")
        except (binascii.Error, UnicodeError, ValueError):
            return None
        parts = raw.rsplit(":", 2)
        if len(parts) != 3 or not parts[1].isdigit():
            return None
        return parts[0], int(parts[1]), parts[2]

    def auto_login(self, request: Any, response: Any) -> Optional[Authentication]:
        value = request.cookies.get(self.cookie_name)
        if not value:
            return None
        decoded = self._decode(value)
        if decoded is None:
            logger.debug("Malformed remember-me cookie")
            response.delete_cookie(self.cookie_name)
            return None
        username, expiry, signature = decoded
        if expiry < time.time():
            logger.debug("Remember-me cookie for '%s' expired", username)
            response.delete_cookie(self.cookie_name)
            return None
        user = self.user_details_service.load_user_by_username(username)
        expected = self._signature(username, expiry, user.password) if user else ""
        if user is None or not hmac.compare_digest(expected, signature):
            logger.warning("Invalid remember-me cookie presented for '%s'", username)
            response.delete_cookie(self.cookie_name)
            return None
        return Authentication.granted(
            user, user.authorities, kind=TokenKind.REMEMBER_ME, key_hash=key_digest(self._key)
        )

    def login_success(self, request: Any, response: Any, authentication: Authentication) -> None:
        requested = str(request.params.get(self.parameter, "")).lower() in _TRUTHY
        if not (self.always_remember or requested):
            return
        principal = authentication.principal
        username = authentication.name
        password = getattr(principal, "password", None)
        if password is None:
            user = self.user_details_service.load_user_by_username(username)
            password = user.password if user else ""
        expiry = int(time.time()) + self.validity_seconds
        response.set_cookie(self.cookie_name, self.make_cookie_value(username, password, expiry))

    def login_fail(self, request: Any, response: Any) -> None:
        response.delete_cookie(self.cookie_name)

    def logout(self, request: Any, response: Any, authentication: Optional[Authentication]) -> None:
        response.delete_cookie(self.cookie_name)
