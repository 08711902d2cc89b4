"""Authentication collaborators: tokens, providers and the provider manager.

The chain builder never checks credentials itself.  It assembles an
:class:`AuthenticationRegistry` that configurators add providers to, and
resolves it into a :class:`ProviderManager` when the build completes.

Provider contract::

    class MyProvider:
        def supports(self, authentication: Authentication) -> bool: ...
        async def authenticate(self, authentication: Authentication) -> Optional[Authentication]:
            ...  # None = "not for me", raise AuthenticationError = "rejected"
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from guardchain.errors import (
    AuthenticationError,
    BadCredentialsError,
    DisabledAccountError,
    ProviderNotFoundError,
)

logger = logging.getLogger(__name__)


class TokenKind(Enum):
    """What kind of evidence an :class:`Authentication` carries."""

    USERNAME_PASSWORD = "username_password"
    ANONYMOUS = "anonymous"
    REMEMBER_ME = "remember_me"
    PRE_AUTHENTICATED = "pre_authenticated"


def key_digest(key: str) -> str:
    """Digest identifying tokens minted with *key* without storing the key."""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]


@dataclass(frozen=True)
class UserDetails:
    """A user record as returned by a :class:`UserDetailsService`."""

    username: str
    password: str = ""
    authorities: Tuple[str, ...] = ()
    enabled: bool = True


@dataclass(frozen=True)
class Authentication:
    """Authentication request or result.

    Before authentication it carries the presented evidence
    (``authenticated=False``); providers return a new instance with
    ``authenticated=True`` and the granted authorities.
    """

    principal: Any
    credentials: Any = None
    authorities: Tuple[str, ...] = ()
    authenticated: bool = False
    kind: TokenKind = TokenKind.USERNAME_PASSWORD
    key_hash: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def name(self) -> str:
        if isinstance(self.principal, UserDetails):
            return self.principal.username
        return str(self.principal)

    @property
    def is_anonymous(self) -> bool:
        return self.kind is TokenKind.ANONYMOUS

    def has_authority(self, authority: str) -> bool:
        return authority in self.authorities

    def erase_credentials(self) -> Authentication:
        return replace(self, credentials=None)

    @classmethod
    def unauthenticated(
        cls,
        principal: Any,
        credentials: Any = None,
        kind: TokenKind = TokenKind.USERNAME_PASSWORD,
    ) -> Authentication:
        return cls(principal=principal, credentials=credentials, kind=kind)

    @classmethod
    def granted(
        cls,
        principal: Any,
        authorities: Iterable[str],
        kind: TokenKind = TokenKind.USERNAME_PASSWORD,
        key_hash: Optional[str] = None,
    ) -> Authentication:
        return cls(
            principal=principal,
            authorities=tuple(authorities),
            authenticated=True,
            kind=kind,
            key_hash=key_hash,
        )


# ── Protocols ────────────────────────────────────────────────────────────


class UserDetailsService(Protocol):
    """Looks up users by name.  Returns ``None`` for unknown users."""

    def load_user_by_username(self, username: str) -> Optional[UserDetails]: ...


class AuthenticationProvider(Protocol):
    def supports(self, authentication: Authentication) -> bool: ...

    async def authenticate(self, authentication: Authentication) -> Optional[Authentication]: ...


class AuthenticationManager(Protocol):
    async def authenticate(self, authentication: Authentication) -> Authentication: ...


# ── User lookup ──────────────────────────────────────────────────────────


class InMemoryUserDetailsService:
    """Dictionary-backed :class:`UserDetailsService`."""

    def __init__(self, users: Iterable[UserDetails] = ()) -> None:
        self._users: Dict[str, UserDetails] = {}
        for user in users:
            self.create_user(user)

    def create_user(self, user: UserDetails) -> None:
        self._users[user.username.lower()] = user

    def user_exists(self, username: str) -> bool:
        return username.lower() in self._users

    def load_user_by_username(self, username: str) -> Optional[UserDetails]:
        return self._users.get(username.lower())

    def __len__(self) -> int:
        return len(self._users)


# ── Individual providers ────────────────────────────────────────────────


def _plain_matches(raw: str, stored: str) -> bool:
    return hmac.compare_digest(raw.encode("utf-8"), stored.encode("utf-8"))


class DaoAuthenticationProvider:
    """Checks username/password tokens against a :class:`UserDetailsService`.

    Parameters
    ----------
    user_details_service:
        Where users are looked up.
    password_matcher:
        ``(raw, stored) -> bool``.  Defaults to a constant-time comparison
        of plain values; pass a hashing matcher for encoded passwords.
    """

    def __init__(
        self,
        user_details_service: Optional[UserDetailsService] = None,
        password_matcher: Optional[Callable[[str, str], bool]] = None,
    ) -> None:
        self.user_details_service = user_details_service
        self._matches = password_matcher or _plain_matches

    def supports(self, authentication: Authentication) -> bool:
        return authentication.kind is TokenKind.USERNAME_PASSWORD

    async def authenticate(self, authentication: Authentication) -> Optional[Authentication]:
        if self.user_details_service is None:
            raise AuthenticationError("DaoAuthenticationProvider has no user details service")
        username = str(authentication.principal or "")
        user = self.user_details_service.load_user_by_username(username)
        if user is None:
            logger.debug("Unknown user '%s'", username)
            raise BadCredentialsError("Bad credentials")
        if not user.enabled:
            raise DisabledAccountError(f"User '{username}' is disabled")
        if not self._matches(str(authentication.credentials or ""), user.password):
            raise BadCredentialsError("Bad credentials")
        return Authentication.granted(user, user.authorities)


class _KeyedTokenProvider:
    """Accepts tokens of one kind that were minted with the shared key."""

    token_kind: TokenKind

    def __init__(self, key: str) -> None:
        if not key:
            raise ValueError(f"{type(self).__name__} requires a non-empty key")
        self._key_hash = key_digest(key)

    def supports(self, authentication: Authentication) -> bool:
        return authentication.kind is self.token_kind

    async def authenticate(self, authentication: Authentication) -> Optional[Authentication]:
        if authentication.key_hash is None or not hmac.compare_digest(
            authentication.key_hash, self._key_hash
        ):
            raise BadCredentialsError(
                f"The presented {self.token_kind.value} token was not issued with the expected key"
            )
        return authentication


class AnonymousAuthenticationProvider(_KeyedTokenProvider):
    token_kind = TokenKind.ANONYMOUS


class RememberMeAuthenticationProvider(_KeyedTokenProvider):
    token_kind = TokenKind.REMEMBER_ME


class PreAuthenticatedAuthenticationProvider:
    """Trusts principals established upstream (proxy or container).

    With a *user_details_service* the principal must exist and its
    authorities are used; otherwise the token's own authorities are kept.
    """

    def __init__(self, user_details_service: Optional[UserDetailsService] = None) -> None:
        self.user_details_service = user_details_service

    def supports(self, authentication: Authentication) -> bool:
        return authentication.kind is TokenKind.PRE_AUTHENTICATED

    async def authenticate(self, authentication: Authentication) -> Optional[Authentication]:
        if not authentication.principal:
            raise BadCredentialsError("No pre-authenticated principal found in request")
        if self.user_details_service is None:
            return Authentication.granted(
                authentication.principal,
                authentication.authorities,
                kind=TokenKind.PRE_AUTHENTICATED,
            )
        user = self.user_details_service.load_user_by_username(str(authentication.principal))
        if user is None:
            raise BadCredentialsError(f"Pre-authenticated user '{authentication.principal}' not found")
        if not user.enabled:
            raise DisabledAccountError(f"User '{user.username}' is disabled")
        return Authentication.granted(user, user.authorities, kind=TokenKind.PRE_AUTHENTICATED)


# ── Provider manager ────────────────────────────────────────────────────


class ProviderManager:
    """Tries each provider in order; falls back to an optional parent manager."""

    def __init__(
        self,
        providers: Iterable[Any],
        parent: Optional[AuthenticationManager] = None,
        erase_credentials: bool = True,
    ) -> None:
        self._providers = list(providers)
        self._parent = parent
        self._erase = erase_credentials
        if not self._providers and parent is None:
            raise ValueError("ProviderManager requires at least one provider or a parent")

    @property
    def providers(self) -> List[Any]:
        return list(self._providers)

    @property
    def parent(self) -> Optional[AuthenticationManager]:
        return self._parent

    async def authenticate(self, authentication: Authentication) -> Authentication:
        last_error: Optional[AuthenticationError] = None

        for provider in self._providers:
            if not provider.supports(authentication):
                continue
            try:
                result = await provider.authenticate(authentication)
            except DisabledAccountError:
                raise
            except AuthenticationError as exc:
                last_error = exc
                continue
            if result is not None:
                logger.debug(
                    "Authenticated '%s' via %s", result.name, type(provider).__name__
                )
                return result.erase_credentials() if self._erase else result

        if self._parent is not None:
            try:
                result = await self._parent.authenticate(authentication)
                return result.erase_credentials() if self._erase else result
            except ProviderNotFoundError:
                pass
            except AuthenticationError as exc:
                last_error = exc

        if last_error is not None:
            raise last_error
        raise ProviderNotFoundError(
            f"No authentication provider supports {authentication.kind.value} tokens"
        )

    def __repr__(self) -> str:
        names = [type(p).__name__ for p in self._providers]
        return f"ProviderManager(providers={names}, parent={self._parent is not None})"


class AuthenticationRegistry:
    """Mutable collection of providers resolved into a :class:`ProviderManager`.

    Shared through the builder's registry so any configurator can add
    providers before the build resolves it.
    """

    def __init__(self) -> None:
        self._providers: List[Any] = []
        self._parent: Optional[AuthenticationManager] = None

    def add(self, provider: Any) -> AuthenticationRegistry:
        self._providers.append(provider)
        logger.debug("Authentication provider registered: %s", type(provider).__name__)
        return self

    def parent_authentication_manager(self, manager: AuthenticationManager) -> AuthenticationRegistry:
        self._parent = manager
        return self

    @property
    def providers(self) -> List[Any]:
        return list(self._providers)

    @property
    def parent(self) -> Optional[AuthenticationManager]:
        return self._parent

    def build(self) -> AuthenticationManager:
        """Return the manager for this registry.

        With no locally added providers the parent is returned as is.
        """
        if not self._providers and self._parent is not None:
            return self._parent
        return ProviderManager(self._providers, parent=self._parent)
