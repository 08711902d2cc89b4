"""Tests for authentication providers and the provider manager."""

from __future__ import annotations

import asyncio

import pytest

from guardchain.authentication import (
    AnonymousAuthenticationProvider,
    Authentication,
    AuthenticationRegistry,
    DaoAuthenticationProvider,
    InMemoryUserDetailsService,
    PreAuthenticatedAuthenticationProvider,
    ProviderManager,
    RememberMeAuthenticationProvider,
    TokenKind,
    UserDetails,
    key_digest,
)
from guardchain.errors import (
    BadCredentialsError,
    DisabledAccountError,
    ProviderNotFoundError,
)


def _users() -> InMemoryUserDetailsService:
    return InMemoryUserDetailsService(
        [
            UserDetails("alice", "secret", ("ROLE_USER",)),
            UserDetails("bob", "hunter2", ("ROLE_USER",), enabled=False),
        ]
    )


def _run(coro):
    return asyncio.run(coro)


# ── Tokens ───────────────────────────────────────────────────────────────


class TestAuthentication:
    def test_unauthenticated_token(self):
        token = Authentication.unauthenticated("alice", "secret")
        assert not token.authenticated
        assert token.name == "alice"
        assert token.kind is TokenKind.USERNAME_PASSWORD

    def test_name_from_user_details(self):
        token = Authentication.granted(UserDetails("alice"), ["ROLE_USER"])
        assert token.name == "alice"
        assert token.authenticated
        assert token.has_authority("ROLE_USER")
        assert not token.has_authority("ROLE_ADMIN")

    def test_erase_credentials(self):
        token = Authentication.unauthenticated("alice", "secret").erase_credentials()
        assert token.credentials is None

    def test_anonymous_flag(self):
        token = Authentication.granted("anonymousUser", [], kind=TokenKind.ANONYMOUS)
        assert token.is_anonymous


class TestInMemoryUserDetailsService:
    def test_lookup_is_case_insensitive(self):
        users = _users()
        assert users.load_user_by_username("ALICE").username == "alice"
        assert users.user_exists("Bob")
        assert users.load_user_by_username("carol") is None
        assert len(users) == 2


# ── Providers ────────────────────────────────────────────────────────────


class TestDaoAuthenticationProvider:
    def test_success(self):
        provider = DaoAuthenticationProvider(_users())
        result = _run(provider.authenticate(Authentication.unauthenticated("alice", "secret")))
        assert result.authenticated
        assert result.authorities == ("ROLE_USER",)

    def test_bad_password(self):
        provider = DaoAuthenticationProvider(_users())
        with pytest.raises(BadCredentialsError):
            _run(provider.authenticate(Authentication.unauthenticated("alice", "wrong")))

    def test_unknown_user(self):
        provider = DaoAuthenticationProvider(_users())
        with pytest.raises(BadCredentialsError):
            _run(provider.authenticate(Authentication.unauthenticated("carol", "x")))

    def test_disabled_user(self):
        provider = DaoAuthenticationProvider(_users())
        with pytest.raises(DisabledAccountError):
            _run(provider.authenticate(Authentication.unauthenticated("bob", "hunter2")))

    def test_custom_password_matcher(self):
        users = InMemoryUserDetailsService([UserDetails("alice", "TERCES")])
        provider = DaoAuthenticationProvider(users, lambda raw, stored: raw[::-1].upper() == stored)
        result = _run(provider.authenticate(Authentication.unauthenticated("alice", "secret")))
        assert result.name == "alice"

    def test_supports_only_username_password(self):
        provider = DaoAuthenticationProvider(_users())
        assert not provider.supports(Authentication.unauthenticated("x", kind=TokenKind.ANONYMOUS))


class TestKeyedProviders:
    def test_anonymous_accepts_matching_key(self):
        provider = AnonymousAuthenticationProvider("anon-key")
        token = Authentication.granted(
            "anonymousUser", [], kind=TokenKind.ANONYMOUS, key_hash=key_digest("anon-key")
        )
        assert _run(provider.authenticate(token)) is token

    def test_anonymous_rejects_other_key(self):
        provider = AnonymousAuthenticationProvider("anon-key")
        token = Authentication.granted(
            "anonymousUser", [], kind=TokenKind.ANONYMOUS, key_hash=key_digest("other")
        )
        with pytest.raises(BadCredentialsError):
            _run(provider.authenticate(token))

    def test_remember_me_supports_only_its_kind(self):
        provider = RememberMeAuthenticationProvider("rm-key")
        assert provider.supports(Authentication.unauthenticated("a", kind=TokenKind.REMEMBER_ME))
        assert not provider.supports(Authentication.unauthenticated("a", kind=TokenKind.ANONYMOUS))

    def test_empty_key_rejected(self):
        with pytest.raises(ValueError):
            RememberMeAuthenticationProvider("")


class TestPreAuthenticatedProvider:
    def test_without_user_lookup_keeps_token_authorities(self):
        provider = PreAuthenticatedAuthenticationProvider()
        token = Authentication(
            principal="proxy-user", authorities=("ROLE_OPS",), kind=TokenKind.PRE_AUTHENTICATED
        )
        result = _run(provider.authenticate(token))
        assert result.authenticated
        assert result.authorities == ("ROLE_OPS",)

    def test_with_user_lookup(self):
        provider = PreAuthenticatedAuthenticationProvider(_users())
        token = Authentication.unauthenticated("alice", kind=TokenKind.PRE_AUTHENTICATED)
        assert _run(provider.authenticate(token)).authorities == ("ROLE_USER",)

    def test_unknown_user_rejected(self):
        provider = PreAuthenticatedAuthenticationProvider(_users())
        token = Authentication.unauthenticated("mallory", kind=TokenKind.PRE_AUTHENTICATED)
        with pytest.raises(BadCredentialsError):
            _run(provider.authenticate(token))


# ── Provider manager ─────────────────────────────────────────────────────


class TestProviderManager:
    def test_requires_provider_or_parent(self):
        with pytest.raises(ValueError):
            ProviderManager([])

    def test_erases_credentials(self):
        manager = ProviderManager([DaoAuthenticationProvider(_users())])
        result = _run(manager.authenticate(Authentication.unauthenticated("alice", "secret")))
        assert result.credentials is None

    def test_no_supporting_provider(self):
        manager = ProviderManager([AnonymousAuthenticationProvider("k-1234")])
        with pytest.raises(ProviderNotFoundError):
            _run(manager.authenticate(Authentication.unauthenticated("alice", "secret")))

    def test_falls_back_to_parent(self):
        parent = ProviderManager([DaoAuthenticationProvider(_users())])
        manager = ProviderManager([AnonymousAuthenticationProvider("k-1234")], parent=parent)
        result = _run(manager.authenticate(Authentication.unauthenticated("alice", "secret")))
        assert result.name == "alice"

    def test_parent_failure_propagates(self):
        parent = ProviderManager([DaoAuthenticationProvider(_users())])
        manager = ProviderManager([AnonymousAuthenticationProvider("k-1234")], parent=parent)
        with pytest.raises(BadCredentialsError):
            _run(manager.authenticate(Authentication.unauthenticated("alice", "nope")))

    def test_disabled_stops_immediately(self):
        class Never:
            def supports(self, authentication):
                return True

            async def authenticate(self, authentication):
                raise AssertionError("must not be consulted")

        manager = ProviderManager([DaoAuthenticationProvider(_users()), Never()])
        with pytest.raises(DisabledAccountError):
            _run(manager.authenticate(Authentication.unauthenticated("bob", "hunter2")))

    def test_next_provider_tried_after_failure(self):
        other = InMemoryUserDetailsService([UserDetails("alice", "other-pass")])
        manager = ProviderManager(
            [DaoAuthenticationProvider(_users()), DaoAuthenticationProvider(other)]
        )
        result = _run(manager.authenticate(Authentication.unauthenticated("alice", "other-pass")))
        assert result.name == "alice"


class TestAuthenticationRegistry:
    def test_parent_only_returns_parent(self):
        parent = ProviderManager([DaoAuthenticationProvider(_users())])
        registry = AuthenticationRegistry().parent_authentication_manager(parent)
        assert registry.build() is parent

    def test_providers_wrap_parent(self):
        parent = ProviderManager([DaoAuthenticationProvider(_users())])
        registry = AuthenticationRegistry().parent_authentication_manager(parent)
        registry.add(AnonymousAuthenticationProvider("k-1234"))
        manager = registry.build()
        assert isinstance(manager, ProviderManager)
        assert manager.parent is parent
        assert len(manager.providers) == 1
