"""Tests for the shared object registry."""

from __future__ import annotations

import pytest

from guardchain.errors import BuilderStateError, MissingCollaboratorError
from guardchain.registry import SharedObjectRegistry
from guardchain.web.context import (
    HttpSessionSecurityContextRepository,
    NullSecurityContextRepository,
    SecurityContextRepository,
)
from guardchain.web.savedrequest import HttpSessionRequestCache, RequestCache

# ── Set / get ────────────────────────────────────────────────────────────


class TestSetAndGet:
    def test_get_missing_returns_none(self):
        registry = SharedObjectRegistry()
        assert registry.get(RequestCache) is None

    def test_get_missing_returns_default(self):
        registry = SharedObjectRegistry()
        fallback = HttpSessionRequestCache()
        assert registry.get(RequestCache, fallback) is fallback

    def test_set_then_get(self):
        registry = SharedObjectRegistry()
        cache = HttpSessionRequestCache()
        registry.set(RequestCache, cache)
        assert registry.get(RequestCache) is cache
        assert RequestCache in registry
        assert registry.contains(RequestCache)
        assert len(registry) == 1

    def test_set_replaces(self):
        registry = SharedObjectRegistry()
        first = HttpSessionSecurityContextRepository()
        second = NullSecurityContextRepository()
        registry.set(SecurityContextRepository, first)
        registry.set(SecurityContextRepository, second)
        assert registry.get(SecurityContextRepository) is second

    def test_keys_are_exact_types(self):
        registry = SharedObjectRegistry()
        repo = HttpSessionSecurityContextRepository()
        registry.set(HttpSessionSecurityContextRepository, repo)
        assert registry.get(SecurityContextRepository) is None

    def test_iteration_lists_types(self):
        registry = SharedObjectRegistry()
        registry.set(RequestCache, HttpSessionRequestCache())
        registry.set(SecurityContextRepository, NullSecurityContextRepository())
        assert set(registry) == {RequestCache, SecurityContextRepository}


# ── Defaults ─────────────────────────────────────────────────────────────


class TestSetIfAbsent:
    def test_sets_when_absent(self):
        registry = SharedObjectRegistry()
        cache = HttpSessionRequestCache()
        assert registry.set_if_absent(RequestCache, cache) is True
        assert registry.get(RequestCache) is cache

    def test_keeps_existing_value(self):
        registry = SharedObjectRegistry()
        explicit = HttpSessionRequestCache()
        registry.set(RequestCache, explicit)
        assert registry.set_if_absent(RequestCache, HttpSessionRequestCache()) is False
        assert registry.get(RequestCache) is explicit


# ── Require ──────────────────────────────────────────────────────────────


class TestRequire:
    def test_returns_value(self):
        registry = SharedObjectRegistry()
        cache = HttpSessionRequestCache()
        registry.set(RequestCache, cache)
        assert registry.require(RequestCache) is cache

    def test_missing_raises_with_type_name(self):
        registry = SharedObjectRegistry()
        with pytest.raises(MissingCollaboratorError, match="RequestCache") as exc_info:
            registry.require(RequestCache, "RequestCacheConfigurator")
        assert exc_info.value.required_type is RequestCache
        assert "RequestCacheConfigurator" in str(exc_info.value)


# ── Freeze ───────────────────────────────────────────────────────────────


class TestFreeze:
    def test_writes_rejected_after_freeze(self):
        registry = SharedObjectRegistry()
        registry.freeze()
        assert registry.frozen
        with pytest.raises(BuilderStateError):
            registry.set(RequestCache, HttpSessionRequestCache())
        with pytest.raises(BuilderStateError):
            registry.set_if_absent(RequestCache, HttpSessionRequestCache())

    def test_reads_allowed_after_freeze(self):
        registry = SharedObjectRegistry()
        cache = HttpSessionRequestCache()
        registry.set(RequestCache, cache)
        registry.freeze()
        assert registry.get(RequestCache) is cache
