"""Tests for HttpSecurityBuilder lifecycle, filters and shared objects."""

from __future__ import annotations

import asyncio

import pytest

from guardchain.authentication import (
    Authentication,
    AuthenticationRegistry,
    DaoAuthenticationProvider,
    InMemoryUserDetailsService,
    ProviderManager,
    UserDetails,
    UserDetailsService,
)
from guardchain.builder import BuildState, HttpSecurityBuilder
from guardchain.configurers import HttpBasicConfigurator, SecurityConfigurator
from guardchain.errors import (
    AlreadyBuiltError,
    BuilderStateError,
    FilterOrderError,
    MissingCollaboratorError,
)
from guardchain.ordering import DEFAULT_FILTER_ORDER, CustomFilterSlot
from guardchain.web.entry_points import (
    BasicAuthenticationEntryPoint,
    Http403ForbiddenEntryPoint,
    LoginUrlAuthenticationEntryPoint,
)
from guardchain.web.exchange import HttpRequest
from guardchain.web.filters import (
    AnonymousAuthenticationFilter,
    BasicAuthenticationFilter,
    ExceptionTranslationFilter,
    LogoutFilter,
    RequestCacheAwareFilter,
    SecurityContextHolderAwareRequestFilter,
    SecurityContextPersistenceFilter,
    SessionManagementFilter,
)
from guardchain.web.matchers import AntPathRequestMatcher
from guardchain.web.savedrequest import RequestCache


def _users() -> InMemoryUserDetailsService:
    return InMemoryUserDetailsService([UserDetails("alice", "secret", ("ROLE_USER",))])


def _builder() -> HttpSecurityBuilder:
    return HttpSecurityBuilder.from_user_details_service(_users())


class AuditFilter:
    async def process(self, request, response, next_filter):
        return await next_filter(request, response)


class NotAFilter:
    pass


# ── Lifecycle ────────────────────────────────────────────────────────────


class TestLifecycle:
    def test_initial_state(self):
        assert _builder().state is BuildState.UNBUILT

    def test_build_empty_chain(self):
        builder = _builder()
        chain = builder.build()
        assert builder.state is BuildState.BUILT
        assert len(chain) == 0
        assert chain.matches(HttpRequest(path="/anything"))

    def test_build_is_single_use(self):
        builder = _builder()
        builder.build()
        with pytest.raises(AlreadyBuiltError, match="already been built") as exc_info:
            builder.build()
        assert exc_info.value.state == "built"

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda b: b.add_filter(AuditFilter()),
            lambda b: b.form_login(),
            lambda b: b.set_shared_object(RequestCache, object()),
            lambda b: b.ant_matcher("/api/**"),
            lambda b: b.authentication_provider(DaoAuthenticationProvider(_users())),
            lambda b: b.set_authentication_entry_point(Http403ForbiddenEntryPoint()),
        ],
    )
    def test_mutation_after_build_rejected(self, mutate):
        builder = _builder()
        builder.build()
        with pytest.raises(AlreadyBuiltError):
            mutate(builder)

    def test_missing_authentication_manager(self):
        builder = HttpSecurityBuilder()
        with pytest.raises(MissingCollaboratorError, match="AuthenticationManager"):
            builder.build()
        assert builder.state is BuildState.FAILED

    def test_failed_builder_is_not_reusable(self):
        builder = HttpSecurityBuilder()
        with pytest.raises(MissingCollaboratorError):
            builder.build()
        with pytest.raises(AlreadyBuiltError, match="previous build of this builder failed") as exc_info:
            builder.build()
        assert exc_info.value.state == "failed"
        with pytest.raises(AlreadyBuiltError):
            builder.add_filter(AuditFilter())

    def test_shared_objects_frozen_after_build(self):
        builder = _builder()
        builder.build()
        assert builder.shared_objects.frozen


# ── Configurators ────────────────────────────────────────────────────────


class _Recorder(SecurityConfigurator):
    def __init__(self, log):
        super().__init__()
        self.log = log

    def initialize(self, builder):
        self.log.append(("init", type(self).__name__))

    def configure(self, builder):
        self.log.append(("configure", type(self).__name__))


class Second(_Recorder):
    pass


class First(_Recorder):
    def initialize(self, builder):
        super().initialize(builder)
        builder.apply(Second(self.log))


class LateApplier(SecurityConfigurator):
    def configure(self, builder):
        builder.apply(Second([]))


class TestConfigurators:
    def test_apply_is_idempotent_per_kind(self):
        builder = _builder()
        form = builder.form_login()
        assert builder.form_login() is form
        assert builder.apply(HttpBasicConfigurator()) is builder.http_basic()
        assert len(builder.configurators) == 2

    def test_apply_sets_builder_back_reference(self):
        builder = _builder()
        assert builder.logout().and_() is builder

    def test_configurator_applied_during_initialize_is_initialized(self):
        log = []
        builder = _builder()
        builder.apply(First(log))
        builder.build()
        assert log == [
            ("init", "First"),
            ("init", "Second"),
            ("configure", "First"),
            ("configure", "Second"),
        ]

    def test_new_configurator_during_configure_rejected(self):
        builder = _builder()
        builder.apply(LateApplier())
        with pytest.raises(BuilderStateError, match="configure phase"):
            builder.build()
        assert builder.state is BuildState.FAILED

    def test_get_configurator(self):
        builder = _builder()
        basic = builder.http_basic()
        assert builder.get_configurator(HttpBasicConfigurator) is basic
        assert builder.get_configurator(Second) is None

    def test_default_configurators_filter_order(self):
        builder = _builder()
        chain = builder.apply_default_configurators().build()
        assert chain.filter_kinds == (
            SecurityContextPersistenceFilter,
            LogoutFilter,
            RequestCacheAwareFilter,
            SecurityContextHolderAwareRequestFilter,
            AnonymousAuthenticationFilter,
            SessionManagementFilter,
            ExceptionTranslationFilter,
        )

    def test_full_configuration_follows_baseline(self):
        builder = _builder()
        builder.apply_default_configurators()
        builder.requires_channel().any_request().requires_any()
        builder.pre_authenticated()
        builder.form_login()
        builder.http_basic()
        builder.remember_me().key("remember-key")
        builder.authorize_requests().any_request().authenticated()
        chain = builder.build()
        expected = tuple(k for k in DEFAULT_FILTER_ORDER if k is not CustomFilterSlot)
        assert chain.filter_kinds == expected

    def test_remember_me_without_user_lookup(self):
        builder = HttpSecurityBuilder.from_provider(DaoAuthenticationProvider(_users()))
        builder.remember_me()
        with pytest.raises(MissingCollaboratorError, match="UserDetailsService"):
            builder.build()


# ── Shared objects and the authentication manager ────────────────────────


class TestSharedObjects:
    def test_from_user_details_service_shares_lookup(self):
        users = _users()
        builder = HttpSecurityBuilder.from_user_details_service(users)
        assert builder.get_shared_object(UserDetailsService) is users

    def test_authentication_registry_present(self):
        assert isinstance(_builder().get_shared_object(AuthenticationRegistry), AuthenticationRegistry)

    def test_default_shared_object_keeps_explicit(self):
        builder = _builder()
        explicit = object()
        builder.set_shared_object(RequestCache, explicit)
        builder.default_shared_object(RequestCache, object())
        assert builder.get_shared_object(RequestCache) is explicit

    def test_manager_unusable_before_build(self):
        manager = _builder().authentication_manager()
        with pytest.raises(BuilderStateError):
            asyncio.run(manager.authenticate(Authentication.unauthenticated("alice", "secret")))

    def test_manager_bound_after_build(self):
        builder = _builder()
        builder.build()
        result = asyncio.run(
            builder.authentication_manager().authenticate(
                Authentication.unauthenticated("alice", "secret")
            )
        )
        assert result.name == "alice"

    def test_providers_only(self):
        builder = HttpSecurityBuilder()
        builder.authentication_provider(DaoAuthenticationProvider(_users()))
        builder.build()
        assert isinstance(builder.authentication_manager().delegate, ProviderManager)

    def test_parent_used_directly_without_local_providers(self):
        parent = ProviderManager([DaoAuthenticationProvider(_users())])
        builder = HttpSecurityBuilder(parent)
        builder.build()
        assert builder.authentication_manager().delegate is parent


# ── Filters, matcher, entry point ────────────────────────────────────────


class TestFiltersAndMatching:
    def test_add_filter_rejects_non_filters(self):
        with pytest.raises(TypeError):
            _builder().add_filter(NotAFilter())

    @pytest.mark.parametrize("add", ["add_filter_before", "add_filter_after"])
    def test_rejected_filter_leaves_no_ordering_relation(self, add):
        builder = _builder()
        with pytest.raises(TypeError):
            getattr(builder, add)(NotAFilter(), LogoutFilter)
        assert NotAFilter not in builder.ordering.relations
        assert builder.filters == []
        builder.build()

    def test_custom_filter_lands_at_custom_slot(self):
        builder = _builder().apply_default_configurators()
        audit = AuditFilter()
        builder.add_filter(audit)
        kinds = builder.build().filter_kinds
        assert kinds.index(AuditFilter) == kinds.index(AnonymousAuthenticationFilter) + 1

    def test_add_filter_before(self):
        builder = _builder().apply_default_configurators()
        builder.add_filter_before(AuditFilter(), LogoutFilter)
        kinds = builder.build().filter_kinds
        assert kinds.index(AuditFilter) + 1 == kinds.index(LogoutFilter)

    def test_add_filter_after(self):
        builder = _builder().apply_default_configurators()
        builder.add_filter_after(AuditFilter(), SecurityContextPersistenceFilter)
        kinds = builder.build().filter_kinds
        assert kinds[:2] == (SecurityContextPersistenceFilter, AuditFilter)

    def test_bad_anchor_fails_build(self):
        builder = _builder()
        builder.add_filter_after(AuditFilter(), NotAFilter)
        with pytest.raises(FilterOrderError):
            builder.build()
        assert builder.state is BuildState.FAILED

    def test_filters_in_insertion_order_before_build(self):
        builder = _builder()
        first, second = AuditFilter(), AuditFilter()
        builder.add_filter(first).add_filter(second)
        assert builder.filters == [first, second]

    def test_request_matcher(self):
        chain = _builder().ant_matcher("/api/**").build()
        assert isinstance(chain.request_matcher, AntPathRequestMatcher)
        assert chain.matches(HttpRequest(path="/api/users"))
        assert not chain.matches(HttpRequest(path="/web"))

    def test_regex_matcher(self):
        chain = _builder().regex_matcher(r"/v\d+/.*").build()
        assert chain.matches(HttpRequest(path="/v2/items"))
        assert not chain.matches(HttpRequest(path="/items"))

    def test_default_entry_point_is_403(self):
        builder = _builder()
        assert isinstance(builder.authentication_entry_point, Http403ForbiddenEntryPoint)

    def test_form_login_sets_entry_point(self):
        builder = _builder()
        builder.form_login().login_page("/signin")
        builder.build()
        assert isinstance(builder.authentication_entry_point, LoginUrlAuthenticationEntryPoint)
        assert builder.authentication_entry_point.login_url == "/signin"

    def test_first_mechanism_wins_entry_point(self):
        builder = _builder()
        builder.http_basic()
        builder.form_login()
        builder.build()
        assert isinstance(builder.authentication_entry_point, BasicAuthenticationEntryPoint)

    def test_explicit_entry_point_kept(self):
        builder = _builder()
        explicit = Http403ForbiddenEntryPoint()
        builder.set_authentication_entry_point(explicit)
        builder.form_login()
        builder.build()
        assert builder.authentication_entry_point is explicit

    def test_http_basic_alone(self):
        chain = _builder().apply(HttpBasicConfigurator()).and_().build()
        assert chain.filter_kinds == (BasicAuthenticationFilter,)
