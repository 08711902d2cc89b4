"""Security filter chain builder.

Collects configurators, runs their two build phases, orders the filters
they contribute and freezes the result into a
:class:`~guardchain.web.chain.DefaultSecurityFilterChain`.

Usage::

    builder = HttpSecurityBuilder.from_user_details_service(users)
    builder.apply_default_configurators()
    builder.form_login().login_page("/signin").permit_all()
    builder.authorize_requests().any_request().authenticated()
    chain = builder.build()

Lifecycle: ``UNBUILT → INITIALIZING → CONFIGURING → BUILT``.  ``build()``
runs once; a builder that failed to build ends in ``FAILED`` and is not
reusable either.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Type, TypeVar

from guardchain.authentication import (
    Authentication,
    AuthenticationManager,
    AuthenticationRegistry,
    DaoAuthenticationProvider,
    ProviderManager,
    UserDetailsService,
)
from guardchain.configurers import (
    AnonymousConfigurator,
    ChannelSecurityConfigurator,
    ExceptionHandlingConfigurator,
    FormLoginConfigurator,
    HttpBasicConfigurator,
    LogoutConfigurator,
    PreAuthenticatedConfigurator,
    RememberMeConfigurator,
    RequestApiConfigurator,
    RequestCacheConfigurator,
    SecurityConfigurator,
    SecurityContextConfigurator,
    SessionManagementConfigurator,
    UrlAuthorizationConfigurator,
)
from guardchain.errors import AlreadyBuiltError, BuilderStateError, MissingCollaboratorError
from guardchain.ordering import FilterOrderingTable
from guardchain.registry import SharedObjectRegistry
from guardchain.web.chain import DefaultSecurityFilterChain, SecurityFilter
from guardchain.web.context import SecurityContextRepository
from guardchain.web.entry_points import Http403ForbiddenEntryPoint
from guardchain.web.matchers import AntPathRequestMatcher, AnyRequestMatcher, RegexRequestMatcher

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=SecurityConfigurator)
T = TypeVar("T")


class BuildState(Enum):
    UNBUILT = "unbuilt"
    INITIALIZING = "initializing"
    CONFIGURING = "configuring"
    BUILT = "built"
    FAILED = "failed"


class _DelegatingAuthenticationManager:
    """Stands in for the manager until ``build()`` resolves it.

    Filters created during the configure phase hold this object, so they
    see every provider registered by any configurator.
    """

    def __init__(self) -> None:
        self._delegate: Optional[AuthenticationManager] = None

    def bind(self, delegate: AuthenticationManager) -> None:
        self._delegate = delegate

    @property
    def delegate(self) -> Optional[AuthenticationManager]:
        return self._delegate

    async def authenticate(self, authentication: Authentication) -> Authentication:
        if self._delegate is None:
            raise BuilderStateError("The authentication manager is not available until build() completes")
        return await self._delegate.authenticate(authentication)

    def __repr__(self) -> str:
        return f"DelegatingAuthenticationManager(delegate={self._delegate!r})"


def _check_filter(security_filter: Any) -> None:
    if not isinstance(security_filter, SecurityFilter):
        raise TypeError(f"{type(security_filter).__name__} is not a security filter (missing process())")


class HttpSecurityBuilder:
    """Builds one :class:`DefaultSecurityFilterChain`.

    Parameters
    ----------
    authentication_manager:
        Parent manager consulted after any providers configurators add.
        May be ``None`` if configurators (or the caller, via
        :meth:`authentication_provider`) register providers.
    ordering:
        Filter ordering table; defaults to the standard baseline.
    """

    def __init__(
        self,
        authentication_manager: Optional[AuthenticationManager] = None,
        ordering: Optional[FilterOrderingTable] = None,
    ) -> None:
        self._state = BuildState.UNBUILT
        self._filters: List[Any] = []
        self._request_matcher: Any = AnyRequestMatcher()
        self._ordering = ordering or FilterOrderingTable()
        self._entry_point: Any = Http403ForbiddenEntryPoint()
        self._entry_point_chosen = False
        self._shared = SharedObjectRegistry()
        self._configurators: Dict[type, SecurityConfigurator] = {}
        self._authentication_manager = _DelegatingAuthenticationManager()

        registry = AuthenticationRegistry()
        if authentication_manager is not None:
            registry.parent_authentication_manager(authentication_manager)
        self._shared.set(AuthenticationRegistry, registry)

    @classmethod
    def from_provider(cls, provider: Any, **kwargs: Any) -> HttpSecurityBuilder:
        """Seed with a single provider wrapped in a :class:`ProviderManager`."""
        return cls(ProviderManager([provider]), **kwargs)

    @classmethod
    def from_user_details_service(cls, service: UserDetailsService, **kwargs: Any) -> HttpSecurityBuilder:
        """Seed with a DAO provider over *service*.

        *service* is also shared as ``UserDetailsService`` for configurators
        that look users up themselves (remember-me, pre-authentication).
        """
        builder = cls.from_provider(DaoAuthenticationProvider(service), **kwargs)
        builder.set_shared_object(UserDetailsService, service)
        return builder

    # ── Lifecycle ────────────────────────────────────────────────────

    @property
    def state(self) -> BuildState:
        return self._state

    def _check_mutable(self, operation: str) -> None:
        if self._state in (BuildState.BUILT, BuildState.FAILED):
            raise AlreadyBuiltError(operation, self._state.value)

    def build(self) -> DefaultSecurityFilterChain:
        """Run both phases, resolve the manager, order filters, freeze.

        Raises:
            AlreadyBuiltError: If called more than once.
            FilterOrderError, AmbiguousFilterOrderError,
            MissingCollaboratorError: On configuration errors.
        """
        if self._state is not BuildState.UNBUILT:
            raise AlreadyBuiltError("build", self._state.value)

        try:
            self._state = BuildState.INITIALIZING
            self._initialize_configurators()

            self._state = BuildState.CONFIGURING
            for configurator in list(self._configurators.values()):
                logger.debug("Configuring %s", type(configurator).__name__)
                configurator.configure(self)

            manager = self._resolve_authentication_manager()
            ordered = self._ordering.sort(self._filters)
        except Exception as exc:
            self._state = BuildState.FAILED
            logger.error("Security filter chain build failed: %s", exc)
            raise

        self._authentication_manager.bind(manager)
        self._shared.freeze()
        self._state = BuildState.BUILT
        chain = DefaultSecurityFilterChain(self._request_matcher, tuple(ordered))
        logger.info(
            "Built security filter chain: %d filter(s), matcher=%r", len(chain), self._request_matcher
        )
        logger.debug("Filter order: %s", [k.__name__ for k in chain.filter_kinds])
        return chain

    def _initialize_configurators(self) -> None:
        # Configurators applied while initializing are initialized in the same pass.
        done: Set[type] = set()
        while True:
            pending = [c for kind, c in self._configurators.items() if kind not in done]
            if not pending:
                return
            for configurator in pending:
                logger.debug("Initializing %s", type(configurator).__name__)
                configurator.initialize(self)
                done.add(type(configurator))

    def _resolve_authentication_manager(self) -> AuthenticationManager:
        registry = self._shared.require(AuthenticationRegistry, type(self).__name__)
        if not registry.providers and registry.parent is None:
            raise MissingCollaboratorError(AuthenticationManager, type(self).__name__)
        return registry.build()

    # ── Configurators ────────────────────────────────────────────────

    def apply(self, configurator: C) -> C:
        """Register *configurator*, or return the instance already registered for its kind."""
        self._check_mutable("apply a configurator")
        kind = type(configurator)
        existing = self._configurators.get(kind)
        if existing is not None:
            return existing  # type: ignore[return-value]
        if self._state is BuildState.CONFIGURING:
            raise BuilderStateError(f"Cannot apply {kind.__name__} during the configure phase")
        configurator.set_builder(self)
        self._configurators[kind] = configurator
        logger.debug("Configurator applied: %s", kind.__name__)
        return configurator

    def get_configurator(self, kind: Type[C]) -> Optional[C]:
        return self._configurators.get(kind)  # type: ignore[return-value]

    @property
    def configurators(self) -> List[SecurityConfigurator]:
        """Registered configurators in registration order."""
        return list(self._configurators.values())

    def apply_default_configurators(self) -> HttpSecurityBuilder:
        self.exception_handling()
        self.session_management()
        self.security_context()
        self.request_cache()
        self.anonymous()
        self.request_api()
        self.logout()
        return self

    def session_management(self) -> SessionManagementConfigurator:
        return self.apply(SessionManagementConfigurator())

    def exception_handling(self) -> ExceptionHandlingConfigurator:
        return self.apply(ExceptionHandlingConfigurator())

    def security_context(self) -> SecurityContextConfigurator:
        return self.apply(SecurityContextConfigurator())

    def request_cache(self) -> RequestCacheConfigurator:
        return self.apply(RequestCacheConfigurator())

    def anonymous(self) -> AnonymousConfigurator:
        return self.apply(AnonymousConfigurator())

    def logout(self) -> LogoutConfigurator:
        return self.apply(LogoutConfigurator())

    def request_api(self) -> RequestApiConfigurator:
        return self.apply(RequestApiConfigurator())

    def form_login(self) -> FormLoginConfigurator:
        return self.apply(FormLoginConfigurator())

    def requires_channel(self) -> ChannelSecurityConfigurator:
        return self.apply(ChannelSecurityConfigurator())

    def http_basic(self) -> HttpBasicConfigurator:
        return self.apply(HttpBasicConfigurator())

    def remember_me(self) -> RememberMeConfigurator:
        return self.apply(RememberMeConfigurator())

    def pre_authenticated(self) -> PreAuthenticatedConfigurator:
        return self.apply(PreAuthenticatedConfigurator())

    def authorize_requests(self) -> UrlAuthorizationConfigurator:
        return self.apply(UrlAuthorizationConfigurator())

    # ── Shared objects ───────────────────────────────────────────────

    @property
    def shared_objects(self) -> SharedObjectRegistry:
        return self._shared

    def set_shared_object(self, shared_type: Type[T], value: T) -> HttpSecurityBuilder:
        self._check_mutable("set a shared object")
        self._shared.set(shared_type, value)
        return self

    def default_shared_object(self, shared_type: Type[T], value: T) -> HttpSecurityBuilder:
        """Set *value* unless something is already stored under *shared_type*."""
        self._check_mutable("set a shared object")
        self._shared.set_if_absent(shared_type, value)
        return self

    def get_shared_object(self, shared_type: Type[T]) -> Optional[T]:
        return self._shared.get(shared_type)

    def authentication_provider(self, provider: Any) -> HttpSecurityBuilder:
        self._check_mutable("add an authentication provider")
        self._shared.require(AuthenticationRegistry).add(provider)
        return self

    def security_context_repository(self, repository: Any) -> HttpSecurityBuilder:
        return self.set_shared_object(SecurityContextRepository, repository)

    def authentication_manager(self) -> AuthenticationManager:
        """The chain's manager; usable once ``build()`` has completed."""
        return self._authentication_manager

    # ── Filters ──────────────────────────────────────────────────────

    @property
    def ordering(self) -> FilterOrderingTable:
        return self._ordering

    @property
    def filters(self) -> List[Any]:
        """Filters added so far, in insertion order (not yet sorted)."""
        return list(self._filters)

    def add_filter(self, security_filter: Any) -> HttpSecurityBuilder:
        self._check_mutable("add a filter")
        _check_filter(security_filter)
        self._filters.append(security_filter)
        return self

    def add_filter_before(self, security_filter: Any, anchor_kind: type) -> HttpSecurityBuilder:
        self._check_mutable("add a filter")
        _check_filter(security_filter)
        self._ordering.register_before(type(security_filter), anchor_kind)
        return self.add_filter(security_filter)

    def add_filter_after(self, security_filter: Any, anchor_kind: type) -> HttpSecurityBuilder:
        self._check_mutable("add a filter")
        _check_filter(security_filter)
        self._ordering.register_after(type(security_filter), anchor_kind)
        return self.add_filter(security_filter)

    # ── Request matching ─────────────────────────────────────────────

    def request_matcher(self, matcher: Any) -> HttpSecurityBuilder:
        self._check_mutable("set the request matcher")
        self._request_matcher = matcher
        return self

    def ant_matcher(self, pattern: str, method: Optional[str] = None) -> HttpSecurityBuilder:
        return self.request_matcher(AntPathRequestMatcher(pattern, method))

    def regex_matcher(self, pattern: str, method: Optional[str] = None) -> HttpSecurityBuilder:
        return self.request_matcher(RegexRequestMatcher(pattern, method))

    # ── Entry point ──────────────────────────────────────────────────

    @property
    def authentication_entry_point(self) -> Any:
        return self._entry_point

    def set_authentication_entry_point(self, entry_point: Any) -> HttpSecurityBuilder:
        self._check_mutable("set the authentication entry point")
        self._entry_point = entry_point
        self._entry_point_chosen = True
        return self

    def default_authentication_entry_point(self, entry_point: Any) -> HttpSecurityBuilder:
        """Use *entry_point* unless the caller or an earlier configurator chose one."""
        if not self._entry_point_chosen:
            self.set_authentication_entry_point(entry_point)
        return self

    def __repr__(self) -> str:
        names = [k.__name__ for k in self._configurators]
        return f"HttpSecurityBuilder(state={self._state.value}, configurators={names})"
