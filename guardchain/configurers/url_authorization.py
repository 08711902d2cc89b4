"""URL authorization configurator.

Usage::

    builder.authorize_requests() \\
        .ant_matchers("/admin/**").has_role("ADMIN") \\
        .ant_matchers("/health", method="GET").permit_all() \\
        .any_request().authenticated()
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from guardchain.configurers.base import SecurityConfigurator
from guardchain.web.authz import Access, AccessPolicyEngine, AccessRule, load_rules, role_authority
from guardchain.web.filters import AuthorizationFilter
from guardchain.web.matchers import AntPathRequestMatcher, AnyRequestMatcher, RegexRequestMatcher

logger = logging.getLogger(__name__)


class _AccessRuleBuilder:
    """Intermediate builder returned by ``ant_matchers(...)`` and friends."""

    def __init__(self, configurator: UrlAuthorizationConfigurator, matchers: List[Any]) -> None:
        self._configurator = configurator
        self._matchers = matchers

    def _add(self, access: Access, authorities: Iterable[str] = ()) -> UrlAuthorizationConfigurator:
        for matcher in self._matchers:
            self._configurator._rules.append(AccessRule(matcher, access, tuple(authorities)))
        return self._configurator

    def permit_all(self) -> UrlAuthorizationConfigurator:
        return self._add(Access.PERMIT_ALL)

    def deny_all(self) -> UrlAuthorizationConfigurator:
        return self._add(Access.DENY_ALL)

    def authenticated(self) -> UrlAuthorizationConfigurator:
        return self._add(Access.AUTHENTICATED)

    def anonymous(self) -> UrlAuthorizationConfigurator:
        return self._add(Access.ANONYMOUS)

    def has_role(self, role: str) -> UrlAuthorizationConfigurator:
        return self._add(Access.HAS_ROLE, [role_authority(role)])

    def has_any_role(self, *roles: str) -> UrlAuthorizationConfigurator:
        return self._add(Access.HAS_ANY_ROLE, [role_authority(r) for r in roles])

    def has_authority(self, *authorities: str) -> UrlAuthorizationConfigurator:
        return self._add(Access.HAS_AUTHORITY, authorities)


class UrlAuthorizationConfigurator(SecurityConfigurator):
    """Collects first-match access rules and adds :class:`AuthorizationFilter`."""

    def __init__(self) -> None:
        super().__init__()
        self._rules: List[AccessRule] = []
        self._default_effect = "deny"

    @property
    def rules(self) -> List[AccessRule]:
        return list(self._rules)

    def ant_matchers(self, *patterns: str, method: Optional[str] = None) -> _AccessRuleBuilder:
        return _AccessRuleBuilder(self, [AntPathRequestMatcher(p, method) for p in patterns])

    def regex_matchers(self, *patterns: str, method: Optional[str] = None) -> _AccessRuleBuilder:
        return _AccessRuleBuilder(self, [RegexRequestMatcher(p, method) for p in patterns])

    def request_matchers(self, *matchers: Any) -> _AccessRuleBuilder:
        return _AccessRuleBuilder(self, list(matchers))

    def any_request(self) -> _AccessRuleBuilder:
        """Catch-all rule.  Should be the **last** rule."""
        return _AccessRuleBuilder(self, [AnyRequestMatcher()])

    def rules_from_config(self, rule_dicts: List[Dict[str, Any]]) -> UrlAuthorizationConfigurator:
        self._rules.extend(load_rules(rule_dicts))
        return self

    def default_effect(self, effect: str) -> UrlAuthorizationConfigurator:
        if effect not in ("allow", "deny"):
            raise ValueError(f"default effect must be 'allow' or 'deny', not {effect!r}")
        self._default_effect = effect
        return self

    def permit_first(self, *patterns: str) -> None:
        """Insert permit-all rules ahead of every existing rule."""
        self._rules[:0] = [AccessRule(AntPathRequestMatcher(p), Access.PERMIT_ALL) for p in patterns]

    def configure(self, builder: Any) -> None:
        if not self._rules:
            logger.warning(
                "authorize_requests() applied without rules; every request falls to default '%s'",
                self._default_effect,
            )
        engine = AccessPolicyEngine(list(self._rules), self._default_effect)
        builder.add_filter(AuthorizationFilter(engine))
