"""Channel security configurator.

Usage::

    builder.requires_channel() \\
        .ant_matchers("/login", "/account/**").requires_secure() \\
        .any_request().requires_any()
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from guardchain.configurers.base import SecurityConfigurator
from guardchain.web.filters import ChannelProcessingFilter, ChannelRequirement
from guardchain.web.matchers import AntPathRequestMatcher, AnyRequestMatcher, RegexRequestMatcher


class _ChannelRuleBuilder:
    def __init__(self, configurator: ChannelSecurityConfigurator, matchers: List[Any]) -> None:
        self._configurator = configurator
        self._matchers = matchers

    def _add(self, requirement: ChannelRequirement) -> ChannelSecurityConfigurator:
        self._configurator._rules.extend((m, requirement) for m in self._matchers)
        return self._configurator

    def requires_secure(self) -> ChannelSecurityConfigurator:
        return self._add(ChannelRequirement.REQUIRES_SECURE)

    def requires_insecure(self) -> ChannelSecurityConfigurator:
        return self._add(ChannelRequirement.REQUIRES_INSECURE)

    def requires_any(self) -> ChannelSecurityConfigurator:
        return self._add(ChannelRequirement.ANY)


class ChannelSecurityConfigurator(SecurityConfigurator):
    """Collects channel rules and adds :class:`ChannelProcessingFilter`."""

    def __init__(self) -> None:
        super().__init__()
        self._rules: List[Tuple[Any, ChannelRequirement]] = []

    @property
    def rules(self) -> List[Tuple[Any, ChannelRequirement]]:
        return list(self._rules)

    def ant_matchers(self, *patterns: str, method: Optional[str] = None) -> _ChannelRuleBuilder:
        return _ChannelRuleBuilder(self, [AntPathRequestMatcher(p, method) for p in patterns])

    def regex_matchers(self, *patterns: str, method: Optional[str] = None) -> _ChannelRuleBuilder:
        return _ChannelRuleBuilder(self, [RegexRequestMatcher(p, method) for p in patterns])

    def any_request(self) -> _ChannelRuleBuilder:
        return _ChannelRuleBuilder(self, [AnyRequestMatcher()])

    def configure(self, builder: Any) -> None:
        builder.add_filter(ChannelProcessingFilter(self._rules))
