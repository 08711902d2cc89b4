"""URL access rules and the policy engine that evaluates them.

Rules are evaluated in order with first-match semantics: the first rule
whose matcher accepts the request decides.  If no rule matches, the
engine's ``default_effect`` applies (``"deny"`` unless configured).

Rules can be declared in config::

    {"pattern": "/admin/**", "access": "has_role", "roles": ["ADMIN"]}
    {"pattern": "/health", "method": "GET", "access": "permit_all"}
    {"pattern": "/**", "access": "authenticated"}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from guardchain.authentication import Authentication
from guardchain.web.matchers import AntPathRequestMatcher, AnyRequestMatcher

logger = logging.getLogger(__name__)

ROLE_PREFIX = "ROLE_"


class PolicyDecision(Enum):
    """Result of a policy evaluation."""

    ALLOW = "allow"
    DENY = "deny"
    NO_MATCH = "no_match"


class Access(Enum):
    PERMIT_ALL = "permit_all"
    DENY_ALL = "deny_all"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"
    HAS_ROLE = "has_role"
    HAS_ANY_ROLE = "has_any_role"
    HAS_AUTHORITY = "has_authority"


def role_authority(role: str) -> str:
    """``"ADMIN"`` → ``"ROLE_ADMIN"`` (already-prefixed names pass through)."""
    return role if role.startswith(ROLE_PREFIX) else f"{ROLE_PREFIX}{role}"


@dataclass(frozen=True)
class AccessRule:
    """A single URL access rule.

    Attributes
    ----------
    matcher:
        Which requests the rule applies to.
    access:
        The check to perform.
    authorities:
        Required authorities for the ``HAS_*`` checks (any one suffices).
    description:
        Human-readable description.
    """

    matcher: Any
    access: Access
    authorities: Tuple[str, ...] = ()
    description: str = ""

    def applies_to(self, request: Any) -> bool:
        return self.matcher.matches(request)

    def grants(self, authentication: Optional[Authentication]) -> bool:
        """Return ``True`` if *authentication* satisfies this rule."""
        if self.access is Access.PERMIT_ALL:
            return True
        if self.access is Access.DENY_ALL:
            return False
        is_anonymous = authentication is None or authentication.is_anonymous
        if self.access is Access.ANONYMOUS:
            return is_anonymous
        if is_anonymous or not authentication.authenticated:
            return False
        if self.access is Access.AUTHENTICATED:
            return True
        return any(authentication.has_authority(a) for a in self.authorities)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AccessRule:
        """Parse from a config dict."""
        pattern = data.get("pattern")
        matcher = AntPathRequestMatcher(pattern, data.get("method")) if pattern else AnyRequestMatcher()
        access = Access(data.get("access", "authenticated"))
        roles = data.get("roles", [])
        if access in (Access.HAS_ROLE, Access.HAS_ANY_ROLE):
            authorities = tuple(role_authority(r) for r in roles)
        else:
            authorities = tuple(data.get("authorities", roles))
        if access in (Access.HAS_ROLE, Access.HAS_ANY_ROLE, Access.HAS_AUTHORITY) and not authorities:
            raise ValueError(f"Access '{access.value}' requires at least one role or authority")
        return cls(matcher, access, authorities, data.get("description", ""))


def load_rules(rule_list: List[Dict[str, Any]]) -> List[AccessRule]:
    """Parse a list of rule dicts into :class:`AccessRule` objects.

    Raises ``ValueError`` on the first invalid rule; a skipped access
    rule would silently widen access.
    """
    rules = []
    for idx, item in enumerate(rule_list):
        try:
            rules.append(AccessRule.from_dict(item))
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Invalid access rule #{idx} {item!r}: {exc}") from exc
    return rules


@dataclass
class AccessPolicyEngine:
    """Evaluates access rules.

    Parameters
    ----------
    rules:
        Ordered list of rules.  First match wins.
    default_effect:
        Effect when no rule matches (``"allow"`` or ``"deny"``).
    """

    rules: List[AccessRule] = field(default_factory=list)
    default_effect: str = "deny"

    def evaluate(self, authentication: Optional[Authentication], request: Any) -> PolicyDecision:
        """Return :attr:`PolicyDecision.ALLOW` or :attr:`PolicyDecision.DENY`."""
        for rule in self.rules:
            if rule.applies_to(request):
                decision = PolicyDecision.ALLOW if rule.grants(authentication) else PolicyDecision.DENY
                logger.debug(
                    "Access rule match: %s %s → %s (path=%s)",
                    rule.access.value,
                    rule.matcher,
                    decision.value,
                    getattr(request, "path", "?"),
                )
                return decision

        default = PolicyDecision.ALLOW if self.default_effect == "allow" else PolicyDecision.DENY
        logger.debug(
            "No access rule for path=%s → default=%s", getattr(request, "path", "?"), default.value
        )
        return default
