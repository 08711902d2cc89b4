"""Pydantic configuration models for a declarative security chain.

Example YAML::

    matcher:
      type: ant
      pattern: /app/**
    users:
      - username: alice
        password: ${ALICE_PASSWORD}
        roles: [USER, ADMIN]
    form_login:
      login_page: /app/login
      permit_all: true
    authorize:
      rules:
        - {pattern: /app/admin/**, access: has_role, roles: [ADMIN]}
        - {access: authenticated}
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from guardchain.constants import (
    ANONYMOUS_PRINCIPAL,
    ANONYMOUS_ROLE,
    DEFAULT_LOGIN_PAGE,
    DEFAULT_LOGOUT_SUCCESS_URL,
    DEFAULT_LOGOUT_URL,
    DEFAULT_PASSWORD_PARAMETER,
    DEFAULT_PRINCIPAL_HEADER,
    DEFAULT_REALM,
    DEFAULT_USERNAME_PARAMETER,
    REMEMBER_ME_COOKIE,
    REMEMBER_ME_PARAMETER,
    REMEMBER_ME_VALIDITY_SECONDS,
)

# ── Scope and users ──────────────────────────────────────────────────────


class MatcherConfig(BaseModel):
    """Which requests the chain applies to."""

    type: Literal["any", "ant", "regex"] = "any"
    pattern: Optional[str] = Field(default=None, description="Ant or regex pattern.")
    method: Optional[str] = Field(default=None, description="Restrict to one HTTP method.")

    @model_validator(mode="after")
    def _pattern_required(self) -> MatcherConfig:
        if self.type != "any" and not self.pattern:
            raise ValueError(f"matcher type '{self.type}' requires a pattern")
        return self


class UserConfig(BaseModel):
    """An in-memory user."""

    username: str = Field(..., min_length=1)
    password: str = ""
    roles: List[str] = Field(default_factory=list, description="Role names, prefixed with ROLE_.")
    authorities: List[str] = Field(default_factory=list, description="Authorities used verbatim.")
    enabled: bool = True

    @field_validator("username")
    @classmethod
    def _strip_username(cls, v: str) -> str:
        return v.strip()


# ── Configurator sections ────────────────────────────────────────────────


class FormLoginConfig(BaseModel):
    login_page: str = DEFAULT_LOGIN_PAGE
    login_processing_url: Optional[str] = None
    failure_url: Optional[str] = None
    default_success_url: str = "/"
    always_use_default_target: bool = False
    username_parameter: str = DEFAULT_USERNAME_PARAMETER
    password_parameter: str = DEFAULT_PASSWORD_PARAMETER
    permit_all: bool = False


class HttpBasicConfig(BaseModel):
    realm: str = DEFAULT_REALM


class RememberMeConfig(BaseModel):
    key: Optional[str] = Field(default=None, description="Signing key. Supports ${ENV_VAR}.")
    token_validity_seconds: int = Field(default=REMEMBER_ME_VALIDITY_SECONDS, gt=0)
    cookie_name: str = REMEMBER_ME_COOKIE
    parameter: str = REMEMBER_ME_PARAMETER
    always_remember: bool = False


class LogoutConfig(BaseModel):
    logout_url: str = DEFAULT_LOGOUT_URL
    logout_success_url: str = DEFAULT_LOGOUT_SUCCESS_URL
    invalidate_session: bool = True
    delete_cookies: List[str] = Field(default_factory=list)


class SessionManagementConfig(BaseModel):
    session_fixation: Literal["migrate", "new", "none"] = "migrate"
    invalid_session_url: Optional[str] = None
    stateless: bool = False


class ChannelRuleConfig(BaseModel):
    pattern: str = Field(..., min_length=1)
    method: Optional[str] = None
    requires: Literal["https", "http", "any"] = "https"


class AnonymousConfig(BaseModel):
    key: Optional[str] = None
    principal: str = ANONYMOUS_PRINCIPAL
    authorities: List[str] = Field(default_factory=lambda: [ANONYMOUS_ROLE])


class PreAuthenticatedConfig(BaseModel):
    principal_header: str = DEFAULT_PRINCIPAL_HEADER
    roles_header: str = "x-remote-roles"
    mappable_roles: List[str] = Field(default_factory=list)


class AccessRuleConfig(BaseModel):
    pattern: Optional[str] = Field(default=None, description="Ant pattern; omit for any request.")
    method: Optional[str] = None
    access: Literal[
        "permit_all",
        "deny_all",
        "authenticated",
        "anonymous",
        "has_role",
        "has_any_role",
        "has_authority",
    ] = "authenticated"
    roles: List[str] = Field(default_factory=list)
    authorities: List[str] = Field(default_factory=list)
    description: str = ""

    @model_validator(mode="after")
    def _grants_required(self) -> AccessRuleConfig:
        if self.access in ("has_role", "has_any_role") and not self.roles:
            raise ValueError(f"access '{self.access}' requires roles")
        if self.access == "has_authority" and not self.authorities:
            raise ValueError("access 'has_authority' requires authorities")
        return self


class AuthorizationConfig(BaseModel):
    default_effect: Literal["allow", "deny"] = "deny"
    rules: List[AccessRuleConfig] = Field(default_factory=list)


# ── Top level ────────────────────────────────────────────────────────────


class ChainConfig(BaseModel):
    """Root configuration for one security filter chain.

    Sections that are absent are not applied; ``defaults: false`` skips
    the default configurator set.
    """

    matcher: MatcherConfig = Field(default_factory=MatcherConfig)
    defaults: bool = True
    users: List[UserConfig] = Field(default_factory=list)
    form_login: Optional[FormLoginConfig] = None
    http_basic: Optional[HttpBasicConfig] = None
    remember_me: Optional[RememberMeConfig] = None
    logout: Optional[LogoutConfig] = None
    session_management: Optional[SessionManagementConfig] = None
    requires_channel: Optional[List[ChannelRuleConfig]] = None
    anonymous: Optional[AnonymousConfig] = None
    pre_authenticated: Optional[PreAuthenticatedConfig] = None
    authorize: Optional[AuthorizationConfig] = None

    @field_validator("users")
    @classmethod
    def _unique_usernames(cls, v: List[UserConfig]) -> List[UserConfig]:
        seen = set()
        for user in v:
            name = user.username.lower()
            if name in seen:
                raise ValueError(f"duplicate username '{user.username}'")
            seen.add(name)
        return v
