"""Configuration file loading and chain assembly.

Loads a YAML configuration file, expands ``${ENV_VAR}`` placeholders,
validates against :class:`~guardchain.config.schema.ChainConfig` and
turns the result into a ready-to-build
:class:`~guardchain.builder.HttpSecurityBuilder`.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from guardchain.authentication import (
    AuthenticationManager,
    DaoAuthenticationProvider,
    InMemoryUserDetailsService,
    UserDetails,
    UserDetailsService,
)
from guardchain.builder import HttpSecurityBuilder
from guardchain.config.env import expand_env_vars
from guardchain.config.schema import ChainConfig, UserConfig
from guardchain.errors import ConfigurationError
from guardchain.logging_config import secret_redaction_filter
from guardchain.web.authz import role_authority

logger = logging.getLogger(__name__)

# Recognised config file extensions.
_YAML_EXTS = frozenset({".yaml", ".yml"})


def _read_config_file(cfg_fpath: str) -> Dict[str, Any]:
    """Read and parse a YAML config file from *cfg_fpath*.

    Raises :class:`ConfigurationError` on I/O or parse errors.
    """
    ext = os.path.splitext(cfg_fpath)[1].lower()
    if ext not in _YAML_EXTS:
        raise ConfigurationError(
            f"Unsupported config file extension '{ext}'. "
            "Only YAML files (.yaml, .yml) are supported."
        )

    try:
        with open(cfg_fpath, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Error reading configuration file: {cfg_fpath}\n  {exc}") from exc

    if raw_data is None:
        return {}
    if not isinstance(raw_data, dict):
        raise ConfigurationError(
            "Top-level configuration content must be a YAML mapping (dictionary)."
        )
    return raw_data


def _format_validation_errors(exc: ValidationError) -> str:
    """Format Pydantic validation errors into a readable multi-line string."""
    lines: List[str] = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"])
        lines.append(f"  • {loc}: {err['msg']}")
    return "\n".join(lines)


# ── Public API ───────────────────────────────────────────────────────────


def parse_chain_config(raw_data: Dict[str, Any]) -> ChainConfig:
    """Expand env vars in *raw_data* and validate it.

    Raises:
        ConfigurationError: With every validation failure listed.
    """
    raw_data = expand_env_vars(raw_data)
    try:
        return ChainConfig.model_validate(raw_data)
    except ValidationError as exc:
        error_summary = _format_validation_errors(exc)
        raise ConfigurationError(
            f"Configuration validation failed ({len(exc.errors())} error(s)):\n" f"{error_summary}"
        ) from exc


def load_chain_config(cfg_fpath: str) -> ChainConfig:
    """Load, expand and validate a chain configuration file.

    Steps:
        1. Read YAML file
        2. Expand ``${VAR}`` environment variable references
        3. Validate against :class:`ChainConfig` (Pydantic)

    Raises:
        ConfigurationError: On file I/O errors, parse errors, or
            validation failures (all errors reported at once).
    """
    logger.debug("Loading configuration file: %s", cfg_fpath)

    if not os.path.exists(cfg_fpath):
        raise ConfigurationError(f"Configuration file does not exist: {cfg_fpath}")

    config = parse_chain_config(_read_config_file(cfg_fpath))
    logger.info(
        "Loaded chain configuration from %s (%d user(s))", cfg_fpath, len(config.users)
    )
    return config


def _user_details(user: UserConfig) -> UserDetails:
    authorities = [role_authority(r) for r in user.roles] + list(user.authorities)
    secret_redaction_filter.register(user.password)
    return UserDetails(
        username=user.username,
        password=user.password,
        authorities=tuple(dict.fromkeys(authorities)),
        enabled=user.enabled,
    )


def builder_from_config(
    config: ChainConfig,
    authentication_manager: Optional[AuthenticationManager] = None,
) -> HttpSecurityBuilder:
    """Return an unbuilt :class:`HttpSecurityBuilder` set up from *config*.

    In-memory users get a DAO provider ahead of *authentication_manager*,
    which stays the parent.  The caller may keep customizing the builder
    before calling ``build()``.
    """
    builder = HttpSecurityBuilder(authentication_manager)

    if config.users:
        users = InMemoryUserDetailsService(_user_details(u) for u in config.users)
        builder.set_shared_object(UserDetailsService, users)
        builder.authentication_provider(DaoAuthenticationProvider(users))

    matcher = config.matcher
    if matcher.type == "ant":
        builder.ant_matcher(matcher.pattern, matcher.method)
    elif matcher.type == "regex":
        builder.regex_matcher(matcher.pattern, matcher.method)

    if config.defaults:
        builder.apply_default_configurators()

    if config.session_management is not None:
        sm = config.session_management
        session = builder.session_management()
        if sm.stateless:
            session.stateless()
        else:
            session.session_fixation(sm.session_fixation)
        if sm.invalid_session_url:
            session.invalid_session_url(sm.invalid_session_url)

    if config.anonymous is not None:
        anon = builder.anonymous().principal(config.anonymous.principal)
        anon.authorities(config.anonymous.authorities)
        if config.anonymous.key:
            anon.key(config.anonymous.key)

    if config.logout is not None:
        lo = config.logout
        logout = builder.logout().logout_url(lo.logout_url).logout_success_url(lo.logout_success_url)
        logout.invalidate_http_session(lo.invalidate_session)
        if lo.delete_cookies:
            logout.delete_cookies(*lo.delete_cookies)

    if config.requires_channel:
        channel = builder.requires_channel()
        for rule in config.requires_channel:
            pending = channel.ant_matchers(rule.pattern, method=rule.method)
            if rule.requires == "https":
                pending.requires_secure()
            elif rule.requires == "http":
                pending.requires_insecure()
            else:
                pending.requires_any()

    if config.pre_authenticated is not None:
        pre = builder.pre_authenticated().principal_header(config.pre_authenticated.principal_header)
        if config.pre_authenticated.mappable_roles:
            pre.mappable_roles(
                *config.pre_authenticated.mappable_roles,
                header=config.pre_authenticated.roles_header,
            )

    if config.authorize is not None:
        authz = builder.authorize_requests().default_effect(config.authorize.default_effect)
        authz.rules_from_config([r.model_dump() for r in config.authorize.rules])

    if config.form_login is not None:
        fl = config.form_login
        form = builder.form_login().login_page(fl.login_page)
        form.default_success_url(fl.default_success_url, fl.always_use_default_target)
        form.username_parameter(fl.username_parameter).password_parameter(fl.password_parameter)
        if fl.login_processing_url:
            form.login_processing_url(fl.login_processing_url)
        if fl.failure_url:
            form.failure_url(fl.failure_url)
        form.permit_all(fl.permit_all)

    if config.http_basic is not None:
        builder.http_basic().realm_name(config.http_basic.realm)

    if config.remember_me is not None:
        rm = config.remember_me
        remember = builder.remember_me().token_validity_seconds(rm.token_validity_seconds)
        remember.cookie_name(rm.cookie_name).parameter(rm.parameter).always_remember(rm.always_remember)
        if rm.key:
            remember.key(rm.key)

    logger.debug("Builder prepared from config: %r", builder)
    return builder
