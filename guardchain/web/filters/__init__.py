"""Concrete filter kinds of the baseline order."""

from guardchain.web.filters.access import AuthorizationFilter, ExceptionTranslationFilter
from guardchain.web.filters.authentication import (
    AnonymousAuthenticationFilter,
    BasicAuthenticationFilter,
    PreAuthenticatedProcessingFilter,
    RememberMeAuthenticationFilter,
    UsernamePasswordAuthenticationFilter,
)
from guardchain.web.filters.channel import ChannelProcessingFilter, ChannelRequirement
from guardchain.web.filters.context import (
    SecurityContextHolderAwareRequestFilter,
    SecurityContextPersistenceFilter,
)
from guardchain.web.filters.logout import (
    CookieClearingLogoutHandler,
    LogoutFilter,
    SecurityContextLogoutHandler,
)
from guardchain.web.filters.savedrequest import RequestCacheAwareFilter
from guardchain.web.filters.session import SessionManagementFilter

__all__ = [
    "AnonymousAuthenticationFilter",
    "AuthorizationFilter",
    "BasicAuthenticationFilter",
    "ChannelProcessingFilter",
    "ChannelRequirement",
    "CookieClearingLogoutHandler",
    "ExceptionTranslationFilter",
    "LogoutFilter",
    "PreAuthenticatedProcessingFilter",
    "RememberMeAuthenticationFilter",
    "RequestCacheAwareFilter",
    "SecurityContextHolderAwareRequestFilter",
    "SecurityContextLogoutHandler",
    "SecurityContextPersistenceFilter",
    "SessionManagementFilter",
    "UsernamePasswordAuthenticationFilter",
]
