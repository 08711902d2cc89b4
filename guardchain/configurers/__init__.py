"""Configurator variants, one per policy area."""

from guardchain.configurers.anonymous import AnonymousConfigurator
from guardchain.configurers.base import SecurityConfigurator
from guardchain.configurers.channel_security import ChannelSecurityConfigurator
from guardchain.configurers.exception_handling import ExceptionHandlingConfigurator
from guardchain.configurers.form_login import FormLoginConfigurator
from guardchain.configurers.http_basic import HttpBasicConfigurator
from guardchain.configurers.logout import LogoutConfigurator
from guardchain.configurers.pre_authenticated import PreAuthenticatedConfigurator
from guardchain.configurers.remember_me import RememberMeConfigurator
from guardchain.configurers.request_api import RequestApiConfigurator
from guardchain.configurers.request_cache import RequestCacheConfigurator
from guardchain.configurers.security_context import SecurityContextConfigurator
from guardchain.configurers.session_management import SessionManagementConfigurator
from guardchain.configurers.url_authorization import UrlAuthorizationConfigurator

__all__ = [
    "AnonymousConfigurator",
    "ChannelSecurityConfigurator",
    "ExceptionHandlingConfigurator",
    "FormLoginConfigurator",
    "HttpBasicConfigurator",
    "LogoutConfigurator",
    "PreAuthenticatedConfigurator",
    "RememberMeConfigurator",
    "RequestApiConfigurator",
    "RequestCacheConfigurator",
    "SecurityConfigurator",
    "SecurityContextConfigurator",
    "SessionManagementConfigurator",
    "UrlAuthorizationConfigurator",
]
