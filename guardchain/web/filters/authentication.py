"""Authentication mechanism filters.

Each filter extracts evidence from the request, hands it to the
authentication manager and, on success, stores the result in the
request's security context.  None of them checks credentials itself.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Iterable, Optional, Tuple

from guardchain.authentication import Authentication, TokenKind, key_digest
from guardchain.constants import (
    ANONYMOUS_PRINCIPAL,
    ANONYMOUS_ROLE,
    DEFAULT_PASSWORD_PARAMETER,
    DEFAULT_PRINCIPAL_HEADER,
    DEFAULT_USERNAME_PARAMETER,
)
from guardchain.errors import AuthenticationError, BadCredentialsError
from guardchain.web.authz import role_authority
from guardchain.web.context import get_security_context

logger = logging.getLogger(__name__)


class PreAuthenticatedProcessingFilter:
    """Trusts a principal established by the container or a fronting proxy.

    Parameters
    ----------
    authentication_manager:
        Manager holding a :class:`PreAuthenticatedAuthenticationProvider`.
    principal_header:
        Header carrying the authenticated user name.
    roles_header:
        Optional header with comma-separated roles granted upstream.
    mappable_roles:
        Roles accepted from *roles_header*; others are dropped.
    """

    def __init__(
        self,
        authentication_manager: Any,
        principal_header: str = DEFAULT_PRINCIPAL_HEADER,
        roles_header: Optional[str] = None,
        mappable_roles: Iterable[str] = (),
    ) -> None:
        self.authentication_manager = authentication_manager
        self.principal_header = principal_header
        self.roles_header = roles_header
        self.mappable_roles = frozenset(mappable_roles)

    def _upstream_authorities(self, request: Any) -> Tuple[str, ...]:
        if not self.roles_header:
            return ()
        raw = request.header(self.roles_header, "") or ""
        roles = [r.strip() for r in raw.split(",") if r.strip()]
        return tuple(role_authority(r) for r in roles if r in self.mappable_roles)

    async def process(self, request: Any, response: Any, next_filter: Any) -> Any:
        ctx = get_security_context(request)
        principal = request.header(self.principal_header)
        if principal and not ctx.is_authenticated:
            token = Authentication(
                principal=principal,
                authorities=self._upstream_authorities(request),
                kind=TokenKind.PRE_AUTHENTICATED,
            )
            try:
                ctx.authentication = await self.authentication_manager.authenticate(token)
            except AuthenticationError as exc:
                logger.warning("Pre-authentication failed for '%s': %s", principal, exc)
        return await next_filter(request, response)


class UsernamePasswordAuthenticationFilter:
    """Processes login form submissions.

    Only requests matching *processing_matcher* are handled; the chain
    stops after a login attempt with a redirect (or a 401 when no failure
    URL is configured).
    """

    def __init__(
        self,
        authentication_manager: Any,
        processing_matcher: Any,
        success_url: str = "/",
        failure_url: Optional[str] = None,
        username_parameter: str = DEFAULT_USERNAME_PARAMETER,
        password_parameter: str = DEFAULT_PASSWORD_PARAMETER,
        always_use_default_target: bool = False,
        session_strategy: Any = None,
        remember_me_services: Any = None,
        request_cache: Any = None,
    ) -> None:
        self.authentication_manager = authentication_manager
        self.processing_matcher = processing_matcher
        self.success_url = success_url
        self.failure_url = failure_url
        self.username_parameter = username_parameter
        self.password_parameter = password_parameter
        self.always_use_default_target = always_use_default_target
        self.session_strategy = session_strategy
        self.remember_me_services = remember_me_services
        self.request_cache = request_cache

    async def process(self, request: Any, response: Any, next_filter: Any) -> Any:
        if not self.processing_matcher.matches(request):
            return await next_filter(request, response)

        username = (request.params.get(self.username_parameter) or "").strip()
        password = request.params.get(self.password_parameter) or ""
        token = Authentication.unauthenticated(username, password)
        ctx = get_security_context(request)

        try:
            result = await self.authentication_manager.authenticate(token)
        except AuthenticationError as exc:
            logger.warning("Form login failed for '%s': %s", username, exc)
            ctx.authentication = None
            if self.remember_me_services is not None:
                self.remember_me_services.login_fail(request, response)
            request.attributes["authentication_error"] = exc
            if self.failure_url:
                response.redirect(self.failure_url)
            else:
                response.send_error(401, "Authentication Failed")
            return None

        if self.session_strategy is not None:
            self.session_strategy.on_authentication(result, request, response)
        ctx.authentication = result
        if self.remember_me_services is not None:
            self.remember_me_services.login_success(request, response, result)
        response.redirect(self._target_url(request))
        return None

    def _target_url(self, request: Any) -> str:
        if self.always_use_default_target or self.request_cache is None:
            return self.success_url
        saved = self.request_cache.get_request(request)
        return saved.redirect_url if saved is not None else self.success_url


def _decode_basic(header: str) -> Tuple[str, str]:
    try:
        decoded = base64.b64decode(header[6:].strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise BadCredentialsError("Failed to decode basic authentication token") from exc
    username, sep, password = decoded.partition(":")
    if not sep:
        raise BadCredentialsError("Invalid basic authentication token")
    return username, password


class BasicAuthenticationFilter:
    """Processes ``Authorization: Basic`` headers."""

    def __init__(
        self,
        authentication_manager: Any,
        entry_point: Any,
        remember_me_services: Any = None,
    ) -> None:
        self.authentication_manager = authentication_manager
        self.entry_point = entry_point
        self.remember_me_services = remember_me_services

    async def process(self, request: Any, response: Any, next_filter: Any) -> Any:
        header = request.header("authorization")
        if not header or not header.lower().startswith("basic "):
            return await next_filter(request, response)

        ctx = get_security_context(request)
        try:
            username, password = _decode_basic(header)
            current = ctx.authentication
            if not (ctx.is_authenticated and current.name == username):
                result = await self.authentication_manager.authenticate(
                    Authentication.unauthenticated(username, password)
                )
                ctx.authentication = result
                if self.remember_me_services is not None:
                    self.remember_me_services.login_success(request, response, result)
        except AuthenticationError as exc:
            logger.warning("Basic authentication failed: %s", exc)
            ctx.authentication = None
            if self.remember_me_services is not None:
                self.remember_me_services.login_fail(request, response)
            self.entry_point.commence(request, response, exc)
            return None

        return await next_filter(request, response)


class RememberMeAuthenticationFilter:
    """Logs the user in from a remember-me cookie when nobody is authenticated."""

    def __init__(self, authentication_manager: Any, remember_me_services: Any) -> None:
        self.authentication_manager = authentication_manager
        self.remember_me_services = remember_me_services

    async def process(self, request: Any, response: Any, next_filter: Any) -> Any:
        ctx = get_security_context(request)
        if ctx.authentication is None:
            token = self.remember_me_services.auto_login(request, response)
            if token is not None:
                try:
                    ctx.authentication = await self.authentication_manager.authenticate(token)
                    logger.debug("Remember-me login for '%s'", token.name)
                except AuthenticationError as exc:
                    logger.warning("Remember-me token rejected: %s", exc)
                    self.remember_me_services.login_fail(request, response)
        return await next_filter(request, response)


class AnonymousAuthenticationFilter:
    """Populates an anonymous authentication when nobody is authenticated."""

    def __init__(
        self,
        key: str,
        principal: str = ANONYMOUS_PRINCIPAL,
        authorities: Iterable[str] = (ANONYMOUS_ROLE,),
    ) -> None:
        self._key_hash = key_digest(key)
        self.principal = principal
        self.authorities = tuple(authorities)

    async def process(self, request: Any, response: Any, next_filter: Any) -> Any:
        ctx = get_security_context(request)
        if ctx.authentication is None:
            ctx.authentication = Authentication.granted(
                self.principal, self.authorities, kind=TokenKind.ANONYMOUS, key_hash=self._key_hash
            )
        return await next_filter(request, response)
