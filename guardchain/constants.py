"""Shared constants for Guardchain."""

PROJECT_NAME = "Guardchain"
PROJECT_VERSION = "0.1.0"

# Logging defaults
LOG_DIR = "logs"
DEFAULT_LOG_LEVEL = "INFO"

# Session attribute names
SECURITY_CONTEXT_SESSION_KEY = "GUARDCHAIN_SECURITY_CONTEXT"
SAVED_REQUEST_SESSION_KEY = "GUARDCHAIN_SAVED_REQUEST"

# Form login defaults
DEFAULT_LOGIN_PAGE = "/login"
DEFAULT_USERNAME_PARAMETER = "username"
DEFAULT_PASSWORD_PARAMETER = "password"

# Logout defaults
DEFAULT_LOGOUT_URL = "/logout"
DEFAULT_LOGOUT_SUCCESS_URL = "/login?logout"

# Remember-me defaults
REMEMBER_ME_COOKIE = "remember-me"
REMEMBER_ME_PARAMETER = "remember-me"
REMEMBER_ME_VALIDITY_SECONDS = 14 * 24 * 3600

# Anonymous defaults
ANONYMOUS_PRINCIPAL = "anonymousUser"
ANONYMOUS_ROLE = "ROLE_ANONYMOUS"

# Basic auth defaults
DEFAULT_REALM = "Realm"

# Pre-authentication defaults
DEFAULT_PRINCIPAL_HEADER = "x-remote-user"
