"""Exceptions raised by the authorization flow core."""


class AuthFlowError(Exception):
    """Base exception for authflow errors."""


class ConfigurationFetchError(AuthFlowError):
    """Raised when the discovery document cannot be fetched or parsed."""


class InsecureRandomError(AuthFlowError):
    """Raised when no cryptographically secure random source is available."""
