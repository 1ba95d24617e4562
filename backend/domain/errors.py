"""Exceptions raised by the location resolution services."""
from typing import Optional


class GeoSearchError(Exception):
    """Base class for all location resolution errors."""


class ConfigurationError(GeoSearchError):
    """Raised when a rule or provider configuration is unusable."""

    def __init__(self, message: str, rule_name: Optional[str] = None):
        super().__init__(message)
        self.rule_name = rule_name


class TransportError(GeoSearchError):
    """Raised when an HTTP request fails, times out or returns garbage."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class ProviderError(GeoSearchError):
    """Raised when a search provider answers with a structured error (quota, bad key, ...)."""

    def __init__(self, provider: str, code: str):
        super().__init__(f"{provider} search error: {code}")
        self.provider = provider
        self.code = code
