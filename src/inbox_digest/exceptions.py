"""Unified exception hierarchy for inbox-digest."""


class InboxDigestError(Exception):
    """Base exception for all inbox-digest errors."""


class ConfigError(InboxDigestError):
    """Invalid or missing configuration value."""


# Providers
class ProviderError(InboxDigestError):
    """Base exception for mail provider operations."""


class ProviderAuthError(ProviderError):
    """Account credentials are missing or unusable."""


class ProviderFetchError(ProviderError):
    """Failed to fetch messages from a mail provider."""


class ProviderArchiveError(ProviderError):
    """Failed to archive a message at the provider."""


# Model
class ModelError(InboxDigestError):
    """Base exception for model client operations."""


class ModelInvocationError(ModelError):
    """Transport failure or unusable response from a model tier."""


# Cache
class CacheError(InboxDigestError):
    """Base exception for summary cache operations."""


class CacheUnavailableError(CacheError):
    """The summary cache cannot be read or written."""
