"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, message is stored as an attribute so callers can inspect it without
    # parsing str(exception). Don't raise this directly - use a specific subclass.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class EntityNotFoundException(DomainException):
    """Raised when an entity is not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ProviderNotFoundError(DomainException):
    """No registered provider can answer the requested top chart.

    Resolution errors are fatal to the request and are never cached.

    HTTP Status: 400
    """

    def __init__(self, provider: str, subject_type: str, item_type: str) -> None:
        super().__init__(
            f"No provider '{provider}' supports {subject_type} -> {item_type} tops"
        )
        self.provider = provider
        self.subject_type = subject_type
        self.item_type = item_type


class ConfigurationError(DomainException):
    """Application misconfiguration.

    Raised when required configuration is missing or invalid.

    HTTP Status: 503 (Service Unavailable)
    """

    pass


class ExternalServiceError(DomainException):
    """External service (Last.fm, ...) returned an error or malformed data.

    HTTP Status: 502 (Bad Gateway)
    """

    pass


class TopChartsUnavailableError(ExternalServiceError):
    """A provider fetch failed and was recorded as a failed cache record.

    Hey future me - this is what the UI turns into "top charts temporarily
    unavailable". error_message is the same text stored on the cache row, so the
    diagnostics in the DB and in the logs line up.

    HTTP Status: 503
    """

    def __init__(self, scope_key: str, error_message: str, cache_key: Any = None) -> None:
        super().__init__(
            f"Top charts temporarily unavailable for scope '{scope_key}'"
        )
        self.scope_key = scope_key
        self.error_message = error_message
        self.cache_key = cache_key


__all__ = [
    "ConfigurationError",
    "DomainException",
    "EntityNotFoundException",
    "ExternalServiceError",
    "ProviderNotFoundError",
    "TopChartsUnavailableError",
]
