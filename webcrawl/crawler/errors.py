"""Exception types raised by the crawler package."""

from __future__ import annotations

from typing import Sequence


class ConfigurationError(ValueError):
    """Raised when a crawler configuration value is invalid."""


class InvalidDomainError(ConfigurationError):
    """Raised when a string is not a well-formed domain under a public suffix."""


class InvalidRequestError(ValueError):
    """Raised when a crawl request cannot be built from the given URL."""


class EmptyFrontierError(RuntimeError):
    """Raised when a candidate is requested from an empty frontier."""


class CrawlerStateError(RuntimeError):
    """Raised when a crawler operation is not allowed in its current state."""


class EventCallbackError(RuntimeError):
    """Raised after dispatch when one or more custom callbacks failed."""

    def __init__(self, message: str, errors: Sequence[BaseException]) -> None:
        super().__init__(message)
        self.errors = list(errors)


__all__ = [
    "ConfigurationError",
    "CrawlerStateError",
    "EmptyFrontierError",
    "EventCallbackError",
    "InvalidDomainError",
    "InvalidRequestError",
]
