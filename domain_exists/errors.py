"""Exceptions raised by the domain existence service.

Configuration problems are fatal and stop the process before it serves.
Lookup validation problems are per-request and turn into a 400 response.
Database failures are not exceptions at this level: the checker folds them
into an ``execution_error`` outcome.
"""


class DomainExistsError(Exception):
    """Base class for all service exceptions."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigError(DomainExistsError):
    """Raised when the lookup configuration cannot be loaded or is invalid."""


class InvalidLookupError(DomainExistsError):
    """Raised when a lookup request carries no usable domain."""


__all__ = ["DomainExistsError", "ConfigError", "InvalidLookupError"]
