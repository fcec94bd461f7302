from __future__ import annotations


class FipcError(Exception):
    """Base class for controller errors."""


class NotFoundError(FipcError):
    """A required record is missing from an inventory snapshot."""


class TransportError(FipcError):
    """Talking to the cluster or cloud API failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigError(FipcError):
    pass
