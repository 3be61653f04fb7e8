"""Exceptions raised by ledgerview."""

from typing import Optional


class LedgerError(Exception):
    """Base class for ledgerview errors."""


class LedgerFetchError(LedgerError):
    """A page could not be fetched from the backend."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(LedgerError):
    """Settings are missing or invalid."""
