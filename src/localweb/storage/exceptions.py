"""Exceptions raised by the site storage layer."""

from __future__ import annotations


class StoreUnavailableError(RuntimeError):
    """Raised when the local store could not be initialised."""


class StorageFaultError(RuntimeError):
    """Raised when a read against an open store fails."""


class SiteNotFoundError(KeyError):
    """Raised when a site identifier is unknown to the store."""
