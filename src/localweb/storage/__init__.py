"""Read-only facade over the local site store."""

from .exceptions import SiteNotFoundError, StorageFaultError, StoreUnavailableError
from .site_storage import SiteStorage, StorageExport, StorageStats

__all__ = [
    "SiteNotFoundError",
    "SiteStorage",
    "StorageExport",
    "StorageFaultError",
    "StorageStats",
    "StoreUnavailableError",
]
