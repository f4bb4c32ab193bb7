"""Database setup for localweb."""

from .session import create_engine, get_sessionmaker, init_db, session_scope
from .models import Site, SiteFile, file_key

__all__ = [
    "create_engine",
    "get_sessionmaker",
    "init_db",
    "session_scope",
    "Site",
    "SiteFile",
    "file_key",
]
