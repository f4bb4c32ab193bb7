"""Database models for imported sites and their files."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, LargeBinary, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base

KEY_SEPARATOR = "::"


def file_key(site_id: str, path: str) -> str:
    """Return the primary key of the file stored at ``path`` within ``site_id``."""

    return f"{site_id}{KEY_SEPARATOR}{path}"


class Site(Base):
    """An imported bundle of files grouped under one identifier."""

    __tablename__ = "sites"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255))
    index_path: Mapped[str | None] = mapped_column(Text)
    file_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    total_bytes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class SiteFile(Base):
    """A stored payload addressed by its site and logical path."""

    __tablename__ = "files"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    # No foreign key: files stay readable without a site row.
    site_id: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True
    )
    path: Mapped[str] = mapped_column(Text, nullable=False)
    blob: Mapped[bytes | None] = mapped_column(LargeBinary)
    type: Mapped[str | None] = mapped_column(String(255))
    size: Mapped[int | None] = mapped_column(Integer)
