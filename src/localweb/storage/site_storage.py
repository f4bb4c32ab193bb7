"""High-level read API for the local site store."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import defer

from ..db import Site, SiteFile, create_engine, file_key, get_sessionmaker, init_db
from .exceptions import StorageFaultError, StoreUnavailableError

logger = logging.getLogger(__name__)


def _retrieve_exception(future: asyncio.Future[None]) -> None:
    # Marks a failed open as seen even when every waiter was cancelled.
    if not future.cancelled():
        future.exception()


@dataclass(slots=True, frozen=True)
class StorageStats:
    """Aggregate figures across every imported site."""

    site_count: int
    total_bytes: int


@dataclass(slots=True, frozen=True)
class StorageExport:
    """Every site and every file, payloads included."""

    sites: list[Site]
    files: list[SiteFile]


class SiteStorage:
    """Facade responsible for reading imported sites and files.

    The store is opened lazily. Every read awaits :meth:`open`, which runs
    the schema migrations exactly once per instance no matter how many
    callers arrive concurrently.
    """

    def __init__(
        self, *, engine: AsyncEngine | None = None, db_url: str | None = None
    ) -> None:
        if engine is None:
            self.engine = create_engine(db_url)
        else:
            self.engine = engine
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None
        self._opening: asyncio.Future[None] | None = None

    @property
    def sessionmaker(self) -> async_sessionmaker[AsyncSession]:
        if self._sessionmaker is None:
            self._sessionmaker = get_sessionmaker(self.engine)
        return self._sessionmaker

    @property
    def is_open(self) -> bool:
        opening = self._opening
        return (
            opening is not None
            and opening.done()
            and not opening.cancelled()
            and opening.exception() is None
        )

    async def open(self) -> "SiteStorage":
        """Initialise the store on first use and return ``self``.

        Concurrent callers share one initialisation. A failed initialisation
        is remembered and re-raised to every later caller as
        :class:`StoreUnavailableError`.
        """

        if self._opening is None:
            self._opening = asyncio.ensure_future(self._initialize())
            self._opening.add_done_callback(_retrieve_exception)
        # Shielded so one cancelled waiter does not abort the shared open.
        await asyncio.shield(self._opening)
        return self

    async def _initialize(self) -> None:
        try:
            await init_db(self.engine)
        except Exception as exc:
            logger.exception("Failed to initialise site store at %s", self.engine.url)
            raise StoreUnavailableError(str(self.engine.url)) from exc
        logger.info("Site store ready at %s", self.engine.url)

    async def close(self) -> None:
        """Dispose of the underlying connection pool."""

        await self.engine.dispose()

    async def __aenter__(self) -> "SiteStorage":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        await self.close()

    async def get_site(self, site_id: str) -> Site | None:
        """Return the site stored under ``site_id``, or ``None`` if absent."""

        await self.open()
        try:
            async with self.sessionmaker() as session:
                return await session.get(Site, site_id)
        except SQLAlchemyError as exc:
            logger.exception("Failed to read site %s", site_id)
            raise StorageFaultError(f"Failed to read site {site_id!r}") from exc

    async def get_file(self, site_id: str, path: str) -> SiteFile | None:
        """Return the file stored at ``path`` for ``site_id``, or ``None``."""

        key = file_key(site_id, path)
        await self.open()
        try:
            async with self.sessionmaker() as session:
                return await session.get(SiteFile, key)
        except SQLAlchemyError as exc:
            logger.exception("Failed to read file %s", key)
            raise StorageFaultError(f"Failed to read file {key!r}") from exc

    async def list_sites(self) -> list[Site]:
        """Return every imported site, most recently updated first."""

        await self.open()
        try:
            async with self.sessionmaker() as session:
                result = await session.execute(
                    select(Site).order_by(Site.updated_at.desc(), Site.id)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            logger.exception("Failed to list sites")
            raise StorageFaultError("Failed to list sites") from exc

    async def list_site_files(self, site_id: str) -> list[SiteFile]:
        """Return the files of ``site_id`` ordered by path, without payloads."""

        await self.open()
        try:
            async with self.sessionmaker() as session:
                result = await session.execute(
                    select(SiteFile)
                    .options(defer(SiteFile.blob, raiseload=True))
                    .where(SiteFile.site_id == site_id)
                    .order_by(SiteFile.path)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            logger.exception("Failed to list files for site %s", site_id)
            raise StorageFaultError(
                f"Failed to list files for site {site_id!r}"
            ) from exc

    async def get_stats(self) -> StorageStats:
        """Return the number of sites and their combined size."""

        await self.open()
        try:
            async with self.sessionmaker() as session:
                result = await session.execute(
                    select(
                        func.count(Site.id),
                        func.coalesce(func.sum(Site.total_bytes), 0),
                    )
                )
                site_count, total_bytes = result.one()
        except SQLAlchemyError as exc:
            logger.exception("Failed to compute storage stats")
            raise StorageFaultError("Failed to compute storage stats") from exc
        return StorageStats(site_count=int(site_count), total_bytes=int(total_bytes))

    async def export_records(self) -> StorageExport:
        """Return all sites and files with their payloads from one session."""

        await self.open()
        try:
            async with self.sessionmaker() as session:
                sites = await session.execute(select(Site).order_by(Site.id))
                files = await session.execute(
                    select(SiteFile).order_by(SiteFile.site_id, SiteFile.path)
                )
                return StorageExport(
                    sites=list(sites.scalars().all()),
                    files=list(files.scalars().all()),
                )
        except SQLAlchemyError as exc:
            logger.exception("Failed to export site records")
            raise StorageFaultError("Failed to export site records") from exc
