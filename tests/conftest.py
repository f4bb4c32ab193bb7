"""Shared pytest fixtures for storage and HTTP tests."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend import create_app
from localweb.db import (
    Site,
    SiteFile,
    create_engine,
    file_key,
    get_sessionmaker,
    init_db,
    session_scope,
)
from localweb.storage import SiteStorage


def make_site(site_id: str, **overrides: object) -> Site:
    """Return a site row with representative metadata."""

    values: dict[str, object] = {
        "id": site_id,
        "name": f"Site {site_id}",
        "file_count": 0,
        "total_bytes": 0,
    }
    values.update(overrides)
    return Site(**values)


def make_file(
    site_id: str,
    path: str,
    blob: bytes | None = b"",
    type: str | None = None,
) -> SiteFile:
    """Return a file row keyed the same way the importer keys it."""

    return SiteFile(
        key=file_key(site_id, path),
        site_id=site_id,
        path=path,
        blob=blob,
        type=type,
        size=len(blob) if blob is not None else None,
    )


async def seed_database(
    db_url: str,
    *,
    sites: Iterable[Site] = (),
    files: Iterable[SiteFile] = (),
) -> None:
    """Migrate the database at ``db_url`` and insert the given rows."""

    engine = create_engine(db_url)
    try:
        await init_db(engine)
        async with session_scope(get_sessionmaker(engine)) as session:
            session.add_all([*sites, *files])
    finally:
        await engine.dispose()


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    """Return the URL of a fresh SQLite database for one test."""

    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture()
def seed(db_url: str):
    """Return a synchronous helper that seeds the test database."""

    def _seed(*, sites: Iterable[Site] = (), files: Iterable[SiteFile] = ()) -> None:
        asyncio.run(seed_database(db_url, sites=sites, files=files))

    return _seed


@pytest.fixture()
def client(db_url: str) -> TestClient:
    """Provide a TestClient backed by a fresh app instance for each test."""

    app = create_app(storage=SiteStorage(db_url=db_url), scope_path="/")
    with TestClient(app) as test_client:
        yield test_client
