"""Tests for the read-only site storage facade."""

from __future__ import annotations

import asyncio
import gc
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import text

from localweb.db import file_key
from localweb.storage import (
    SiteStorage,
    StorageFaultError,
    StorageStats,
    StoreUnavailableError,
)
from localweb.storage import site_storage as site_storage_module
from tests.conftest import make_file, make_site, seed_database


def test_file_key_is_deterministic_and_collision_free() -> None:
    assert file_key("S1", "index.html") == "S1::index.html"
    assert file_key("S1", "index.html") == file_key("S1", "index.html")

    paths = ["index.html", "blog/index.html", "blog/", "", "a::b", "a/b::c"]
    keys = {file_key("S1", path) for path in paths}
    assert len(keys) == len(paths)


@pytest.mark.asyncio
async def test_reads_return_records_or_none(db_url: str) -> None:
    await seed_database(
        db_url,
        sites=[make_site("S1", index_path="home.html")],
        files=[make_file("S1", "assets/app.js", b"console.log(1);", "text/javascript")],
    )

    async with SiteStorage(db_url=db_url) as storage:
        site = await storage.get_site("S1")
        assert site is not None
        assert site.index_path == "home.html"

        record = await storage.get_file("S1", "assets/app.js")
        assert record is not None
        assert record.key == "S1::assets/app.js"
        assert record.blob == b"console.log(1);"
        assert record.type == "text/javascript"

        assert await storage.get_site("missing") is None
        assert await storage.get_file("S1", "assets/missing.js") is None
        assert await storage.get_file("S2", "assets/app.js") is None


@pytest.mark.asyncio
async def test_file_without_site_row_is_still_readable(db_url: str) -> None:
    await seed_database(db_url, files=[make_file("orphan", "index.html", b"<p>hi</p>")])

    async with SiteStorage(db_url=db_url) as storage:
        assert await storage.get_site("orphan") is None
        record = await storage.get_file("orphan", "index.html")
        assert record is not None and record.blob == b"<p>hi</p>"


@pytest.mark.asyncio
async def test_open_runs_initialisation_once_for_concurrent_callers(
    db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls = 0
    release = asyncio.Event()

    async def fake_init_db(engine) -> None:
        nonlocal calls
        calls += 1
        await release.wait()

    monkeypatch.setattr(site_storage_module, "init_db", fake_init_db)
    storage = SiteStorage(db_url=db_url)

    waiters = [asyncio.create_task(storage.open()) for _ in range(5)]
    await asyncio.sleep(0)
    assert not storage.is_open
    release.set()
    results = await asyncio.gather(*waiters)

    assert calls == 1
    assert all(result is storage for result in results)
    assert storage.is_open

    await storage.open()
    assert calls == 1
    await storage.close()


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_abort_initialisation(
    db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    release = asyncio.Event()

    async def fake_init_db(engine) -> None:
        await release.wait()

    monkeypatch.setattr(site_storage_module, "init_db", fake_init_db)
    storage = SiteStorage(db_url=db_url)

    first = asyncio.create_task(storage.open())
    second = asyncio.create_task(storage.open())
    await asyncio.sleep(0)
    first.cancel()
    release.set()

    assert await second is storage
    assert first.cancelled()
    assert storage.is_open
    await storage.close()


@pytest.mark.asyncio
async def test_initialisation_failure_reaches_every_caller(
    db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls = 0

    async def failing_init_db(engine) -> None:
        nonlocal calls
        calls += 1
        raise OSError("disk unavailable")

    monkeypatch.setattr(site_storage_module, "init_db", failing_init_db)
    storage = SiteStorage(db_url=db_url)

    results = await asyncio.gather(
        storage.get_site("S1"),
        storage.get_file("S1", "index.html"),
        return_exceptions=True,
    )
    assert all(isinstance(result, StoreUnavailableError) for result in results)
    assert isinstance(results[0].__cause__, OSError)

    with pytest.raises(StoreUnavailableError):
        await storage.list_sites()
    assert calls == 1
    assert not storage.is_open
    await storage.close()


@pytest.mark.asyncio
async def test_read_failure_raises_storage_fault(db_url: str) -> None:
    async with SiteStorage(db_url=db_url) as storage:
        async with storage.engine.begin() as conn:
            await conn.execute(text("DROP TABLE files"))

        with pytest.raises(StorageFaultError) as excinfo:
            await storage.get_file("S1", "index.html")

    assert "S1::index.html" in str(excinfo.value)


@pytest.mark.asyncio
async def test_listing_and_stats(db_url: str) -> None:
    now = datetime.now(UTC)
    await seed_database(
        db_url,
        sites=[
            make_site("old", total_bytes=100, file_count=1, updated_at=now - timedelta(days=1)),
            make_site("new", total_bytes=250, file_count=2, updated_at=now),
        ],
        files=[
            make_file("new", "index.html", b"<html></html>", "text/html"),
            make_file("new", "assets/app.js", b"1;"),
            make_file("old", "index.html", b"old"),
        ],
    )

    async with SiteStorage(db_url=db_url) as storage:
        sites = await storage.list_sites()
        assert [site.id for site in sites] == ["new", "old"]

        files = await storage.list_site_files("new")
        assert [record.path for record in files] == ["assets/app.js", "index.html"]
        assert {record.site_id for record in files} == {"new"}

        assert await storage.list_site_files("missing") == []
        assert await storage.get_stats() == StorageStats(site_count=2, total_bytes=350)


@pytest.mark.asyncio
async def test_stats_on_empty_store(db_url: str) -> None:
    async with SiteStorage(db_url=db_url) as storage:
        assert await storage.get_stats() == StorageStats(site_count=0, total_bytes=0)


@pytest.mark.asyncio
async def test_failed_open_without_waiters_is_not_reported_unretrieved(
    db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    release = asyncio.Event()

    async def failing_init_db(engine) -> None:
        await release.wait()
        raise OSError("disk unavailable")

    monkeypatch.setattr(site_storage_module, "init_db", failing_init_db)
    loop = asyncio.get_running_loop()
    reported: list[dict] = []
    previous_handler = loop.get_exception_handler()
    loop.set_exception_handler(lambda _loop, context: reported.append(context))
    try:
        storage = SiteStorage(db_url=db_url)
        waiter = asyncio.create_task(storage.open())
        await asyncio.sleep(0)
        waiter.cancel()
        release.set()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        for _ in range(3):
            await asyncio.sleep(0)

        assert storage._opening is not None and storage._opening.done()
        assert not storage.is_open
        await storage.close()
        del storage, waiter
        gc.collect()
    finally:
        loop.set_exception_handler(previous_handler)

    assert not [
        context for context in reported if "never retrieved" in context.get("message", "")
    ]


@pytest.mark.asyncio
async def test_export_records_returns_payloads_from_one_read(db_url: str) -> None:
    payloads = {
        "index.html": b"<h1>hola</h1>",
        "img/logo.png": b"\x89PNG\r\n\x1a\n\x00\xff\x00",
        "empty.txt": b"",
    }
    await seed_database(
        db_url,
        sites=[make_site("S2"), make_site("S1", index_path="index.html")],
        files=[make_file("S1", path, blob) for path, blob in payloads.items()]
        + [make_file("S2", "missing.css", None, "text/css")],
    )

    async with SiteStorage(db_url=db_url) as storage:
        export = await storage.export_records()

    assert [site.id for site in export.sites] == ["S1", "S2"]
    assert [record.key for record in export.files] == [
        "S1::empty.txt",
        "S1::img/logo.png",
        "S1::index.html",
        "S2::missing.css",
    ]
    exported = {record.path: record.blob for record in export.files if record.site_id == "S1"}
    assert exported == payloads
    assert export.files[-1].blob is None
