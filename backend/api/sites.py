"""Read-only routes describing the imported sites."""
from __future__ import annotations

import base64
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel

from localweb.db import Site, SiteFile
from localweb.storage import SiteNotFoundError, SiteStorage

router = APIRouter(prefix="/api", tags=["sites"])


class SiteResponse(BaseModel):
    id: str
    name: Optional[str] = None
    index_path: Optional[str] = None
    file_count: int
    total_bytes: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_site(cls, site: Site) -> "SiteResponse":
        return cls(
            id=site.id,
            name=site.name,
            index_path=site.index_path,
            file_count=site.file_count,
            total_bytes=site.total_bytes,
            created_at=site.created_at,
            updated_at=site.updated_at,
        )


class SiteFileResponse(BaseModel):
    path: str
    type: Optional[str] = None
    size: Optional[int] = None

    @classmethod
    def from_file(cls, record: SiteFile) -> "SiteFileResponse":
        return cls(path=record.path, type=record.type, size=record.size)


class ExportedFile(BaseModel):
    key: str
    site_id: str
    path: str
    type: Optional[str] = None
    size: Optional[int] = None
    data_base64: Optional[str] = None

    @classmethod
    def from_file(cls, record: SiteFile) -> "ExportedFile":
        data = base64.b64encode(record.blob).decode("ascii") if record.blob is not None else None
        return cls(
            key=record.key,
            site_id=record.site_id,
            path=record.path,
            type=record.type,
            size=record.size,
            data_base64=data,
        )


class ExportResponse(BaseModel):
    sites: List[SiteResponse]
    files: List[ExportedFile]


class StatsResponse(BaseModel):
    site_count: int
    total_bytes: int


def get_site_storage(request: Request) -> SiteStorage:
    storage = getattr(request.app.state, "site_storage", None)
    if storage is None:
        raise RuntimeError("Site storage dependency has not been configured on the application state.")
    return storage


async def _require_site(storage: SiteStorage, site_id: str) -> Site:
    site = await storage.get_site(site_id)
    if site is None:
        raise SiteNotFoundError(site_id)
    return site


@router.get("/sites", response_model=List[SiteResponse])
async def list_sites(storage: SiteStorage = Depends(get_site_storage)) -> List[SiteResponse]:
    """Return all imported sites, most recently updated first."""

    return [SiteResponse.from_site(site) for site in await storage.list_sites()]


@router.get("/sites/{site_id}", response_model=SiteResponse)
async def get_site(site_id: str, storage: SiteStorage = Depends(get_site_storage)) -> SiteResponse:
    try:
        site = await _require_site(storage, site_id)
    except SiteNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Site not found") from exc
    return SiteResponse.from_site(site)


@router.get("/sites/{site_id}/files", response_model=List[SiteFileResponse])
async def list_site_files(
    site_id: str,
    storage: SiteStorage = Depends(get_site_storage),
) -> List[SiteFileResponse]:
    """Return the files stored for a site, ordered by path."""

    try:
        await _require_site(storage, site_id)
    except SiteNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Site not found") from exc
    return [SiteFileResponse.from_file(record) for record in await storage.list_site_files(site_id)]


@router.get("/stats", response_model=StatsResponse)
async def get_stats(storage: SiteStorage = Depends(get_site_storage)) -> StatsResponse:
    stats = await storage.get_stats()
    return StatsResponse(site_count=stats.site_count, total_bytes=stats.total_bytes)


@router.get("/export", response_model=ExportResponse)
async def export_records(storage: SiteStorage = Depends(get_site_storage)) -> ExportResponse:
    """Return every site and file, payloads base64-encoded, for backups."""

    export = await storage.export_records()
    return ExportResponse(
        sites=[SiteResponse.from_site(site) for site in export.sites],
        files=[ExportedFile.from_file(record) for record in export.files],
    )


__all__ = [
    "router",
]
