"""Resolve ``site/<siteId>/<path>`` requests against the site store."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import unquote_to_bytes

from starlette.responses import Response

from ..db import Site, SiteFile
from .responses import bad_request_response, file_response, not_found_response

logger = logging.getLogger(__name__)

SITE_SEGMENT = "site"
DEFAULT_INDEX_PATH = "index.html"
DIRECTORY_INDEX_NAMES = ("index.html", "index.htm")

_INVALID_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class SiteReader(Protocol):
    """Read operations the resolver needs from the store."""

    async def get_site(self, site_id: str) -> Site | None:
        ...

    async def get_file(self, site_id: str, path: str) -> SiteFile | None:
        ...


@dataclass(slots=True, frozen=True)
class Resolution:
    """The logical path a request settled on and the record found there."""

    path: str
    record: SiteFile | None


def decode_path(raw_path: str) -> str:
    """Percent-decode ``raw_path`` as UTF-8, rejecting malformed input.

    Raises
    ------
    ValueError
        If an escape is not followed by two hex digits or the decoded bytes
        are not valid UTF-8.
    """

    if _INVALID_ESCAPE.search(raw_path):
        raise ValueError(f"Malformed percent-escape in {raw_path!r}")
    return unquote_to_bytes(raw_path).decode("utf-8")


class SiteRequestHandler:
    """Answer site requests from storage.

    ``handle`` returns ``None`` for requests that are not addressed to a
    site so that the caller can forward them unchanged.
    """

    def __init__(self, storage: SiteReader) -> None:
        self._storage = storage

    async def handle(self, relative_path: str) -> Response | None:
        """Return the response for ``relative_path`` (scope already stripped)."""

        parts = relative_path.split("/")
        if parts[0] != SITE_SEGMENT or len(parts) < 2 or not parts[1]:
            return None

        site_id = parts[1]
        path = "/".join(parts[2:])
        is_directory = not path or path.endswith("/")
        if path:
            try:
                path = decode_path(path)
            except ValueError:
                logger.debug("Rejecting undecodable path for site %s", site_id)
                return bad_request_response()
        if not path and not is_directory:
            return bad_request_response()

        if not is_directory:
            resolution = Resolution(path, await self._storage.get_file(site_id, path))
        elif not path:
            resolution = await self.resolve_root(site_id)
        else:
            resolution = await self.resolve_directory(site_id, path)
            if resolution is None:
                logger.debug("No index document for %s in site %s", path, site_id)
                return not_found_response()

        response = file_response(resolution.record, resolution.path)
        logger.debug(
            "Served %s from site %s with status %s",
            resolution.path,
            site_id,
            response.status_code,
        )
        return response

    async def resolve_root(self, site_id: str) -> Resolution:
        """Resolve the site's root document, honouring its ``index_path``."""

        site = await self._storage.get_site(site_id)
        if site is not None and site.index_path:
            path = site.index_path
        else:
            path = DEFAULT_INDEX_PATH
        return Resolution(path, await self._storage.get_file(site_id, path))

    async def resolve_directory(self, site_id: str, dir_path: str) -> Resolution | None:
        """Return the first existing index document inside ``dir_path``."""

        for name in DIRECTORY_INDEX_NAMES:
            candidate = f"{dir_path}{name}"
            record = await self._storage.get_file(site_id, candidate)
            if record is not None:
                return Resolution(candidate, record)
        return None
