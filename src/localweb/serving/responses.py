"""Build HTTP responses from stored file records."""

from __future__ import annotations

from starlette import status
from starlette.responses import PlainTextResponse, Response

from ..db import SiteFile
from .mime import guess_mime_type

NOT_CACHED = "Not cached"
BAD_REQUEST = "Bad request"


def not_found_response() -> Response:
    return PlainTextResponse(NOT_CACHED, status_code=status.HTTP_404_NOT_FOUND)


def bad_request_response() -> Response:
    return PlainTextResponse(BAD_REQUEST, status_code=status.HTTP_400_BAD_REQUEST)


def file_response(record: SiteFile | None, path: str) -> Response:
    """Return the stored payload of ``record`` or a 404 when there is none.

    The stored ``type`` takes precedence over the type inferred from
    ``path``.
    """

    if record is None or record.blob is None:
        return not_found_response()
    media_type = record.type or guess_mime_type(path)
    return Response(
        content=bytes(record.blob),
        status_code=status.HTTP_200_OK,
        headers={"Content-Type": media_type},
    )
