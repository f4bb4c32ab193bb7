"""Content-type inference from file names."""

from __future__ import annotations

DEFAULT_MIME_TYPE = "application/octet-stream"

# Checked in order; the first matching suffix wins.
MIME_TYPES: tuple[tuple[tuple[str, ...], str], ...] = (
    ((".html", ".htm"), "text/html"),
    ((".css",), "text/css"),
    ((".js",), "text/javascript"),
    ((".json",), "application/json"),
    ((".svg",), "image/svg+xml"),
    ((".png",), "image/png"),
    ((".jpg", ".jpeg"), "image/jpeg"),
    ((".webp",), "image/webp"),
    ((".gif",), "image/gif"),
    ((".woff",), "font/woff"),
    ((".woff2",), "font/woff2"),
    ((".ttf",), "font/ttf"),
    ((".otf",), "font/otf"),
    ((".ico",), "image/x-icon"),
    ((".mp3",), "audio/mpeg"),
    ((".mp4",), "video/mp4"),
    ((".webm",), "video/webm"),
)


def guess_mime_type(path: str) -> str:
    """Return the content type for ``path`` based on its extension."""

    lower = path.lower()
    for suffixes, mime_type in MIME_TYPES:
        if lower.endswith(suffixes):
            return mime_type
    return DEFAULT_MIME_TYPE
