"""Interception and resolution of site requests."""

from .middleware import SiteInterceptMiddleware, activate, normalize_scope_path
from .mime import DEFAULT_MIME_TYPE, guess_mime_type
from .resolver import Resolution, SiteRequestHandler, decode_path
from .responses import bad_request_response, file_response, not_found_response

__all__ = [
    "DEFAULT_MIME_TYPE",
    "Resolution",
    "SiteInterceptMiddleware",
    "SiteRequestHandler",
    "activate",
    "bad_request_response",
    "decode_path",
    "file_response",
    "guess_mime_type",
    "normalize_scope_path",
    "not_found_response",
]
