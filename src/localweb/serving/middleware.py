"""ASGI middleware that answers site requests before they reach the app."""

from __future__ import annotations

import os
from typing import Any
from urllib.parse import quote

from starlette.types import ASGIApp, Receive, Scope, Send

from .resolver import SITE_SEGMENT, SiteRequestHandler

HANDLER_STATE_KEY = "site_handler"


def normalize_scope_path(scope_path: str | None = None) -> str:
    """Return ``scope_path`` (or ``LOCALWEB_SCOPE``) with leading and trailing slashes.

    The scope is given unencoded; :class:`SiteInterceptMiddleware` matches
    its percent-encoded form against the raw request path.
    """

    raw = scope_path if scope_path is not None else os.getenv("LOCALWEB_SCOPE", "/")
    stripped = raw.strip("/")
    return f"/{stripped}/" if stripped else "/"


def activate(app: Any, handler: SiteRequestHandler) -> None:
    """Make ``handler`` answer site requests for ``app`` from now on.

    Any previously installed handler is replaced at once; requests it is
    already serving run to completion.
    """

    setattr(app.state, HANDLER_STATE_KEY, handler)


def _request_path(scope: Scope) -> str:
    raw_path = scope.get("raw_path")
    if raw_path:
        return raw_path.split(b"?", 1)[0].decode("latin-1")
    return quote(scope["path"])


class SiteInterceptMiddleware:
    """Intercept ``GET <scope>/site/...`` and serve it from the site store.

    Every other request, and any site request the active handler declines,
    is passed to the wrapped application untouched.
    """

    def __init__(self, app: ASGIApp, *, scope_path: str | None = None) -> None:
        self.app = app
        self.scope_path = quote(normalize_scope_path(scope_path))
        self.prefix = f"{self.scope_path}{SITE_SEGMENT}/"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] != "GET":
            await self.app(scope, receive, send)
            return

        path = _request_path(scope)
        handler = self._active_handler(scope)
        if handler is None or not path.startswith(self.prefix):
            await self.app(scope, receive, send)
            return

        response = await handler.handle(path[len(self.scope_path) :])
        if response is None:
            await self.app(scope, receive, send)
            return
        await response(scope, receive, send)

    @staticmethod
    def _active_handler(scope: Scope) -> SiteRequestHandler | None:
        app = scope.get("app")
        if app is None:
            return None
        return getattr(app.state, HANDLER_STATE_KEY, None)
