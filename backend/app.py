"""FastAPI application factory for the localweb service."""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from localweb import __version__
from localweb.serving import SiteInterceptMiddleware, SiteRequestHandler, activate
from localweb.storage import SiteStorage

from .api.sites import router as sites_router


def create_app(
    storage: SiteStorage | None = None,
    *,
    scope_path: str | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Parameters
    ----------
    storage:
        Optional storage instance, primarily used for injecting fakes in tests.
    scope_path:
        Path under which ``site/<siteId>/...`` requests are intercepted.
        Defaults to ``LOCALWEB_SCOPE`` or ``/``.

    Returns
    -------
    FastAPI
        Configured app instance.
    """

    site_storage = storage or SiteStorage()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            await site_storage.close()

    app = FastAPI(title="localweb", version=__version__, lifespan=lifespan)
    app.state.site_storage = site_storage
    app.add_middleware(SiteInterceptMiddleware, scope_path=scope_path)
    activate(app, SiteRequestHandler(site_storage))

    @app.get("/health")
    def health() -> dict[str, str]:
        """Health probe endpoint."""

        return {"status": "ok"}

    app.include_router(sites_router)

    return app


__all__ = ["create_app"]
