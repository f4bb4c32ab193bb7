"""Backend package for the localweb FastAPI service."""
from __future__ import annotations

import os
from typing import Any

import uvicorn

from .app import create_app


def main(**uvicorn_kwargs: Any) -> None:
    """Run the localweb service using ``uvicorn``.

    Parameters
    ----------
    **uvicorn_kwargs: Any
        Optional keyword arguments forwarded to :func:`uvicorn.run`.
    """

    host = os.environ.get("LOCALWEB_HOST", "0.0.0.0")
    port = int(os.environ.get("LOCALWEB_PORT", "8000"))

    config = {
        "app": "backend.app:create_app",
        "factory": True,
        "host": host,
        "port": port,
        "reload": os.environ.get("LOCALWEB_RELOAD", "false").lower() == "true",
    }
    config.update(uvicorn_kwargs)

    uvicorn.run(**config)


__all__ = ["create_app", "main"]
