"""Serve imported static site bundles from a local database."""

__version__ = "0.1.0"
