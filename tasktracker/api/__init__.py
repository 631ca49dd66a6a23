"""HTTP API for tasktracker (FastAPI, mounted at /api/v1)."""

from tasktracker.api.app import create_app

__all__ = ["create_app"]
