"""Status REST API for nomadops.

Exposes:
    create_app -- FastAPI application factory.
"""

from nomadops.api.app import create_app

__all__ = ["create_app"]
