"""Health API layer for status-informer.

Exposes:
    create_app -- FastAPI application factory serving /healthz and /readyz.
"""

from statusinformer.api.app import create_app

__all__ = ["create_app"]
