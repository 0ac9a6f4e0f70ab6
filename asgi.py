"""
asgi.py -- ASGI entry point for the Movies API.

Servers import the application from here so the module path stays stable if
api/main.py is split up later.

Run with:  uvicorn asgi:app --reload
"""

from api.main import app

__all__ = ["app"]
