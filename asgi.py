"""
asgi.py -- ASGI entry point for the account service.

Run with:  uvicorn asgi:app --reload

api/main.py builds the app; this module only re-exports it so the server
command stays stable if the API package is reorganised.
"""

from api.main import app

__all__ = ("app",)
