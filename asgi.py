"""
asgi.py -- Application assembly for the credential service.

This is where process configuration is resolved. Settings come from the
environment (and .env) exactly once and are handed to the app factory.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app
from core.config import get_settings

app = create_app(get_settings())
