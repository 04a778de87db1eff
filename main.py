#!/usr/bin/env python3
"""
Credential service -- email/password authentication issuing backend and
frontend tokens.

Usage:
  python main.py
  python main.py --port 8080
  python main.py --host 127.0.0.1 --reload

Environment variables (see core/config.py for the full list):
  DATABASE_URL  SQLAlchemy URL of the credential store.
  HASH_ROUNDS   bcrypt cost factor (default 12).
  HASH_SALT     Legacy bcrypt salt string; its cost overrides HASH_ROUNDS.
  PORT          Listen port (default 3000).
"""

import argparse

import uvicorn

from core.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Run the credential service.")
    parser.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Listen port (default: {settings.port})")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args()

    print(f"  Server is running at 'http://localhost:{args.port}'")
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
