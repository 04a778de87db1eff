"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the credential service happen here. No
module should call os.getenv() or os.environ.get() directly.

Design:
  Settings is built once at process assembly (asgi.py, main.py) and passed
  into api.main.create_app(). Route and service code never reaches for a
  global settings object; they receive what they need through app.state.

  get_settings() is an lru_cache accessor for the assembly layer only.
  Tests build Settings(...) directly with explicit values.

  @model_validator(mode="after"): reconciles HASH_SALT with HASH_ROUNDS.
      Older deployments configure a full bcrypt salt string such as
      "$2a$10$abcdefghijklmnopqrstuu". Only its cost factor is used -- every
      password still gets a fresh random salt.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import re
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("credservice.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'credentials.db'}"

# $2a$, $2b$, $2y$ followed by a two-digit cost and an optional 22-char salt body.
_BCRYPT_SALT_RE = re.compile(r"^\$2[aby]?\$(\d{2})\$([./A-Za-z0-9]{22})?$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() works in a bare checkout. Field
    names map to upper-cased env vars (hash_rounds -> HASH_ROUNDS).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Password hashing
    # ------------------------------------------------------------------

    hash_rounds: int = Field(default=12, ge=4, le=31)
    # Legacy bcrypt salt string. Empty means "use hash_rounds".
    hash_salt: str = ""

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    host: str = "0.0.0.0"  # noqa: S104 -- container bind address
    port: int = 3000
    cors_origins: list[str] = ["*"]
    allowed_hosts: list[str] = ["*"]
    # Directory holding a built frontend. Served at "/" when it exists.
    static_dir: str = ""

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def apply_hash_salt(self) -> "Settings":
        """Take the bcrypt cost factor from HASH_SALT when one is configured.

        Raises ValueError for a salt string that is not bcrypt-shaped or whose
        cost is outside bcrypt's 4..31 range. Failing at startup beats hashing
        every new password with a cost nobody intended.
        """
        if not self.hash_salt:
            return self
        match = _BCRYPT_SALT_RE.match(self.hash_salt)
        if match is None:
            raise ValueError("HASH_SALT must be a bcrypt salt string such as '$2b$12$...'.")
        rounds = int(match.group(1))
        if not 4 <= rounds <= 31:
            raise ValueError(f"HASH_SALT cost factor must be between 4 and 31, got {rounds}.")
        if rounds != self.hash_rounds:
            logger.info("Using bcrypt cost %d from HASH_SALT", rounds)
        self.hash_rounds = rounds
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings instance.

    Only the assembly layer (asgi.py, main.py) calls this. Everything below
    it receives the Settings object explicitly.
    """
    return Settings()
