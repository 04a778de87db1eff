"""
auth/store.py -- SQLAlchemy Core persistence layer for credential records.

Pattern: Repository + Data Mapper. CredentialStore is the repository;
_row_to_credential is the mapper. Route and service code never touches SQL
directly.

Schema:
  A credential record is logically one document:
      { email, passwordHash, backendToken, frontendTokens: [...] }
  It is stored as a credentials row plus one frontend_tokens row per issued
  session token. Token order is insertion order (frontend_tokens.id).

  UNIQUE(credentials.email) is what makes registration safe under
  concurrency: two requests racing to register the same email both pass the
  read, but only one INSERT wins. The loser gets IntegrityError and the
  service falls back to the existing-account path.

  UNIQUE(frontend_tokens.token) guarantees a token resolves to at most one
  account.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    func,
    select,
    text,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import Pool

from auth.models import Credential

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_credentials = Table(
    "credentials",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(320), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("backend_token", String(36), nullable=False, unique=True),
    Column("created_at", String(32), nullable=False),
)

_frontend_tokens = Table(
    "frontend_tokens",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("credential_id", Integer, ForeignKey("credentials.id"), nullable=False, index=True),
    Column("token", String(36), nullable=False, unique=True),
    Column("issued_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# SQLite connection setup
# ---------------------------------------------------------------------------


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CredentialStore:
    """Repository for Credential records.

    Usage:
        store = CredentialStore("sqlite:///credentials.db")
        store.create_credential(Credential(email=..., password_hash=..., backend_token=..., frontend_tokens=[ftoken]))
        cred = store.get_by_frontend_token(ftoken)
        store.close()

    Every method may raise sqlalchemy.exc.SQLAlchemyError when the database
    is unreachable or misbehaves. The store does not retry; callers decide
    what a failure means for the request.
    """

    def __init__(self, db_url: str, poolclass: type[Pool] | None = None) -> None:
        """Open the database and create the schema if needed.

        poolclass overrides SQLAlchemy's default pool. In-memory SQLite needs
        StaticPool so every thread sees the one connection holding the data.
        """
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        engine_kwargs: dict = {"connect_args": connect_args}
        if poolclass is not None:
            engine_kwargs["poolclass"] = poolclass
        self.engine: Engine = create_engine(db_url, **engine_kwargs)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_sqlite_pragmas)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_email(self, email: str) -> Credential | None:
        """Look up a credential by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_credentials.select().where(_credentials.c.email == email)).fetchone()
            if row is None:
                return None
            return _row_to_credential(row, _tokens_for(conn, row.id))

    def get_by_frontend_token(self, token: str) -> Credential | None:
        """Return the credential that was issued this frontend token, or None.

        Pure read. Older tokens resolve exactly like the newest one.
        """
        with self.engine.connect() as conn:
            row = conn.execute(
                select(_credentials)
                .join(_frontend_tokens, _frontend_tokens.c.credential_id == _credentials.c.id)
                .where(_frontend_tokens.c.token == token)
            ).fetchone()
            if row is None:
                return None
            return _row_to_credential(row, _tokens_for(conn, row.id))

    def count_credentials(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_credentials)).scalar()
        return result or 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_credential(self, credential: Credential) -> int:
        """Insert a credential and its initial frontend tokens in one transaction.

        Returns the new record's database ID.

        Raises sqlalchemy.exc.IntegrityError if the email is already
        registered. Nothing is written in that case.
        """
        created_at = _now_iso()
        with self.engine.begin() as conn:
            result = conn.execute(
                _credentials.insert().values(
                    email=credential.email,
                    password_hash=credential.password_hash,
                    backend_token=credential.backend_token,
                    created_at=created_at,
                )
            )
            credential_id = result.inserted_primary_key[0]
            for token in credential.frontend_tokens:
                conn.execute(
                    _frontend_tokens.insert().values(credential_id=credential_id, token=token, issued_at=created_at)
                )
        return credential_id

    def append_frontend_token(self, backend_token: str, token: str) -> bool:
        """Append a session token to the account owning backend_token.

        Resolves the owner and inserts the token inside one transaction.
        Returns True if a token was appended, False if no account has that
        backend token.
        """
        with self.engine.begin() as conn:
            credential_id = conn.execute(
                select(_credentials.c.id).where(_credentials.c.backend_token == backend_token)
            ).scalar()
            if credential_id is None:
                return False
            conn.execute(
                _frontend_tokens.insert().values(credential_id=credential_id, token=token, issued_at=_now_iso())
            )
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _tokens_for(conn: Connection, credential_id: int) -> list[str]:
    rows = conn.execute(
        select(_frontend_tokens.c.token)
        .where(_frontend_tokens.c.credential_id == credential_id)
        .order_by(_frontend_tokens.c.id)
    ).fetchall()
    return [r.token for r in rows]


def _row_to_credential(row, frontend_tokens: list[str]) -> Credential:
    return Credential(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        backend_token=row.backend_token,
        frontend_tokens=frontend_tokens,
        created_at=row.created_at,
    )
