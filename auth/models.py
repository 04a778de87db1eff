"""
auth/models.py -- Domain dataclasses for credential entities.

Pattern: Data class (pure data container, zero logic). The store maps rows to
these; the service and routes work with them and never see SQL rows.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Credential:
    """One registered account, keyed by email.

    email is stored exactly as the client sent it -- no case folding or
    trimming -- so "A@x.com" and "a@x.com" are two different accounts.

    backend_token is minted once at registration and never changes.
    frontend_tokens holds every session token ever issued, oldest first.
    Nothing removes entries from it.
    """

    email: str
    password_hash: str
    backend_token: str
    frontend_tokens: list[str] = field(default_factory=list)
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class IssuedTokens:
    """Result of a successful AUTH: the account's backend token plus a fresh session token."""

    backend_token: str
    frontend_token: str
    registered: bool = False
