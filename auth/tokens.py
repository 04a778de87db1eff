"""
auth/tokens.py -- Password hashing and opaque token generation.

Security design decisions:
  Passwords: bcrypt used directly (no passlib wrapper). The cost factor comes
       from Settings.hash_rounds and is passed in by the caller; this module
       reads no configuration itself. Every hash gets a fresh random salt from
       bcrypt.gensalt(), so two accounts with the same password never share a
       hash.

  72-byte limit: bcrypt only looks at the first 72 bytes of a password, and
       bcrypt 4.1+ raises instead of truncating. Both hash_password() and
       verify_password() truncate the UTF-8 encoding to 72 bytes so long
       passwords keep working and hash/verify stay consistent.

  Tokens: uuid4 draws 122 random bits from os.urandom. Backend and frontend
       tokens use the same generator; neither is sequential or derived from
       account data.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import uuid

import bcrypt

_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str, rounds: int = 12) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    bcrypt.checkpw re-derives the hash with the stored salt and compares in
    constant time. A malformed stored hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
    except ValueError:
        return False


def new_token() -> str:
    """Return a new random opaque token (canonical UUID4 text form)."""
    return str(uuid.uuid4())
