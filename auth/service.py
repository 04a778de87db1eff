"""
auth/service.py -- The AUTH and VERIFY operations.

CredentialService owns the account lifecycle:
  authenticate(email, password)
      Unknown email    -> register: mint a backend token, hash the password,
                          store the record with one frontend token.
      Known email      -> verify the password against the stored hash, then
                          append a fresh frontend token. The backend token is
                          reused unchanged.
      Wrong password   -> None. Nothing is written.

  resolve(frontend_token)
      Read-only lookup of the account that was issued the token.

Storage errors (sqlalchemy.exc.SQLAlchemyError, or CredentialStoreError when
the store contradicts its own constraints) propagate to the caller. The route
layer turns them into 500 responses; this module never decides
HTTP status codes.

Registration race: if two requests register the same email at once, the
UNIQUE(email) constraint rejects the second insert with IntegrityError. The
loser re-reads the winner's record and continues as a normal login, so the
caller with the right password still gets tokens and no duplicate record is
created.

Layer rule: no imports from api/ or core/. The bcrypt cost is passed in by
the application factory.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.models import Credential, IssuedTokens
from auth.store import CredentialStore
from auth.tokens import hash_password, new_token, verify_password

logger = logging.getLogger("credservice.auth")


def mask_email(email: str) -> str:
    """Return a log-safe form of email: first character of the local part plus the domain.

    "alice@example.com" -> "a***@example.com". Logs identify the account's
    domain and rough shape without recording the address itself.
    """
    local, sep, domain = email.rpartition("@")
    if not sep:
        local, domain = email, ""
    return f"{local[:1]}***{sep}{domain}"


class CredentialStoreError(RuntimeError):
    """The store returned results that contradict its own constraints."""


class CredentialService:
    """Authenticate-or-register and frontend token resolution over a CredentialStore."""

    def __init__(self, store: CredentialStore, hash_rounds: int = 12) -> None:
        self.store = store
        self.hash_rounds = hash_rounds

    def authenticate(self, email: str, password: str) -> IssuedTokens | None:
        """Log in or register email and issue a new frontend token.

        Returns None when the email is registered and the password does not
        match. Raises SQLAlchemyError on storage failure.
        """
        credential = self.store.get_by_email(email)
        if credential is None:
            issued = self._register(email, password)
            if issued is not None:
                return issued
            # Lost the registration race; the winner's record now exists.
            credential = self.store.get_by_email(email)
            if credential is None:
                raise CredentialStoreError(f"credential for {mask_email(email)} vanished after a duplicate insert")

        if not verify_password(password, credential.password_hash):
            logger.warning("Incorrect password for %s", mask_email(email))
            return None

        frontend_token = new_token()
        if not self.store.append_frontend_token(credential.backend_token, frontend_token):
            raise CredentialStoreError(f"no credential owns backend token for {mask_email(email)}")
        return IssuedTokens(backend_token=credential.backend_token, frontend_token=frontend_token)

    def _register(self, email: str, password: str) -> IssuedTokens | None:
        """Create a new account. Returns None if another request registered email first."""
        backend_token = new_token()
        frontend_token = new_token()
        credential = Credential(
            email=email,
            password_hash=hash_password(password, self.hash_rounds),
            backend_token=backend_token,
            frontend_tokens=[frontend_token],
        )
        try:
            self.store.create_credential(credential)
        except IntegrityError:
            logger.info("Concurrent registration for %s; continuing as login", mask_email(email))
            return None
        return IssuedTokens(backend_token=backend_token, frontend_token=frontend_token, registered=True)

    def resolve(self, frontend_token: str) -> Credential | None:
        """Return the account owning frontend_token, or None. Never writes."""
        return self.store.get_by_frontend_token(frontend_token)
