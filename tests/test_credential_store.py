"""Unit tests for auth/store.py -- CredentialStore.

Covers:
- create_credential() / get_by_email() round trip, including token order
- get_by_frontend_token() finds the owner for any issued token
- UNIQUE(email) rejects duplicates without a partial write
- append_frontend_token() against known and unknown backend tokens
- an injected StaticPool shares one in-memory DB across threads
"""

from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from auth.models import Credential
from auth.store import CredentialStore


@pytest.fixture
def memory_store():
    s = CredentialStore("sqlite://", poolclass=StaticPool)
    yield s
    s.close()


def _cred(email: str = "a@x.com", backend: str = "b-1", frontend: list[str] | None = None) -> Credential:
    return Credential(
        email=email,
        password_hash="$2b$04$notarealhashnotarealhashnotarealhashnotarealhashnot",
        backend_token=backend,
        frontend_tokens=frontend if frontend is not None else ["f-1"],
    )


class TestCreateAndRead:
    def test_round_trip(self, memory_store: CredentialStore) -> None:
        new_id = memory_store.create_credential(_cred())
        cred = memory_store.get_by_email("a@x.com")
        assert cred is not None
        assert cred.id == new_id
        assert cred.backend_token == "b-1"
        assert cred.frontend_tokens == ["f-1"]
        assert cred.created_at

    def test_unknown_email(self, memory_store: CredentialStore) -> None:
        assert memory_store.get_by_email("nobody@x.com") is None

    def test_email_lookup_is_exact(self, memory_store: CredentialStore) -> None:
        memory_store.create_credential(_cred())
        assert memory_store.get_by_email("A@x.com") is None
        assert memory_store.get_by_email(" a@x.com") is None

    def test_count(self, memory_store: CredentialStore) -> None:
        assert memory_store.count_credentials() == 0
        memory_store.create_credential(_cred())
        memory_store.create_credential(_cred(email="b@x.com", backend="b-2", frontend=["f-2"]))
        assert memory_store.count_credentials() == 2

    def test_ping(self, memory_store: CredentialStore) -> None:
        assert memory_store.ping() is True


class TestUniqueness:
    def test_duplicate_email_rejected(self, memory_store: CredentialStore) -> None:
        memory_store.create_credential(_cred())
        with pytest.raises(IntegrityError):
            memory_store.create_credential(_cred(backend="b-2", frontend=["f-2"]))
        assert memory_store.count_credentials() == 1
        # The rejected record's token must not have been written.
        assert memory_store.get_by_frontend_token("f-2") is None

    def test_duplicate_frontend_token_rejected(self, memory_store: CredentialStore) -> None:
        memory_store.create_credential(_cred())
        with pytest.raises(IntegrityError):
            memory_store.create_credential(_cred(email="b@x.com", backend="b-2", frontend=["f-1"]))
        assert memory_store.get_by_email("b@x.com") is None


class TestFrontendTokens:
    def test_append_keeps_order(self, memory_store: CredentialStore) -> None:
        memory_store.create_credential(_cred())
        assert memory_store.append_frontend_token("b-1", "f-2") is True
        assert memory_store.append_frontend_token("b-1", "f-3") is True
        assert memory_store.get_by_email("a@x.com").frontend_tokens == ["f-1", "f-2", "f-3"]

    def test_append_unknown_backend_token(self, memory_store: CredentialStore) -> None:
        assert memory_store.append_frontend_token("missing", "f-9") is False
        assert memory_store.get_by_frontend_token("f-9") is None

    def test_lookup_by_any_issued_token(self, memory_store: CredentialStore) -> None:
        memory_store.create_credential(_cred())
        memory_store.append_frontend_token("b-1", "f-2")
        for token in ("f-1", "f-2"):
            cred = memory_store.get_by_frontend_token(token)
            assert cred is not None
            assert cred.email == "a@x.com"
            assert cred.frontend_tokens == ["f-1", "f-2"]

    def test_lookup_unknown_token(self, memory_store: CredentialStore) -> None:
        memory_store.create_credential(_cred())
        assert memory_store.get_by_frontend_token("b-1") is None
        assert memory_store.get_by_frontend_token("") is None


class TestPoolClass:
    def test_static_pool_is_used(self, memory_store: CredentialStore) -> None:
        assert isinstance(memory_store.engine.pool, StaticPool)

    def test_worker_threads_share_the_database(self, memory_store: CredentialStore) -> None:
        memory_store.create_credential(_cred())
        with ThreadPoolExecutor(max_workers=1) as pool:
            found = list(pool.map(memory_store.get_by_email, ["a@x.com", "a@x.com"]))
        assert [c.backend_token for c in found] == ["b-1", "b-1"]
