from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

import pytest

from kivilcim.contexts.identity.adapters.outbound.persistence.postgres import (
    PostgresIdentityTwoFactorRepository,
)
from kivilcim.contexts.identity.application.ports import TwoFactorVersionConflictError
from kivilcim.contexts.identity.domain import TwoFactorCredential
from kivilcim.shared_kernel.primitives import UserId

_NOW = datetime(2026, 10, 18, 9, 0, 0, tzinfo=timezone.utc)
_USER_ID = UserId.from_string("admin-1")


class _FakeGateway:
    """
    Deterministic fake SQL gateway for identity Postgres repository unit tests.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/outbound/persistence/postgres/gateway.py
      - src/kivilcim/contexts/identity/adapters/outbound/persistence/postgres/
        two_factor_repository.py
    """

    def __init__(self, *, fetch_one_results: list[Mapping[str, Any] | None] | None = None) -> None:
        """
        Initialize fake gateway with queued `fetch_one` responses.

        Args:
            fetch_one_results: Sequence of responses returned in call order.
        Returns:
            None.
        Assumptions:
            Exhausted queue yields `None`.
        Raises:
            None.
        Side Effects:
            Stores mutable queue and call logs.
        """
        self._fetch_one_results = list(fetch_one_results or [])
        self.queries: list[str] = []
        self.parameters: list[Mapping[str, Any]] = []

    def fetch_one(self, *, query: str, parameters: Mapping[str, Any]) -> Mapping[str, Any] | None:
        self.queries.append(query)
        self.parameters.append(dict(parameters))
        if not self._fetch_one_results:
            return None
        return self._fetch_one_results.pop(0)


def _row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "user_id": "admin-1",
        "enabled": True,
        "secret_enc": memoryview(b"active-blob"),
        "pending_secret_enc": None,
        "pending_created_at": None,
        "verified_this_session": True,
        "last_verification_at": _NOW,
        "last_accepted_counter": 59_000_000,
        "updated_at": _NOW,
        "version": 2,
    }
    row.update(overrides)
    return row


def test_find_by_user_id_maps_row_with_memoryview_blobs() -> None:
    """
    Verify SQL row maps into domain credential including `BYTEA` memoryview columns.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        psycopg may return `BYTEA` as memoryview.
    Raises:
        AssertionError: If mapping loses data.
    Side Effects:
        None.
    """
    gateway = _FakeGateway(
        fetch_one_results=[
            _row(pending_secret_enc=memoryview(b"pending-blob"), pending_created_at=_NOW),
        ]
    )
    repository = PostgresIdentityTwoFactorRepository(gateway=gateway)

    credential = repository.find_by_user_id(user_id=_USER_ID)

    assert credential is not None
    assert credential.secret_enc == b"active-blob"
    assert credential.pending is not None
    assert credential.pending.secret_enc == b"pending-blob"
    assert credential.rotation_pending is True
    assert credential.last_accepted_counter == 59_000_000
    assert credential.version == 2
    assert "FROM identity_2fa_credentials" in gateway.queries[0]
    assert gateway.parameters[0] == {"user_id": "admin-1"}


def test_find_by_user_id_returns_none_for_missing_row() -> None:
    repository = PostgresIdentityTwoFactorRepository(gateway=_FakeGateway())

    assert repository.find_by_user_id(user_id=_USER_ID) is None


def test_find_by_user_id_rejects_rows_violating_invariants() -> None:
    gateway = _FakeGateway(fetch_one_results=[_row(secret_enc=None)])
    repository = PostgresIdentityTwoFactorRepository(gateway=gateway)

    with pytest.raises(ValueError, match="cannot map credential row"):
        repository.find_by_user_id(user_id=_USER_ID)


def test_first_save_inserts_with_on_conflict_do_nothing() -> None:
    """
    Verify first write is an insert that reports a conflict when a row already exists.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Empty `RETURNING` means another writer created the row first.
    Raises:
        AssertionError: If SQL shape or conflict mapping differs.
    Side Effects:
        None.
    """
    credential = TwoFactorCredential.provision(user_id=_USER_ID, secret_enc=b"pending", now=_NOW)
    inserted_row = _row(
        enabled=False,
        secret_enc=None,
        pending_secret_enc=b"pending",
        pending_created_at=_NOW,
        verified_this_session=False,
        last_verification_at=None,
        last_accepted_counter=None,
        version=1,
    )
    gateway = _FakeGateway(fetch_one_results=[inserted_row, None])
    repository = PostgresIdentityTwoFactorRepository(gateway=gateway)

    saved = repository.save(credential=credential, expected_version=None)
    with pytest.raises(TwoFactorVersionConflictError):
        repository.save(credential=credential, expected_version=None)

    assert saved == credential
    assert "INSERT INTO identity_2fa_credentials" in gateway.queries[0]
    assert "ON CONFLICT (user_id) DO NOTHING" in gateway.queries[0]
    assert gateway.parameters[0]["pending_secret_enc"] == b"pending"
    assert gateway.parameters[0]["secret_enc"] is None
    assert "expected_version" not in gateway.parameters[0]


def test_update_is_guarded_by_expected_version() -> None:
    credential = TwoFactorCredential.provision(
        user_id=_USER_ID,
        secret_enc=b"active-blob",
        now=_NOW,
    ).activate_pending(now=_NOW, counter=59_000_000)
    gateway = _FakeGateway(fetch_one_results=[_row(), None])
    repository = PostgresIdentityTwoFactorRepository(gateway=gateway)

    repository.save(credential=credential, expected_version=1)
    with pytest.raises(TwoFactorVersionConflictError) as conflict:
        repository.save(credential=credential, expected_version=1)

    assert "AND version = %(expected_version)s" in gateway.queries[0]
    assert gateway.parameters[0]["expected_version"] == 1
    assert gateway.parameters[0]["version"] == 2
    assert conflict.value.expected_version == 1


def test_save_rejects_inconsistent_version_arithmetic_without_sql() -> None:
    credential = TwoFactorCredential.provision(user_id=_USER_ID, secret_enc=b"pending", now=_NOW)
    gateway = _FakeGateway()
    repository = PostgresIdentityTwoFactorRepository(gateway=gateway)

    with pytest.raises(ValueError, match="expected_version \\+ 1"):
        repository.save(credential=credential, expected_version=3)

    assert gateway.queries == []


def test_delete_reports_conflict_when_no_row_returned() -> None:
    gateway = _FakeGateway(fetch_one_results=[{"user_id": "admin-1"}, None])
    repository = PostgresIdentityTwoFactorRepository(gateway=gateway)

    repository.delete(user_id=_USER_ID, expected_version=4)
    with pytest.raises(TwoFactorVersionConflictError):
        repository.delete(user_id=_USER_ID, expected_version=4)

    assert "DELETE FROM identity_2fa_credentials" in gateway.queries[0]
    assert gateway.parameters[0] == {"user_id": "admin-1", "expected_version": 4}
