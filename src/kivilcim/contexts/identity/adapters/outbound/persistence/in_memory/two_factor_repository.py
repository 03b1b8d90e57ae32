from __future__ import annotations

import threading

from kivilcim.contexts.identity.application.ports.two_factor_repository import (
    TwoFactorRepository,
    TwoFactorVersionConflictError,
)
from kivilcim.contexts.identity.domain.entities import TwoFactorCredential
from kivilcim.shared_kernel.primitives import UserId


class InMemoryIdentityTwoFactorRepository(TwoFactorRepository):
    """
    InMemoryIdentityTwoFactorRepository — process-local trust store with compare-and-set writes.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/two_factor_repository.py
      - src/kivilcim/contexts/identity/adapters/outbound/persistence/postgres/
        two_factor_repository.py
      - tests/unit/contexts/identity/application/test_two_factor_trust_use_cases.py
    """

    def __init__(self) -> None:
        """
        Initialize empty in-memory storage guarded by one lock.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Repository instance is process-local; used for dev runs and tests.
        Raises:
            None.
        Side Effects:
            None.
        """
        self._rows: dict[str, TwoFactorCredential] = {}
        self._lock = threading.Lock()

    def find_by_user_id(self, *, user_id: UserId) -> TwoFactorCredential | None:
        with self._lock:
            return self._rows.get(str(user_id))

    def save(
        self,
        *,
        credential: TwoFactorCredential,
        expected_version: int | None,
    ) -> TwoFactorCredential:
        """
        Store credential when the current row version equals `expected_version`.

        Args:
            credential: Next credential state.
            expected_version: Version read by the caller, `None` for first insert.
        Returns:
            TwoFactorCredential: Stored credential.
        Assumptions:
            Credential snapshots are immutable, so storing references is safe.
        Raises:
            ValueError: If `credential.version` is not `expected_version + 1`.
            TwoFactorVersionConflictError: If stored version differs from expectation.
        Side Effects:
            Mutates in-memory dictionary row for the user.
        """
        _ensure_next_version(credential=credential, expected_version=expected_version)
        key = str(credential.user_id)
        with self._lock:
            current = self._rows.get(key)
            current_version = current.version if current is not None else None
            if current_version != expected_version:
                raise TwoFactorVersionConflictError(
                    user_id=credential.user_id,
                    expected_version=expected_version,
                )
            self._rows[key] = credential
            return credential

    def delete(self, *, user_id: UserId, expected_version: int) -> None:
        """
        Remove credential row when the current version equals `expected_version`.

        Args:
            user_id: Identity user identifier.
            expected_version: Version read by the caller.
        Returns:
            None.
        Assumptions:
            None.
        Raises:
            TwoFactorVersionConflictError: If row is missing or version differs.
        Side Effects:
            Mutates in-memory dictionary.
        """
        key = str(user_id)
        with self._lock:
            current = self._rows.get(key)
            if current is None or current.version != expected_version:
                raise TwoFactorVersionConflictError(
                    user_id=user_id,
                    expected_version=expected_version,
                )
            del self._rows[key]


def _ensure_next_version(*, credential: TwoFactorCredential, expected_version: int | None) -> None:
    expected_next = (expected_version or 0) + 1
    if credential.version != expected_next:
        raise ValueError(
            "TwoFactorCredential.version must equal expected_version + 1, "
            f"got version={credential.version} expected_version={expected_version}"
        )
