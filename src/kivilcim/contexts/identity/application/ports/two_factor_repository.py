from __future__ import annotations

from typing import Protocol

from kivilcim.contexts.identity.domain.entities import TwoFactorCredential
from kivilcim.shared_kernel.primitives import UserId


class TwoFactorVersionConflictError(RuntimeError):
    """
    TwoFactorVersionConflictError — optimistic version check rejected a credential write.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/outbound/persistence/in_memory/
        two_factor_repository.py
      - src/kivilcim/contexts/identity/adapters/outbound/persistence/postgres/
        two_factor_repository.py
      - src/kivilcim/contexts/identity/application/use_cases/two_factor_errors.py
    """

    def __init__(self, *, user_id: UserId, expected_version: int | None) -> None:
        """
        Initialize conflict error with the rejected expectation.

        Args:
            user_id: Credential owner.
            expected_version: Version the writer read, or `None` for first insert.
        Returns:
            None.
        Assumptions:
            Use cases translate this error into a deterministic 409 operation error.
        Raises:
            None.
        Side Effects:
            None.
        """
        super().__init__(
            f"two-factor credential changed concurrently for user_id={user_id} "
            f"expected_version={expected_version}"
        )
        self.user_id = user_id
        self.expected_version = expected_version


class TwoFactorRepository(Protocol):
    """
    TwoFactorRepository — порт trust store с оптимистичной проверкой версии.

    Every "read credential -> validate code -> write credential" sequence is serialized
    per user by passing the version that was read as `expected_version`.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/domain/entities/two_factor_credential.py
      - src/kivilcim/contexts/identity/adapters/outbound/persistence/postgres/
        two_factor_repository.py
      - alembic/versions/20261018_0001_identity_2fa_credentials_v1.py
    """

    def find_by_user_id(self, *, user_id: UserId) -> TwoFactorCredential | None:
        """
        Find credential snapshot by user id.

        Args:
            user_id: Identity user identifier.
        Returns:
            TwoFactorCredential | None: Stored snapshot or `None` when never provisioned.
        Assumptions:
            `user_id` uniquely identifies one credential row.
        Raises:
            ValueError: If adapter cannot map storage row to domain state.
        Side Effects:
            Reads one storage record.
        """
        ...

    def save(
        self,
        *,
        credential: TwoFactorCredential,
        expected_version: int | None,
    ) -> TwoFactorCredential:
        """
        Insert or replace credential when stored version matches expectation.

        Args:
            credential: Next credential state (its `version` is the new version).
            expected_version: Version read by the caller, `None` when no row existed.
        Returns:
            TwoFactorCredential: Persisted credential.
        Assumptions:
            `credential.version == (expected_version or 0) + 1`.
        Raises:
            TwoFactorVersionConflictError: If stored version differs from expectation.
            ValueError: If version arithmetic is inconsistent.
        Side Effects:
            Writes one storage record.
        """
        ...

    def delete(self, *, user_id: UserId, expected_version: int) -> None:
        """
        Delete credential (active and pending secrets) when version matches expectation.

        Args:
            user_id: Identity user identifier.
            expected_version: Version read by the caller.
        Returns:
            None.
        Assumptions:
            Deleting returns the user to the never-provisioned state.
        Raises:
            TwoFactorVersionConflictError: If row is missing or version differs.
        Side Effects:
            Deletes one storage record.
        """
        ...
