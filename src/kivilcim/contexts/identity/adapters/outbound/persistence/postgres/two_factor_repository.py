from __future__ import annotations

from typing import Any, Mapping

from kivilcim.contexts.identity.adapters.outbound.persistence.postgres.gateway import (
    IdentityPostgresGateway,
)
from kivilcim.contexts.identity.application.ports.two_factor_repository import (
    TwoFactorRepository,
    TwoFactorVersionConflictError,
)
from kivilcim.contexts.identity.domain.entities import ProvisioningSession, TwoFactorCredential
from kivilcim.shared_kernel.primitives import UserId

_COLUMNS = """
            user_id,
            enabled,
            secret_enc,
            pending_secret_enc,
            pending_created_at,
            verified_this_session,
            last_verification_at,
            last_accepted_counter,
            updated_at,
            version
"""


class PostgresIdentityTwoFactorRepository(TwoFactorRepository):
    """
    PostgresIdentityTwoFactorRepository — Postgres trust store with optimistic version check.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/two_factor_repository.py
      - src/kivilcim/contexts/identity/adapters/outbound/persistence/postgres/gateway.py
      - alembic/versions/20261018_0001_identity_2fa_credentials_v1.py
    """

    def __init__(
        self,
        *,
        gateway: IdentityPostgresGateway,
        credentials_table: str = "identity_2fa_credentials",
    ) -> None:
        """
        Initialize repository with SQL gateway and target table name.

        Args:
            gateway: SQL gateway abstraction.
            credentials_table: Target credentials table name.
        Returns:
            None.
        Assumptions:
            Table schema follows Alembic revision `20261018_0001`.
        Raises:
            ValueError: If dependencies are invalid.
        Side Effects:
            None.
        """
        if gateway is None:  # type: ignore[truthy-bool]
            raise ValueError("PostgresIdentityTwoFactorRepository requires gateway")
        normalized_table = credentials_table.strip()
        if not normalized_table:
            raise ValueError("PostgresIdentityTwoFactorRepository requires non-empty table name")
        self._gateway = gateway
        self._table = normalized_table

    def find_by_user_id(self, *, user_id: UserId) -> TwoFactorCredential | None:
        query = f"""
        SELECT{_COLUMNS}
        FROM {self._table}
        WHERE user_id = %(user_id)s
        """
        row = self._gateway.fetch_one(query=query, parameters={"user_id": str(user_id)})
        if row is None:
            return None
        return _map_credential_row(row=row)

    def save(
        self,
        *,
        credential: TwoFactorCredential,
        expected_version: int | None,
    ) -> TwoFactorCredential:
        """
        Insert first row or update row guarded by `version = expected_version`.

        Args:
            credential: Next credential state.
            expected_version: Version read by the caller, `None` for first insert.
        Returns:
            TwoFactorCredential: Persisted credential mapped from `RETURNING` row.
        Assumptions:
            Missing `RETURNING` row means another writer changed or created the row first.
        Raises:
            ValueError: If version arithmetic is inconsistent or row mapping fails.
            TwoFactorVersionConflictError: If stored version differs from expectation.
        Side Effects:
            Executes one SQL write statement.
        """
        expected_next = (expected_version or 0) + 1
        if credential.version != expected_next:
            raise ValueError(
                "TwoFactorCredential.version must equal expected_version + 1, "
                f"got version={credential.version} expected_version={expected_version}"
            )

        parameters = _credential_parameters(credential=credential)
        if expected_version is None:
            query = f"""
            INSERT INTO {self._table}
            ({_COLUMNS})
            VALUES
            (
                %(user_id)s,
                %(enabled)s,
                %(secret_enc)s,
                %(pending_secret_enc)s,
                %(pending_created_at)s,
                %(verified_this_session)s,
                %(last_verification_at)s,
                %(last_accepted_counter)s,
                %(updated_at)s,
                %(version)s
            )
            ON CONFLICT (user_id) DO NOTHING
            RETURNING{_COLUMNS}
            """
        else:
            query = f"""
            UPDATE {self._table}
            SET
                enabled = %(enabled)s,
                secret_enc = %(secret_enc)s,
                pending_secret_enc = %(pending_secret_enc)s,
                pending_created_at = %(pending_created_at)s,
                verified_this_session = %(verified_this_session)s,
                last_verification_at = %(last_verification_at)s,
                last_accepted_counter = %(last_accepted_counter)s,
                updated_at = %(updated_at)s,
                version = %(version)s
            WHERE user_id = %(user_id)s
              AND version = %(expected_version)s
            RETURNING{_COLUMNS}
            """
            parameters["expected_version"] = expected_version

        row = self._gateway.fetch_one(query=query, parameters=parameters)
        if row is None:
            raise TwoFactorVersionConflictError(
                user_id=credential.user_id,
                expected_version=expected_version,
            )
        return _map_credential_row(row=row)

    def delete(self, *, user_id: UserId, expected_version: int) -> None:
        query = f"""
        DELETE FROM {self._table}
        WHERE user_id = %(user_id)s
          AND version = %(expected_version)s
        RETURNING user_id
        """
        row = self._gateway.fetch_one(
            query=query,
            parameters={"user_id": str(user_id), "expected_version": expected_version},
        )
        if row is None:
            raise TwoFactorVersionConflictError(user_id=user_id, expected_version=expected_version)


def _credential_parameters(*, credential: TwoFactorCredential) -> dict[str, Any]:
    pending = credential.pending
    return {
        "user_id": str(credential.user_id),
        "enabled": credential.enabled,
        "secret_enc": bytes(credential.secret_enc) if credential.secret_enc is not None else None,
        "pending_secret_enc": bytes(pending.secret_enc) if pending is not None else None,
        "pending_created_at": pending.created_at if pending is not None else None,
        "verified_this_session": credential.verified_this_session,
        "last_verification_at": credential.last_verification_at,
        "last_accepted_counter": credential.last_accepted_counter,
        "updated_at": credential.updated_at,
        "version": credential.version,
    }


def _map_credential_row(*, row: Mapping[str, Any]) -> TwoFactorCredential:
    """
    Map SQL row mapping into immutable `TwoFactorCredential`.

    Args:
        row: SQL result mapping.
    Returns:
        TwoFactorCredential: Domain credential.
    Assumptions:
        `BYTEA` columns may arrive as `memoryview` depending on driver settings.
    Raises:
        ValueError: If required fields are missing or violate domain invariants.
    Side Effects:
        None.
    """
    try:
        pending_blob = _optional_bytes(row["pending_secret_enc"])
        pending = (
            ProvisioningSession(secret_enc=pending_blob, created_at=row["pending_created_at"])
            if pending_blob is not None
            else None
        )
        counter_raw = row["last_accepted_counter"]
        return TwoFactorCredential(
            user_id=UserId.from_string(str(row["user_id"])),
            enabled=bool(row["enabled"]),
            secret_enc=_optional_bytes(row["secret_enc"]),
            pending=pending,
            verified_this_session=bool(row["verified_this_session"]),
            last_verification_at=row["last_verification_at"],
            last_accepted_counter=int(counter_raw) if counter_raw is not None else None,
            updated_at=row["updated_at"],
            version=int(row["version"]),
        )
    except (KeyError, TypeError, ValueError) as error:
        raise ValueError("PostgresIdentityTwoFactorRepository cannot map credential row") from error


def _optional_bytes(value: Any) -> bytes | None:
    if value is None:
        return None
    if isinstance(value, memoryview):
        return value.tobytes()
    return bytes(value)
