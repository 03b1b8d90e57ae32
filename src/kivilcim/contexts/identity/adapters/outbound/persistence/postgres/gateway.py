from __future__ import annotations

from typing import Any, Mapping, Protocol, cast

import psycopg
from psycopg.rows import dict_row


class IdentityPostgresGateway(Protocol):
    """
    IdentityPostgresGateway — минимальный SQL gateway для identity Postgres adapters.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/outbound/persistence/postgres/
        two_factor_repository.py
      - apps/api/wiring/modules/identity.py
    """

    def fetch_one(self, *, query: str, parameters: Mapping[str, Any]) -> Mapping[str, Any] | None:
        """
        Execute one SQL statement and return its first row as mapping.

        Args:
            query: SQL text.
            parameters: Bind parameters mapping.
        Returns:
            Mapping[str, Any] | None: One row or `None`.
        Assumptions:
            Writes use `RETURNING` so the caller can tell whether a row was affected.
        Raises:
            Exception: Storage/driver exceptions from implementation.
        Side Effects:
            Executes one SQL statement.
        """
        ...


class PsycopgIdentityPostgresGateway(IdentityPostgresGateway):
    """
    PsycopgIdentityPostgresGateway — psycopg3 implementation of identity SQL gateway.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/outbound/persistence/postgres/
        two_factor_repository.py
      - alembic/versions/20261018_0001_identity_2fa_credentials_v1.py
    """

    def __init__(self, *, dsn: str) -> None:
        normalized_dsn = dsn.strip()
        if not normalized_dsn:
            raise ValueError("PsycopgIdentityPostgresGateway requires non-empty dsn")
        self._dsn = normalized_dsn

    def fetch_one(self, *, query: str, parameters: Mapping[str, Any]) -> Mapping[str, Any] | None:
        """
        Execute statement in its own transaction and return first row by column names.

        Args:
            query: SQL text.
            parameters: Bind parameters mapping.
        Returns:
            Mapping[str, Any] | None: Row or `None`.
        Assumptions:
            psycopg connection context commits on success and rolls back on error.
        Raises:
            psycopg.Error: When database operation fails.
        Side Effects:
            Opens one database connection and executes one statement.
        """
        with psycopg.connect(
            self._dsn,
            row_factory=cast(Any, dict_row),
        ) as connection:
            with connection.cursor() as cursor:
                cursor.execute(cast(Any, query), parameters)
                row = cursor.fetchone()
        if row is None:
            return None
        return dict(row)
