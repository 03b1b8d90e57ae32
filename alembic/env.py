from __future__ import annotations

from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import Connection

from alembic import context

config = context.config

target_metadata = None


def run_migrations_offline() -> None:
    """
    Run Alembic migrations in offline mode (SQL script output).

    Args:
        None.
    Returns:
        None.
    Assumptions:
        SQL URL is provided via `alembic.ini` or runtime override.
    Raises:
        Exception: Alembic configuration/runtime errors.
    Side Effects:
        Emits SQL statements without opening DB connection.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - alembic/versions/20261018_0001_identity_2fa_credentials_v1.py
      - apps/migrations/main.py
    """
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """
    Run Alembic migrations on the connection injected by the migration runner or a new one.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Injected connection already holds the migration advisory lock.
    Raises:
        Exception: Alembic configuration/runtime errors.
    Side Effects:
        Opens DB connection (when not injected) and applies schema changes.
    """
    injected_connection = config.attributes.get("connection")
    if isinstance(injected_connection, Connection):
        _run_on_connection(connection=injected_connection)
        return

    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        _run_on_connection(connection=connection)


def _run_on_connection(*, connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
