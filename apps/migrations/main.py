"""
Fail-fast Alembic migration runner for identity Postgres schema.

Docs: docs/architecture/identity/identity-2fa-trust-engine-v1.md
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Mapping

from psycopg.conninfo import conninfo_to_dict
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Connection
from sqlalchemy.engine.url import make_url

from alembic import command
from alembic.config import Config

log = logging.getLogger(__name__)

_DSN_ENV_KEYS: tuple[str, ...] = ("IDENTITY_PG_DSN", "POSTGRES_DSN")
_DEFAULT_LOCK_KEY = 47120261018
_POSTGRES_URL_PREFIXES: tuple[str, ...] = (
    "postgresql+psycopg://",
    "postgresql://",
    "postgres://",
)
_CONNINFO_URL_FIELDS = frozenset({"dbname", "host", "hostaddr", "password", "port", "user"})


def _build_parser() -> argparse.ArgumentParser:
    """
    Build CLI parser for fail-fast Alembic migration runner.

    Args:
        None.
    Returns:
        argparse.ArgumentParser: Configured command parser.
    Assumptions:
        Entry point is called from repository root or any nested path.
    Raises:
        None.
    Side Effects:
        None.
    """
    parser = argparse.ArgumentParser(prog="kivilcim-migrations")
    parser.add_argument(
        "--dsn",
        default="",
        help="Postgres DSN. Falls back to $IDENTITY_PG_DSN, then $POSTGRES_DSN.",
    )
    parser.add_argument(
        "--lock-key",
        type=int,
        default=_DEFAULT_LOCK_KEY,
        help="Advisory lock key used with pg_advisory_lock during migration upgrade.",
    )
    return parser


def resolve_dsn(*, arg_dsn: str, environ: Mapping[str, str]) -> str:
    """
    Resolve Postgres DSN from CLI argument or environment variables.

    Args:
        arg_dsn: CLI `--dsn` value.
        environ: Environment mapping.
    Returns:
        str: Non-empty DSN string.
    Assumptions:
        CLI value wins, then `IDENTITY_PG_DSN`, then `POSTGRES_DSN`.
    Raises:
        ValueError: If DSN is missing everywhere.
    Side Effects:
        None.
    """
    if arg_dsn.strip():
        return arg_dsn.strip()
    for key in _DSN_ENV_KEYS:
        value = environ.get(key, "").strip()
        if value:
            return value
    raise ValueError("Migration DSN is required via --dsn, IDENTITY_PG_DSN, or POSTGRES_DSN")


def to_sqlalchemy_psycopg_url(*, dsn: str) -> URL:
    """
    Normalize DSN to SQLAlchemy psycopg URL from URL DSN or libpq conninfo.

    Args:
        dsn: Raw Postgres DSN.
    Returns:
        URL: SQLAlchemy URL using `postgresql+psycopg` dialect.
    Assumptions:
        DSN can be PostgreSQL URL or libpq conninfo keyword-value string.
    Raises:
        ValueError: If DSN is empty or unsupported.
    Side Effects:
        None.
    """
    normalized = dsn.strip()
    if not normalized:
        raise ValueError("Postgres DSN cannot be empty")
    if normalized.startswith(_POSTGRES_URL_PREFIXES):
        parsed_url = make_url(normalized)
        if parsed_url.drivername not in {"postgresql", "postgres", "postgresql+psycopg"}:
            raise ValueError("Postgres URL DSN must use postgresql:// or postgres:// scheme")
        return parsed_url.set(drivername="postgresql+psycopg")
    return _conninfo_to_sqlalchemy_url(conninfo_dsn=normalized)


def _conninfo_to_sqlalchemy_url(*, conninfo_dsn: str) -> URL:
    """
    Convert libpq conninfo DSN (`host=... user=...`) to SQLAlchemy URL.

    Args:
        conninfo_dsn: libpq DSN in keyword-value format.
    Returns:
        URL: SQLAlchemy URL with parsed auth/host/database/query components.
    Assumptions:
        `psycopg.conninfo.conninfo_to_dict` validates conninfo syntax.
    Raises:
        ValueError: If conninfo DSN is invalid or port is not numeric.
    Side Effects:
        None.
    """
    try:
        fields = conninfo_to_dict(conninfo_dsn)
    except Exception as error:  # noqa: BLE001
        raise ValueError("Postgres DSN must be URL or libpq conninfo format") from error

    raw_port = str(fields.get("port", "")).strip()
    port: int | None = None
    if raw_port:
        try:
            port = int(raw_port)
        except ValueError as error:
            raise ValueError("Conninfo port must be numeric when provided") from error

    query = {
        key: str(value)
        for key, value in sorted(fields.items())
        if key not in _CONNINFO_URL_FIELDS and str(value)
    }
    return URL.create(
        "postgresql+psycopg",
        username=str(fields.get("user", "")).strip() or None,
        password=str(fields.get("password", "")).strip() or None,
        host=str(fields.get("host", fields.get("hostaddr", ""))).strip() or None,
        port=port,
        database=str(fields.get("dbname", "")).strip() or None,
        query=query,
    )


def _build_alembic_config(*, repo_root: Path) -> Config:
    alembic_ini = repo_root / "alembic.ini"
    if not alembic_ini.exists():
        raise ValueError(f"Missing Alembic config file: {alembic_ini}")
    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(repo_root / "alembic"))
    return config


def _upgrade_head_under_lock(*, config: Config, sqlalchemy_url: URL, lock_key: int) -> None:
    """
    Run `alembic upgrade head` while holding Postgres advisory lock.

    Args:
        config: Prepared Alembic config.
        sqlalchemy_url: SQLAlchemy URL.
        lock_key: Advisory lock key.
    Returns:
        None.
    Assumptions:
        Advisory lock must be held on the same connection used by Alembic.
    Raises:
        Exception: Any DB or Alembic failure is propagated for fail-fast startup.
    Side Effects:
        Applies DB schema migrations.
    """
    engine = create_engine(sqlalchemy_url, pool_pre_ping=True)
    with engine.connect() as connection:
        _advisory_lock(connection=connection, lock_key=lock_key, acquire=True)
        try:
            config.attributes["connection"] = connection
            log.info("migrations upgrade start target=head")
            command.upgrade(config, "head")
            connection.commit()
            log.info("migrations upgrade success target=head")
        except Exception:  # noqa: BLE001
            connection.rollback()
            raise
        finally:
            _advisory_lock(connection=connection, lock_key=lock_key, acquire=False)
            connection.commit()


def _advisory_lock(*, connection: Connection, lock_key: int, acquire: bool) -> None:
    function_name = "pg_advisory_lock" if acquire else "pg_advisory_unlock"
    log.info("migrations %s key=%s", function_name, lock_key)
    connection.execute(text(f"SELECT {function_name}(:lock_key)"), {"lock_key": lock_key})


def main(argv: list[str] | None = None) -> int:
    """
    Run fail-fast migration flow with advisory lock and `alembic upgrade head`.

    Args:
        argv: Optional CLI argument list without program name.
    Returns:
        int: Zero on success, non-zero on failure.
    Assumptions:
        Caller expects startup to fail immediately when migrations fail.
    Raises:
        None.
    Side Effects:
        Reads environment, connects to Postgres, applies migrations, writes log lines.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - alembic/env.py
      - alembic/versions/20261018_0001_identity_2fa_credentials_v1.py
    """
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    args = _build_parser().parse_args(argv)

    try:
        dsn = resolve_dsn(arg_dsn=args.dsn, environ=os.environ)
        sqlalchemy_url = to_sqlalchemy_psycopg_url(dsn=dsn)
        repo_root = Path(__file__).resolve().parents[2]
        config = _build_alembic_config(repo_root=repo_root)
        _upgrade_head_under_lock(
            config=config,
            sqlalchemy_url=sqlalchemy_url,
            lock_key=args.lock_key,
        )
    except Exception as error:  # noqa: BLE001
        log.error("migrations failed error=%s", error)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
