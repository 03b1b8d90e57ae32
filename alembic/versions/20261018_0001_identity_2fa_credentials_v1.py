"""Create identity 2FA credentials table for the two-factor trust engine."""

from __future__ import annotations

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """
    Apply identity 2FA credentials schema.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        One row per user; `version` is the optimistic concurrency token.
    Raises:
        Exception: Postgres execution errors from Alembic runtime.
    Side Effects:
        Creates `identity_2fa_credentials` table and its constraints.
    """
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS identity_2fa_credentials (
            user_id TEXT PRIMARY KEY,
            enabled BOOLEAN NOT NULL DEFAULT FALSE,
            secret_enc BYTEA NULL,
            pending_secret_enc BYTEA NULL,
            pending_created_at TIMESTAMPTZ NULL,
            verified_this_session BOOLEAN NOT NULL DEFAULT FALSE,
            last_verification_at TIMESTAMPTZ NULL,
            last_accepted_counter BIGINT NULL,
            updated_at TIMESTAMPTZ NOT NULL,
            version BIGINT NOT NULL,
            CONSTRAINT identity_2fa_credentials_version_chk
                CHECK (version >= 1),
            CONSTRAINT identity_2fa_credentials_enabled_secret_chk
                CHECK (enabled = (secret_enc IS NOT NULL)),
            CONSTRAINT identity_2fa_credentials_has_secret_chk
                CHECK (enabled OR pending_secret_enc IS NOT NULL),
            CONSTRAINT identity_2fa_credentials_pending_pair_chk
                CHECK ((pending_secret_enc IS NULL) = (pending_created_at IS NULL)),
            CONSTRAINT identity_2fa_credentials_session_chk
                CHECK (NOT verified_this_session OR last_verification_at IS NOT NULL)
        )
        """
    )


def downgrade() -> None:
    """
    Drop identity 2FA credentials schema.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Dropping the table returns every user to the never-provisioned state.
    Raises:
        Exception: Postgres execution errors from Alembic runtime.
    Side Effects:
        Drops `identity_2fa_credentials` table.
    """
    op.execute("DROP TABLE IF EXISTS identity_2fa_credentials")
