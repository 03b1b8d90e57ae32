from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from kivilcim.shared_kernel.primitives import UserId


@dataclass(frozen=True, slots=True)
class ProvisioningSession:
    """
    ProvisioningSession — staged TOTP secret awaiting confirmation through `enable`.

    A staged secret never activates two-factor authentication on its own.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/use_cases/setup_two_factor_totp.py
      - src/kivilcim/contexts/identity/application/use_cases/enable_two_factor_totp.py
    """

    secret_enc: bytes
    created_at: datetime

    def __post_init__(self) -> None:
        """
        Validate staged secret blob and UTC creation timestamp.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Secret blob is produced by the envelope cipher and is opaque here.
        Raises:
            ValueError: If blob is empty or timestamp is not UTC.
        Side Effects:
            None.
        """
        if not self.secret_enc:
            raise ValueError("ProvisioningSession.secret_enc must be non-empty")
        _ensure_utc_datetime(name="created_at", value=self.created_at)


@dataclass(frozen=True, slots=True)
class TwoFactorCredential:
    """
    TwoFactorCredential — immutable per-user two-factor state owned by the trust store.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/two_factor_repository.py
      - src/kivilcim/contexts/identity/domain/services/trust_evaluation.py
      - alembic/versions/20261018_0001_identity_2fa_credentials_v1.py
    """

    user_id: UserId
    enabled: bool
    secret_enc: bytes | None
    pending: ProvisioningSession | None
    verified_this_session: bool
    last_verification_at: datetime | None
    last_accepted_counter: int | None
    updated_at: datetime
    version: int

    def __post_init__(self) -> None:
        """
        Validate enabled/secret/verification invariants and UTC timestamps.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Absence of any secret is represented by a missing row, never by an empty credential.
        Raises:
            ValueError: If one of credential invariants is violated.
        Side Effects:
            None.
        """
        _ensure_utc_datetime(name="updated_at", value=self.updated_at)
        if self.version < 1:
            raise ValueError("TwoFactorCredential.version must be >= 1")
        if self.enabled and not self.secret_enc:
            raise ValueError("TwoFactorCredential.secret_enc must be set when enabled is true")
        if not self.enabled and self.secret_enc is not None:
            raise ValueError("TwoFactorCredential.secret_enc must be None when enabled is false")
        if not self.enabled and self.pending is None:
            raise ValueError(
                "TwoFactorCredential without active secret must carry a pending secret"
            )
        if self.verified_this_session:
            if not self.enabled:
                raise ValueError(
                    "TwoFactorCredential.verified_this_session requires enabled credential"
                )
            if self.last_verification_at is None:
                raise ValueError(
                    "TwoFactorCredential.last_verification_at must be set when verified"
                )
        if self.last_verification_at is not None:
            _ensure_utc_datetime(name="last_verification_at", value=self.last_verification_at)
        if self.last_accepted_counter is not None and self.last_accepted_counter < 0:
            raise ValueError("TwoFactorCredential.last_accepted_counter must be >= 0")

    @property
    def rotation_pending(self) -> bool:
        """
        Return whether an enabled credential has a replacement secret staged.

        Args:
            None.
        Returns:
            bool: `True` when `enabled` and a pending secret coexist.
        Assumptions:
            Pending secret on a disabled credential is first-time provisioning, not rotation.
        Raises:
            None.
        Side Effects:
            None.
        """
        return self.enabled and self.pending is not None

    @classmethod
    def provision(
        cls,
        *,
        user_id: UserId,
        secret_enc: bytes,
        now: datetime,
    ) -> TwoFactorCredential:
        """
        Build first credential row carrying only a staged secret.

        Args:
            user_id: Owner user id.
            secret_enc: Encrypted staged secret.
            now: UTC timestamp of staging.
        Returns:
            TwoFactorCredential: New credential at version 1.
        Assumptions:
            No credential row exists for the user yet.
        Raises:
            ValueError: If inputs violate invariants.
        Side Effects:
            None.
        """
        return cls(
            user_id=user_id,
            enabled=False,
            secret_enc=None,
            pending=ProvisioningSession(secret_enc=secret_enc, created_at=now),
            verified_this_session=False,
            last_verification_at=None,
            last_accepted_counter=None,
            updated_at=now,
            version=1,
        )

    def with_pending_secret(self, *, secret_enc: bytes, now: datetime) -> TwoFactorCredential:
        """
        Stage a new pending secret, overwriting any previous pending one.

        Args:
            secret_enc: Encrypted staged secret.
            now: UTC timestamp of staging.
        Returns:
            TwoFactorCredential: Next version with replaced pending secret.
        Assumptions:
            Active secret (if any) keeps working until `activate_pending`.
        Raises:
            ValueError: If inputs violate invariants.
        Side Effects:
            None.
        """
        return replace(
            self,
            pending=ProvisioningSession(secret_enc=secret_enc, created_at=now),
            updated_at=now,
            version=self.version + 1,
        )

    def activate_pending(self, *, now: datetime, counter: int | None) -> TwoFactorCredential:
        """
        Swap pending secret into the active slot and open a fresh trust window.

        Args:
            now: UTC timestamp of successful confirmation.
            counter: Accepted TOTP counter when replay tracking is on, otherwise `None`.
        Returns:
            TwoFactorCredential: Next version with the new secret active.
        Assumptions:
            Caller already verified the code against the pending secret.
        Raises:
            ValueError: If no pending secret exists.
        Side Effects:
            None.
        """
        if self.pending is None:
            raise ValueError("TwoFactorCredential.activate_pending requires pending secret")
        return replace(
            self,
            enabled=True,
            secret_enc=self.pending.secret_enc,
            pending=None,
            verified_this_session=True,
            last_verification_at=now,
            last_accepted_counter=counter,
            updated_at=now,
            version=self.version + 1,
        )

    def mark_verified(self, *, now: datetime, counter: int | None) -> TwoFactorCredential:
        """
        Re-establish the trust window after a successful verification.

        Args:
            now: UTC timestamp of verification.
            counter: Accepted counter when replay tracking is on; `None` keeps the stored one.
        Returns:
            TwoFactorCredential: Next version with refreshed verification timestamp.
        Assumptions:
            Credential is enabled.
        Raises:
            ValueError: If credential is not enabled.
        Side Effects:
            None.
        """
        if not self.enabled:
            raise ValueError("TwoFactorCredential.mark_verified requires enabled credential")
        return replace(
            self,
            verified_this_session=True,
            last_verification_at=now,
            last_accepted_counter=(
                counter if counter is not None else self.last_accepted_counter
            ),
            updated_at=now,
            version=self.version + 1,
        )

    def end_session(self, *, now: datetime) -> TwoFactorCredential:
        """
        Drop the current trust window without touching secrets.

        Args:
            now: UTC timestamp of the session end.
        Returns:
            TwoFactorCredential: Next version with `verified_this_session=false`.
        Assumptions:
            `last_verification_at` is kept for status reporting.
        Raises:
            ValueError: If resulting state violates invariants.
        Side Effects:
            None.
        """
        return replace(
            self,
            verified_this_session=False,
            updated_at=now,
            version=self.version + 1,
        )


def _ensure_utc_datetime(*, name: str, value: datetime) -> None:
    """
    Validate timezone awareness and UTC offset for datetime fields.

    Args:
        name: Field name for deterministic error messages.
        value: Datetime value to validate.
    Returns:
        None.
    Assumptions:
        UTC datetimes are represented with timezone info and zero offset.
    Raises:
        ValueError: If datetime is naive or not in UTC.
    Side Effects:
        None.
    """
    offset = value.utcoffset()
    if value.tzinfo is None or offset is None:
        raise ValueError(f"{name} must be timezone-aware UTC datetime")
    if offset.total_seconds() != 0:
        raise ValueError(f"{name} must be UTC datetime")
