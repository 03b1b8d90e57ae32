from __future__ import annotations

from datetime import datetime, timedelta

from kivilcim.contexts.identity.domain.entities.two_factor_credential import (
    TwoFactorCredential,
)
from kivilcim.contexts.identity.domain.value_objects.two_factor_trust import (
    TrustSnapshot,
    TrustState,
)

DEFAULT_SESSION_TIMEOUT_MINUTES = 180


def evaluate_trust(
    *,
    credential: TwoFactorCredential | None,
    privileged: bool,
    now: datetime,
    session_timeout: timedelta,
) -> TrustSnapshot:
    """
    Compute the authoritative trust snapshot for one user at instant `now`.

    Args:
        credential: Persisted credential, or `None` when the user never provisioned 2FA.
        privileged: Whether the user's role is subject to the trust gate.
        now: Timezone-aware UTC evaluation instant.
        session_timeout: Trust window length.
    Returns:
        TrustSnapshot: Snapshot with one of the four `TrustState` values.
    Assumptions:
        Result depends only on arguments; expiry is evaluated lazily on each call.
        Ungated roles are always reported as verified.
        A verification exactly `session_timeout` ago is already expired.
    Raises:
        ValueError: If `now` is not UTC or timeout is not a positive whole number of minutes.
    Side Effects:
        None.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/outbound/policy/two_factor_trust_gate.py
      - src/kivilcim/contexts/identity/application/use_cases/get_two_factor_status.py
      - src/kivilcim/contexts/identity/application/use_cases/setup_two_factor_totp.py
    """
    _ensure_utc_datetime(name="now", value=now)
    timeout_mins = _timeout_minutes(session_timeout=session_timeout)

    enabled = credential is not None and credential.enabled
    last_verification_at = credential.last_verification_at if credential is not None else None
    fresh = (
        credential is not None
        and enabled
        and credential.verified_this_session
        and last_verification_at is not None
        and now - last_verification_at < session_timeout
    )

    if not privileged:
        state = TrustState.TRUSTED
    elif not enabled:
        state = TrustState.NOT_CONFIGURED
    elif not fresh:
        state = TrustState.PENDING_VERIFICATION
    elif credential is not None and credential.rotation_pending:
        state = TrustState.ROTATING
    else:
        state = TrustState.TRUSTED

    return TrustSnapshot(
        state=state,
        required=privileged,
        enabled=enabled,
        verified=fresh if privileged else True,
        requires_verification=state is TrustState.PENDING_VERIFICATION,
        session_timeout_mins=timeout_mins,
        last_verification_at=last_verification_at,
    )


def _timeout_minutes(*, session_timeout: timedelta) -> int:
    total_seconds = int(session_timeout.total_seconds())
    if total_seconds <= 0 or total_seconds % 60 != 0:
        raise ValueError("session_timeout must be a positive whole number of minutes")
    return total_seconds // 60


def _ensure_utc_datetime(*, name: str, value: datetime) -> None:
    offset = value.utcoffset()
    if value.tzinfo is None or offset is None:
        raise ValueError(f"{name} must be timezone-aware UTC datetime")
    if offset.total_seconds() != 0:
        raise ValueError(f"{name} must be UTC datetime")
