from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class TrustState(str, Enum):
    """
    TrustState — states of the privileged-session trust machine.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/domain/services/trust_evaluation.py
      - src/kivilcim/contexts/identity/adapters/outbound/policy/two_factor_trust_gate.py
    """

    NOT_CONFIGURED = "not_configured"
    PENDING_VERIFICATION = "pending_verification"
    TRUSTED = "trusted"
    ROTATING = "rotating"

    @property
    def allows_privileged_actions(self) -> bool:
        """
        Return whether privileged actions may proceed in this state.

        Args:
            None.
        Returns:
            bool: `True` for `TRUSTED` and `ROTATING`.
        Assumptions:
            Rotation keeps the old secret active until the new one is confirmed.
        Raises:
            None.
        Side Effects:
            None.
        """
        return self in (TrustState.TRUSTED, TrustState.ROTATING)


def _trust_window_deadline(
    *,
    state: TrustState,
    required: bool,
    last_verification_at: datetime | None,
    session_timeout_mins: int,
) -> datetime | None:
    """
    Return the instant when a privileged trust window closes, if the state depends on one.

    Args:
        state: Trust state.
        required: Whether the role is subject to the trust gate.
        last_verification_at: Last successful verification instant.
        session_timeout_mins: Trust window length in minutes.
    Returns:
        datetime | None: `last_verification_at + timeout` for trusting privileged states,
        otherwise `None`.
    Assumptions:
        Non-privileged trust and non-trusting states never expire into a different state.
    Raises:
        None.
    Side Effects:
        None.
    """
    if not required or not state.allows_privileged_actions or last_verification_at is None:
        return None
    return last_verification_at + timedelta(minutes=session_timeout_mins)


@dataclass(frozen=True, slots=True)
class TrustSnapshot:
    """
    TrustSnapshot — authoritative trust view derived from persisted credential state.

    Computed on demand by `evaluate_trust`, never persisted, and the only type accepted by
    server-side enforcement. `required` tells whether the caller's role is gated at all.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/domain/services/trust_evaluation.py
      - src/kivilcim/contexts/identity/application/use_cases/get_two_factor_status.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/routes/two_factor.py
    """

    state: TrustState
    required: bool
    enabled: bool
    verified: bool
    requires_verification: bool
    session_timeout_mins: int
    last_verification_at: datetime | None

    def __post_init__(self) -> None:
        """
        Validate snapshot consistency between state and flags.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Snapshot is produced by the trust evaluation service.
        Raises:
            ValueError: If timeout is non-positive or flags contradict the state.
        Side Effects:
            None.
        """
        if self.session_timeout_mins <= 0:
            raise ValueError("TrustSnapshot.session_timeout_mins must be > 0")
        if not self.required and (self.state is not TrustState.TRUSTED or not self.verified):
            raise ValueError("TrustSnapshot for ungated role must be TRUSTED and verified")
        if self.state is TrustState.NOT_CONFIGURED and self.enabled:
            raise ValueError("TrustSnapshot NOT_CONFIGURED state cannot be enabled")
        if self.state is TrustState.PENDING_VERIFICATION and not self.requires_verification:
            raise ValueError(
                "TrustSnapshot PENDING_VERIFICATION state must require verification"
            )
        if self.state.allows_privileged_actions and self.requires_verification:
            raise ValueError(f"TrustSnapshot {self.state.name} state cannot require verification")

    @property
    def trust_expires_at(self) -> datetime | None:
        """
        Return the instant when the server stops honoring this snapshot's trust.

        Args:
            None.
        Returns:
            datetime | None: Trust window deadline, or `None` when trust does not lapse.
        Assumptions:
            Mirrors of this snapshot must not outlive the returned deadline.
        Raises:
            None.
        Side Effects:
            None.
        """
        return _trust_window_deadline(
            state=self.state,
            required=self.required,
            last_verification_at=self.last_verification_at,
            session_timeout_mins=self.session_timeout_mins,
        )


@dataclass(frozen=True, slots=True)
class AdvisoryTrustView:
    """
    AdvisoryTrustView — client-side cached mirror of a `TrustSnapshot`.

    Decoded from the client trust cookie and usable only for optimistic UI decisions. It
    deliberately has no conversion into `TrustSnapshot`; enforcement never reads it.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/trust_cache_codec.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/trust_cache/
        hs256_trust_cache_codec.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/deps/trust_cache_cookie.py
    """

    state: TrustState
    required: bool
    enabled: bool
    verified: bool
    requires_verification: bool
    session_timeout_mins: int
    last_verification_at: datetime | None
    issued_at: datetime
    expires_at: datetime

    def __post_init__(self) -> None:
        """
        Validate cache lifetime bounds.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Cache lifetime never exceeds the session timeout nor the trust window deadline.
        Raises:
            ValueError: If expiry is not after issue time or outlives the trust window.
        Side Effects:
            None.
        """
        if self.session_timeout_mins <= 0:
            raise ValueError("AdvisoryTrustView.session_timeout_mins must be > 0")
        lifetime_seconds = (self.expires_at - self.issued_at).total_seconds()
        if lifetime_seconds <= 0:
            raise ValueError("AdvisoryTrustView.expires_at must be after issued_at")
        if lifetime_seconds > self.session_timeout_mins * 60:
            raise ValueError("AdvisoryTrustView lifetime must not exceed session timeout")
        deadline = _trust_window_deadline(
            state=self.state,
            required=self.required,
            last_verification_at=self.last_verification_at,
            session_timeout_mins=self.session_timeout_mins,
        )
        if deadline is not None and self.expires_at > deadline:
            raise ValueError("AdvisoryTrustView must expire no later than the trust window")
