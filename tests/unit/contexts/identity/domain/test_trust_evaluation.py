from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from kivilcim.contexts.identity.domain import (
    TrustState,
    TwoFactorCredential,
    evaluate_trust,
)
from kivilcim.shared_kernel.primitives import UserId

_VERIFIED_AT = datetime(2026, 10, 18, 10, 0, 0, tzinfo=timezone.utc)
_TIMEOUT = timedelta(minutes=180)


def _enabled_credential() -> TwoFactorCredential:
    return TwoFactorCredential.provision(
        user_id=UserId.from_string("admin-1"),
        secret_enc=b"active",
        now=_VERIFIED_AT,
    ).activate_pending(now=_VERIFIED_AT, counter=None)


def test_non_privileged_user_is_always_trusted() -> None:
    """
    Verify non-privileged roles are trusted regardless of stored 2FA state.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Privilege is decided before credential state.
    Raises:
        AssertionError: If a non-privileged user is gated.
    Side Effects:
        None.
    """
    snapshot = evaluate_trust(
        credential=None,
        privileged=False,
        now=_VERIFIED_AT,
        session_timeout=_TIMEOUT,
    )

    assert snapshot.state is TrustState.TRUSTED
    assert snapshot.required is False
    assert snapshot.enabled is False
    assert snapshot.verified is True
    assert snapshot.requires_verification is False
    assert snapshot.session_timeout_mins == 180


@pytest.mark.parametrize(
    "credential",
    [
        None,
        _enabled_credential(),
        _enabled_credential().end_session(now=_VERIFIED_AT + timedelta(minutes=1)),
    ],
)
def test_ungated_role_snapshot_reports_verified_whatever_the_stored_state(
    credential: TwoFactorCredential | None,
) -> None:
    """
    Verify flags of an ungated role agree with its TRUSTED state even when 2FA is stale.

    Args:
        credential: Stored credential, including expired and ended trust windows.
    Returns:
        None.
    Assumptions:
        UI reads `verified` and must not prompt ungated users to re-verify.
    Raises:
        AssertionError: If `verified` or `required` contradict the state.
    Side Effects:
        None.
    """
    snapshot = evaluate_trust(
        credential=credential,
        privileged=False,
        now=_VERIFIED_AT + timedelta(minutes=500),
        session_timeout=_TIMEOUT,
    )

    assert snapshot.state is TrustState.TRUSTED
    assert snapshot.required is False
    assert snapshot.verified is True
    assert snapshot.requires_verification is False
    assert snapshot.trust_expires_at is None


def test_privileged_trust_expires_at_window_deadline() -> None:
    snapshot = evaluate_trust(
        credential=_enabled_credential(),
        privileged=True,
        now=_VERIFIED_AT + timedelta(minutes=170),
        session_timeout=_TIMEOUT,
    )

    assert snapshot.state is TrustState.TRUSTED
    assert snapshot.required is True
    assert snapshot.trust_expires_at == _VERIFIED_AT + _TIMEOUT


def test_privileged_user_without_enabled_two_factor_is_not_configured() -> None:
    provisioned_only = TwoFactorCredential.provision(
        user_id=UserId.from_string("admin-1"),
        secret_enc=b"pending",
        now=_VERIFIED_AT,
    )

    for credential in (None, provisioned_only):
        snapshot = evaluate_trust(
            credential=credential,
            privileged=True,
            now=_VERIFIED_AT,
            session_timeout=_TIMEOUT,
        )
        assert snapshot.state is TrustState.NOT_CONFIGURED
        assert snapshot.required is True
        assert snapshot.verified is False
        assert snapshot.requires_verification is False


@pytest.mark.parametrize(
    ("elapsed", "expected_state"),
    [
        (timedelta(0), TrustState.TRUSTED),
        (_TIMEOUT - timedelta(seconds=1), TrustState.TRUSTED),
        (_TIMEOUT, TrustState.PENDING_VERIFICATION),
        (_TIMEOUT + timedelta(seconds=1), TrustState.PENDING_VERIFICATION),
    ],
)
def test_trust_window_boundary_is_exclusive(
    elapsed: timedelta,
    expected_state: TrustState,
) -> None:
    """
    Verify verification exactly `timeout` ago is expired while `timeout - 1s` is still trusted.

    Args:
        elapsed: Time since last verification.
        expected_state: Expected trust state.
    Returns:
        None.
    Assumptions:
        Freshness is `now - last_verification_at < timeout`.
    Raises:
        AssertionError: If boundary semantics differ.
    Side Effects:
        None.
    """
    snapshot = evaluate_trust(
        credential=_enabled_credential(),
        privileged=True,
        now=_VERIFIED_AT + elapsed,
        session_timeout=_TIMEOUT,
    )

    assert snapshot.state is expected_state
    assert snapshot.requires_verification is (expected_state is TrustState.PENDING_VERIFICATION)
    assert snapshot.last_verification_at == _VERIFIED_AT


def test_ended_session_requires_verification_even_inside_window() -> None:
    credential = _enabled_credential().end_session(now=_VERIFIED_AT + timedelta(minutes=1))

    snapshot = evaluate_trust(
        credential=credential,
        privileged=True,
        now=_VERIFIED_AT + timedelta(minutes=2),
        session_timeout=_TIMEOUT,
    )

    assert snapshot.state is TrustState.PENDING_VERIFICATION
    assert snapshot.verified is False


def test_fresh_rotation_is_rotating_and_stale_rotation_requires_verification() -> None:
    """
    Verify staged rotation yields ROTATING only while the trust window is fresh.
    """
    rotating = _enabled_credential().with_pending_secret(
        secret_enc=b"next",
        now=_VERIFIED_AT + timedelta(minutes=1),
    )

    fresh = evaluate_trust(
        credential=rotating,
        privileged=True,
        now=_VERIFIED_AT + timedelta(minutes=2),
        session_timeout=_TIMEOUT,
    )
    stale = evaluate_trust(
        credential=rotating,
        privileged=True,
        now=_VERIFIED_AT + _TIMEOUT,
        session_timeout=_TIMEOUT,
    )

    assert fresh.state is TrustState.ROTATING
    assert fresh.state.allows_privileged_actions is True
    assert stale.state is TrustState.PENDING_VERIFICATION


def test_evaluation_is_deterministic_and_validates_inputs() -> None:
    arguments = {
        "credential": _enabled_credential(),
        "privileged": True,
        "now": _VERIFIED_AT + timedelta(minutes=30),
        "session_timeout": _TIMEOUT,
    }

    assert evaluate_trust(**arguments) == evaluate_trust(**arguments)
    with pytest.raises(ValueError):
        evaluate_trust(
            credential=None,
            privileged=True,
            now=datetime(2026, 10, 18, 10, 0, 0),
            session_timeout=_TIMEOUT,
        )
    with pytest.raises(ValueError):
        evaluate_trust(
            credential=None,
            privileged=True,
            now=_VERIFIED_AT,
            session_timeout=timedelta(seconds=90),
        )
