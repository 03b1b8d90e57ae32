from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from kivilcim.contexts.identity.adapters.outbound.security.jwt.hs256_compact import sign_compact
from kivilcim.contexts.identity.adapters.outbound.security.trust_cache import (
    Hs256TrustCacheCodec,
)
from kivilcim.contexts.identity.application.ports import IdentityClock
from kivilcim.contexts.identity.domain import AdvisoryTrustView, TrustSnapshot, TrustState


class _MutableClock(IdentityClock):
    """
    Mutable UTC clock for trust cache expiry checks.
    """

    def __init__(self, *, now_value: datetime) -> None:
        self._now_value = now_value

    def set_now(self, *, now_value: datetime) -> None:
        self._now_value = now_value

    def now(self) -> datetime:
        return self._now_value


_NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def _trusted_snapshot(*, verified_ago: timedelta = timedelta(minutes=5)) -> TrustSnapshot:
    return TrustSnapshot(
        state=TrustState.TRUSTED,
        required=True,
        enabled=True,
        verified=True,
        requires_verification=False,
        session_timeout_mins=180,
        last_verification_at=_NOW - verified_ago,
    )


def test_trust_cache_round_trip_produces_advisory_view_bounded_by_trust_window() -> None:
    """
    Verify encoded snapshot decodes into advisory view expiring with the trust window.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Advisory view is a distinct type from the authoritative snapshot.
    Raises:
        AssertionError: If view fields or lifetime differ.
    Side Effects:
        None.
    """
    clock = _MutableClock(now_value=_NOW)
    codec = Hs256TrustCacheCodec(secret_key="trust-secret", clock=clock)

    token = codec.encode(snapshot=_trusted_snapshot())
    view = codec.decode(token=token.value)

    assert isinstance(view, AdvisoryTrustView)
    assert not isinstance(view, TrustSnapshot)
    assert view.state is TrustState.TRUSTED
    assert view.required is True
    assert view.enabled is True
    assert view.verified is True
    assert view.requires_verification is False
    assert view.session_timeout_mins == 180
    assert view.last_verification_at == _NOW - timedelta(minutes=5)
    assert view.issued_at == _NOW
    assert view.expires_at == _NOW + timedelta(minutes=175)
    assert token.expires_at == view.expires_at
    assert token.max_age_seconds == 175 * 60


def test_trust_cache_decode_returns_none_after_expiry() -> None:
    clock = _MutableClock(now_value=_NOW)
    codec = Hs256TrustCacheCodec(secret_key="trust-secret", clock=clock)
    token = codec.encode(snapshot=_trusted_snapshot())

    clock.set_now(now_value=_NOW + timedelta(minutes=175))

    assert codec.decode(token=token.value) is None


def test_trust_cache_late_in_window_stops_claiming_trust_at_server_deadline() -> None:
    """
    Verify a snapshot mirrored late in the trust window expires with the window, not after it.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Server flips to PENDING_VERIFICATION at `last_verification_at + timeout`.
    Raises:
        AssertionError: If cache outlives the server-side trust deadline.
    Side Effects:
        None.
    """
    clock = _MutableClock(now_value=_NOW)
    codec = Hs256TrustCacheCodec(secret_key="trust-secret", clock=clock)
    token = codec.encode(snapshot=_trusted_snapshot(verified_ago=timedelta(minutes=170)))

    assert token.expires_at == _NOW + timedelta(minutes=10)
    assert token.max_age_seconds == 600

    clock.set_now(now_value=_NOW + timedelta(minutes=9, seconds=59))
    still_fresh = codec.decode(token=token.value)
    assert still_fresh is not None and still_fresh.state is TrustState.TRUSTED

    for after_deadline in (timedelta(minutes=10), timedelta(minutes=60)):
        clock.set_now(now_value=_NOW + after_deadline)
        assert codec.decode(token=token.value) is None


def test_trust_cache_for_lapsed_window_has_zero_lifetime() -> None:
    clock = _MutableClock(now_value=_NOW)
    codec = Hs256TrustCacheCodec(secret_key="trust-secret", clock=clock)

    token = codec.encode(snapshot=_trusted_snapshot(verified_ago=timedelta(minutes=181)))

    assert token.max_age_seconds == 0
    assert codec.decode(token=token.value) is None


@pytest.mark.parametrize(
    "snapshot",
    [
        TrustSnapshot(
            state=TrustState.PENDING_VERIFICATION,
            required=True,
            enabled=True,
            verified=False,
            requires_verification=True,
            session_timeout_mins=180,
            last_verification_at=_NOW - timedelta(minutes=170),
        ),
        TrustSnapshot(
            state=TrustState.TRUSTED,
            required=False,
            enabled=False,
            verified=True,
            requires_verification=False,
            session_timeout_mins=180,
            last_verification_at=None,
        ),
    ],
)
def test_trust_cache_keeps_full_timeout_when_trust_does_not_lapse(
    snapshot: TrustSnapshot,
) -> None:
    clock = _MutableClock(now_value=_NOW)
    codec = Hs256TrustCacheCodec(secret_key="trust-secret", clock=clock)

    token = codec.encode(snapshot=snapshot)
    view = codec.decode(token=token.value)

    assert token.max_age_seconds == 180 * 60
    assert view is not None
    assert view.state is snapshot.state
    assert view.required is snapshot.required
    assert view.expires_at == _NOW + timedelta(minutes=180)


def test_trust_cache_decode_returns_none_for_missing_forged_or_malformed_tokens() -> None:
    """
    Verify every cache decode failure degrades to "unknown" instead of raising.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Client-held cache is untrusted input.
    Raises:
        AssertionError: If any invalid token yields a view.
    Side Effects:
        None.
    """
    clock = _MutableClock(now_value=_NOW)
    codec = Hs256TrustCacheCodec(secret_key="trust-secret", clock=clock)
    forged = Hs256TrustCacheCodec(secret_key="attacker-secret", clock=clock).encode(
        snapshot=_trusted_snapshot()
    ).value
    wrong_shape = sign_compact(
        secret_key=b"trust-secret",
        typ="2FA-TRUST",
        claims={"state": "TRUSTED", "enabled": "yes"},
    )
    session_jwt_typ = sign_compact(secret_key=b"trust-secret", typ="JWT", claims={"sub": "x"})

    assert codec.decode(token=None) is None
    assert codec.decode(token="   ") is None
    assert codec.decode(token="not-a-token") is None
    assert codec.decode(token=forged) is None
    assert codec.decode(token=wrong_shape) is None
    assert codec.decode(token=session_jwt_typ) is None


def test_trust_cache_rejects_signed_token_outliving_trust_window() -> None:
    clock = _MutableClock(now_value=_NOW)
    codec = Hs256TrustCacheCodec(secret_key="trust-secret", clock=clock)
    issued_seconds = int(_NOW.timestamp())
    overlong = sign_compact(
        secret_key=b"trust-secret",
        typ="2FA-TRUST",
        claims={
            "enabled": True,
            "exp": issued_seconds + 180 * 60,
            "iat": issued_seconds,
            "last_verification_at": issued_seconds - 170 * 60,
            "required": True,
            "requires_verification": False,
            "session_timeout_mins": 180,
            "state": "trusted",
            "verified": True,
        },
    )

    assert codec.decode(token=overlong) is None
