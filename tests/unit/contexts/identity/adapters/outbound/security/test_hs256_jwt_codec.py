from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from kivilcim.contexts.identity.adapters.outbound.security.jwt import Hs256JwtCodec
from kivilcim.contexts.identity.application.ports import (
    IdentityClock,
    IdentityJwtClaims,
    JwtDecodeError,
)
from kivilcim.shared_kernel.primitives import UserId, UserRole


class _FixedClock(IdentityClock):
    """
    Fixed UTC clock for JWT expiry checks.
    """

    def __init__(self, *, now_value: datetime) -> None:
        self._now_value = now_value

    def now(self) -> datetime:
        return self._now_value


_NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def _claims(*, expires_in: timedelta = timedelta(hours=1)) -> IdentityJwtClaims:
    return IdentityJwtClaims(
        user_id=UserId.from_string("user-100"),
        role=UserRole.ADMIN,
        issued_at=_NOW,
        expires_at=_NOW + expires_in,
        email="admin@example.com",
    )


def test_jwt_codec_round_trips_claims() -> None:
    """
    Verify encoded session JWT decodes back to identical claims.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Timestamps are whole seconds.
    Raises:
        AssertionError: If decoded claims differ.
    Side Effects:
        None.
    """
    codec = Hs256JwtCodec(secret_key="jwt-secret", clock=_FixedClock(now_value=_NOW))

    token = codec.encode(claims=_claims())

    assert codec.decode(token=token) == _claims()


def test_jwt_codec_rejects_expired_and_foreign_tokens() -> None:
    """
    Verify expired tokens and tokens signed with another key are rejected with stable codes.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Expiry is inclusive: `exp == now` is already expired.
    Raises:
        AssertionError: If rejection code differs.
    Side Effects:
        None.
    """
    clock = _FixedClock(now_value=_NOW)
    codec = Hs256JwtCodec(secret_key="jwt-secret", clock=clock)
    foreign_codec = Hs256JwtCodec(secret_key="other-secret", clock=clock)
    later_codec = Hs256JwtCodec(
        secret_key="jwt-secret",
        clock=_FixedClock(now_value=_NOW + timedelta(hours=1)),
    )

    with pytest.raises(JwtDecodeError) as expired:
        later_codec.decode(token=codec.encode(claims=_claims()))
    assert expired.value.code == "expired_token"

    with pytest.raises(JwtDecodeError) as foreign:
        codec.decode(token=foreign_codec.encode(claims=_claims()))
    assert foreign.value.code == "invalid_signature"


@pytest.mark.parametrize(
    ("token", "code"),
    [
        ("", "missing_token"),
        ("a.b", "invalid_token_format"),
        ("e30.e30.AAAA", "invalid_header"),
    ],
)
def test_jwt_codec_rejects_malformed_tokens(token: str, code: str) -> None:
    codec = Hs256JwtCodec(secret_key="jwt-secret", clock=_FixedClock(now_value=_NOW))

    with pytest.raises(JwtDecodeError) as error:
        codec.decode(token=token)

    assert error.value.code == code
