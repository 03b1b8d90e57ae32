from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from kivilcim.contexts.identity.adapters.outbound.security.jwt.hs256_compact import (
    sign_compact,
    verify_compact,
)
from kivilcim.contexts.identity.application.ports.clock import IdentityClock
from kivilcim.contexts.identity.application.ports.jwt_codec import JwtDecodeError
from kivilcim.contexts.identity.application.ports.trust_cache_codec import (
    TrustCacheCodec,
    TrustCacheToken,
)
from kivilcim.contexts.identity.domain.value_objects import (
    AdvisoryTrustView,
    TrustSnapshot,
    TrustState,
)

log = logging.getLogger(__name__)

_TOKEN_TYPE = "2FA-TRUST"


class Hs256TrustCacheCodec(TrustCacheCodec):
    """
    Hs256TrustCacheCodec — HS256-signed client trust cache token.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/trust_cache_codec.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/jwt/hs256_compact.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/deps/trust_cache_cookie.py
    """

    def __init__(self, *, secret_key: str, clock: IdentityClock) -> None:
        """
        Initialize codec with signing key and clock.

        Args:
            secret_key: Signing key (`IDENTITY_2FA_TRUST_CACHE_SECRET`).
            clock: UTC time source for `iat`/`exp`.
        Returns:
            None.
        Assumptions:
            Key differs from the session JWT key so cache tokens cannot pass as sessions.
        Raises:
            ValueError: If secret key is empty or clock is missing.
        Side Effects:
            None.
        """
        normalized_secret = secret_key.strip()
        if not normalized_secret:
            raise ValueError("Hs256TrustCacheCodec requires non-empty secret_key")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("Hs256TrustCacheCodec requires clock")
        self._secret_key = normalized_secret.encode("utf-8")
        self._clock = clock

    def encode(self, *, snapshot: TrustSnapshot) -> TrustCacheToken:
        """
        Sign snapshot fields with `exp` capped by the server-side trust window.

        Args:
            snapshot: Authoritative snapshot just computed by the trust gate.
        Returns:
            TrustCacheToken: Compact signed token with its issue and expiry instants.
        Assumptions:
            Timestamps are whole seconds. `exp = min(iat + timeout, trust_expires_at)`, and
            `exp == iat` when the trust window already closed after evaluation.
        Raises:
            ValueError: If clock returns non-UTC datetime.
        Side Effects:
            Reads clock.
        """
        issued_seconds = int(_now_utc(clock=self._clock).timestamp())
        expires_seconds = issued_seconds + snapshot.session_timeout_mins * 60
        trust_expires_at = snapshot.trust_expires_at
        if trust_expires_at is not None:
            expires_seconds = min(
                expires_seconds,
                max(issued_seconds, int(trust_expires_at.timestamp())),
            )
        claims: dict[str, Any] = {
            "enabled": snapshot.enabled,
            "exp": expires_seconds,
            "iat": issued_seconds,
            "last_verification_at": (
                int(snapshot.last_verification_at.timestamp())
                if snapshot.last_verification_at is not None
                else None
            ),
            "required": snapshot.required,
            "requires_verification": snapshot.requires_verification,
            "session_timeout_mins": snapshot.session_timeout_mins,
            "state": snapshot.state.value,
            "verified": snapshot.verified,
        }
        return TrustCacheToken(
            value=sign_compact(secret_key=self._secret_key, typ=_TOKEN_TYPE, claims=claims),
            issued_at=datetime.fromtimestamp(issued_seconds, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(expires_seconds, tz=timezone.utc),
        )

    def decode(self, *, token: str | None) -> AdvisoryTrustView | None:
        """
        Decode signed token into advisory view, or `None` on any failure.

        Args:
            token: Raw cookie value; may be missing.
        Returns:
            AdvisoryTrustView | None: Advisory view or `None` ("unknown").
        Assumptions:
            Tampered, malformed, and expired tokens are indistinguishable to callers.
        Raises:
            None.
        Side Effects:
            Reads clock.
        """
        if token is None or not token.strip():
            return None
        try:
            claims = verify_compact(secret_key=self._secret_key, typ=_TOKEN_TYPE, token=token)
            view = _view_from_claims(claims=claims)
        except JwtDecodeError as error:
            log.info("two_factor trust cache rejected reason=%s", error.code)
            return None
        except (KeyError, OSError, OverflowError, TypeError, ValueError) as error:
            log.info("two_factor trust cache rejected reason=%s", type(error).__name__)
            return None

        if view.expires_at <= _now_utc(clock=self._clock):
            return None
        return view


def _view_from_claims(*, claims: dict[str, Any]) -> AdvisoryTrustView:
    """
    Map verified claims into `AdvisoryTrustView`.

    Args:
        claims: Signature-verified claims.
    Returns:
        AdvisoryTrustView: Advisory view.
    Assumptions:
        Boolean claims must be JSON booleans, not truthy values.
    Raises:
        KeyError: If a claim is missing.
        ValueError: If a claim has the wrong type or value.
    Side Effects:
        None.
    """
    flags = {
        name: claims[name]
        for name in ("required", "enabled", "verified", "requires_verification")
    }
    for name, value in flags.items():
        if not isinstance(value, bool):
            raise ValueError(f"trust cache claim {name} must be boolean")
    last_raw = claims["last_verification_at"]
    return AdvisoryTrustView(
        state=TrustState(str(claims["state"])),
        required=flags["required"],
        enabled=flags["enabled"],
        verified=flags["verified"],
        requires_verification=flags["requires_verification"],
        session_timeout_mins=int(claims["session_timeout_mins"]),
        last_verification_at=(
            datetime.fromtimestamp(int(last_raw), tz=timezone.utc) if last_raw is not None else None
        ),
        issued_at=datetime.fromtimestamp(int(claims["iat"]), tz=timezone.utc),
        expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc),
    )


def _now_utc(*, clock: IdentityClock) -> datetime:
    now = clock.now()
    offset = now.utcoffset()
    if now.tzinfo is None or offset is None or offset.total_seconds() != 0:
        raise ValueError("Hs256TrustCacheCodec clock must return timezone-aware UTC datetime")
    return now
