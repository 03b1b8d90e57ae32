from __future__ import annotations

from datetime import datetime, timezone

from kivilcim.contexts.identity.application.ports.clock import IdentityClock
from kivilcim.contexts.identity.application.ports.jwt_codec import (
    IdentityJwtClaims,
    JwtCodec,
    JwtDecodeError,
)
from kivilcim.shared_kernel.primitives import UserId, UserRole

from .hs256_compact import sign_compact, verify_compact

_TOKEN_TYPE = "JWT"


class Hs256JwtCodec(JwtCodec):
    """
    Hs256JwtCodec — HS256 JWT codec for the identity session cookie.

    Two halves share one key: `encode` is the issuing half used by the sign-in flow of the
    surrounding identity system when it sets the session cookie; `decode` is what this engine
    uses to resolve the principal on every `/2fa/*` and privileged request.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/jwt_codec.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/jwt/hs256_compact.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/current_user/
        jwt_cookie_current_user.py
    """

    def __init__(
        self,
        *,
        secret_key: str,
        clock: IdentityClock,
        leeway_seconds: int = 0,
    ) -> None:
        """
        Initialize HS256 codec with signing key and runtime clock.

        Args:
            secret_key: JWT signing key.
            clock: Runtime clock for expiration checks.
            leeway_seconds: Optional expiration leeway.
        Returns:
            None.
        Assumptions:
            Secret key is stable per deployment environment.
        Raises:
            ValueError: If secret key is empty, clock missing, or leeway negative.
        Side Effects:
            None.
        """
        normalized_secret = secret_key.strip()
        if not normalized_secret:
            raise ValueError("Hs256JwtCodec requires non-empty secret_key")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("Hs256JwtCodec requires clock")
        if leeway_seconds < 0:
            raise ValueError("Hs256JwtCodec requires leeway_seconds >= 0")

        self._secret_key = normalized_secret.encode("utf-8")
        self._clock = clock
        self._leeway_seconds = leeway_seconds

    def encode(self, *, claims: IdentityJwtClaims) -> str:
        """
        Sign session claims for the sign-in flow that owns the session cookie.

        Args:
            claims: Principal id, role, lifetime, and optional email.
        Returns:
            str: Compact HS256 token.
        Assumptions:
            `email` is omitted from the payload when absent.
        Raises:
            None.
        Side Effects:
            None.
        """
        payload: dict[str, object] = {
            "exp": int(claims.expires_at.timestamp()),
            "iat": int(claims.issued_at.timestamp()),
            "role": claims.role.value,
            "sub": str(claims.user_id),
        }
        if claims.email:
            payload["email"] = claims.email
        return sign_compact(secret_key=self._secret_key, typ=_TOKEN_TYPE, claims=payload)

    def decode(self, *, token: str) -> IdentityJwtClaims:
        """
        Verify JWT signature and temporal claims and return typed claims.

        Args:
            token: Compact JWT token.
        Returns:
            IdentityJwtClaims: Verified claims.
        Assumptions:
            Token includes `sub`, `role`, `iat`, `exp`, and optionally `email`.
        Raises:
            JwtDecodeError: If token format/signature/claims are invalid or token is expired.
            ValueError: If clock returns non-UTC datetime.
        Side Effects:
            None.
        """
        payload = verify_compact(secret_key=self._secret_key, typ=_TOKEN_TYPE, token=token)
        subject = str(payload.get("sub", "")).strip()
        role_raw = str(payload.get("role", "")).strip()
        iat_raw = payload.get("iat")
        exp_raw = payload.get("exp")
        email_raw = payload.get("email")
        if not subject or not role_raw or iat_raw is None or exp_raw is None:
            raise JwtDecodeError(
                code="invalid_claims",
                message="JWT payload must contain sub, role, iat, and exp",
            )

        try:
            issued_at = datetime.fromtimestamp(int(iat_raw), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(int(exp_raw), tz=timezone.utc)
            user_id = UserId.from_string(subject)
            role = UserRole.from_string(role_raw)
            claims = IdentityJwtClaims(
                user_id=user_id,
                role=role,
                issued_at=issued_at,
                expires_at=expires_at,
                email=_normalize_email(email_raw),
            )
        except (OSError, OverflowError, TypeError, ValueError) as error:
            raise JwtDecodeError(
                code="invalid_claims",
                message="JWT payload claims are malformed",
            ) from error

        now = self._clock.now()
        now_offset = now.utcoffset()
        if now.tzinfo is None or now_offset is None or now_offset.total_seconds() != 0:
            raise ValueError("Hs256JwtCodec clock must return timezone-aware UTC datetime")
        if int(exp_raw) <= int(now.timestamp()) - self._leeway_seconds:
            raise JwtDecodeError(code="expired_token", message="JWT token is expired")
        return claims


def _normalize_email(value: object) -> str | None:
    if value is None:
        return None
    normalized = str(value).strip()
    return normalized or None
