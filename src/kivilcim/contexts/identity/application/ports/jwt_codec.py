from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from kivilcim.shared_kernel.primitives import UserId, UserRole


@dataclass(frozen=True, slots=True)
class IdentityJwtClaims:
    """
    IdentityJwtClaims — типизированные claims session cookie: principal и его роль.

    `role` is the only input the trust gate takes from the session; `email` only labels
    the provisioning URI.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/outbound/security/jwt/hs256_jwt_codec.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/current_user/
        jwt_cookie_current_user.py
    """

    user_id: UserId
    role: UserRole
    issued_at: datetime
    expires_at: datetime
    email: str | None = None

    def __post_init__(self) -> None:
        """
        Validate session lifetime bounds.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            `issued_at` and `expires_at` are timezone-aware UTC datetimes.
        Raises:
            ValueError: If datetimes are naive, non-UTC, or expiration is not after issue time.
        Side Effects:
            None.
        """
        _ensure_utc_datetime(name="issued_at", value=self.issued_at)
        _ensure_utc_datetime(name="expires_at", value=self.expires_at)
        if self.expires_at <= self.issued_at:
            raise ValueError("IdentityJwtClaims.expires_at must be after issued_at")


class JwtDecodeError(ValueError):
    """
    JwtDecodeError — детерминированная ошибка проверки подписанного токена.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/outbound/security/jwt/hs256_compact.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/jwt/hs256_jwt_codec.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/trust_cache/
        hs256_trust_cache_codec.py
    """

    def __init__(self, *, code: str, message: str) -> None:
        """
        Initialize decode error with stable error code.

        Args:
            code: Machine-readable deterministic error code.
            message: Human-readable error description.
        Returns:
            None.
        Assumptions:
            Session decoding maps it to a 401 payload; trust cache decoding maps it to "unknown".
        Raises:
            None.
        Side Effects:
            None.
        """
        super().__init__(message)
        self.code = code
        self.message = message


class JwtCodec(Protocol):
    """
    JwtCodec — порт подписи и проверки session JWT токенов.

    The sign-in flow that owns the session cookie encodes; this engine only decodes.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/outbound/security/jwt/hs256_jwt_codec.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/current_user/
        jwt_cookie_current_user.py
    """

    def encode(self, *, claims: IdentityJwtClaims) -> str:
        """
        Sign principal and role claims into compact JWT string.

        Args:
            claims: Principal id, role, lifetime, optional email.
        Returns:
            str: Signed compact JWT.
        Assumptions:
            Signing key differs from the 2FA trust cache key.
        Raises:
            ValueError: If claims cannot be serialized.
        Side Effects:
            None.
        """
        ...

    def decode(self, *, token: str) -> IdentityJwtClaims:
        """
        Verify token signature and claims, then return typed identity claims.

        Args:
            token: Compact JWT token string.
        Returns:
            IdentityJwtClaims: Verified claims with a `UserRole` from the closed role set.
        Assumptions:
            Unknown roles are rejected rather than mapped to an ungated role.
        Raises:
            JwtDecodeError: If signature or claims are invalid.
        Side Effects:
            None.
        """
        ...


def _ensure_utc_datetime(*, name: str, value: datetime) -> None:
    offset = value.utcoffset()
    if value.tzinfo is None or offset is None:
        raise ValueError(f"{name} must be timezone-aware UTC datetime")
    if offset.total_seconds() != 0:
        raise ValueError(f"{name} must be UTC datetime")
