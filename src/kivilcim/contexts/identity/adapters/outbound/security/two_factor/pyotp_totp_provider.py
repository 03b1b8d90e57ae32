from __future__ import annotations

import hmac
from datetime import datetime

import pyotp

from kivilcim.contexts.identity.application.ports.two_factor_totp_provider import (
    TwoFactorTotpProvider,
)

_TOTP_DIGITS = 6
_TOTP_PERIOD_SECONDS = 30
_DEFAULT_VALID_WINDOW = 1


class PyOtpTwoFactorTotpProvider(TwoFactorTotpProvider):
    """
    PyOtpTwoFactorTotpProvider — TOTP provider backed by the pyotp library.

    Selected with `IDENTITY_2FA_TOTP_BACKEND=pyotp`; produces the same codes as the
    built-in RFC 6238 provider.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/two_factor_totp_provider.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/two_factor/
        rfc6238_totp_provider.py
      - apps/api/wiring/modules/identity.py
    """

    def __init__(self, *, valid_window: int = _DEFAULT_VALID_WINDOW) -> None:
        """
        Initialize provider drift tolerance.

        Args:
            valid_window: Number of time steps accepted before/after the current step.
        Returns:
            None.
        Assumptions:
            Digits and period are fixed at 6 and 30 seconds.
        Raises:
            ValueError: If window is negative.
        Side Effects:
            None.
        """
        if valid_window < 0:
            raise ValueError("PyOtpTwoFactorTotpProvider valid_window must be >= 0")
        self._valid_window = valid_window

    def create_secret(self) -> str:
        """
        Generate new 32-character Base32 secret via `pyotp.random_base32`.

        Args:
            None.
        Returns:
            str: Uppercase Base32 secret.
        Assumptions:
            pyotp draws from `secrets`.
        Raises:
            ValueError: If generated secret is empty.
        Side Effects:
            Reads OS random source.
        """
        secret = pyotp.random_base32().strip().upper()
        if not secret:
            raise ValueError("PyOtpTwoFactorTotpProvider generated empty secret")
        return secret

    def build_otpauth_uri(self, *, secret: str, account_label: str, issuer: str) -> str:
        """
        Build provisioning URI with `pyotp.TOTP.provisioning_uri`.

        Args:
            secret: Base32 TOTP secret.
            account_label: Account name shown in authenticator apps.
            issuer: Issuer label shown in authenticator apps.
        Returns:
            str: URI starting with `otpauth://totp/`.
        Assumptions:
            pyotp omits default digits/period parameters from the URI.
        Raises:
            ValueError: If secret, label, or issuer is empty.
        Side Effects:
            None.
        """
        normalized_label = account_label.strip()
        normalized_issuer = issuer.strip()
        if not normalized_label:
            raise ValueError("PyOtpTwoFactorTotpProvider requires non-empty account_label")
        if not normalized_issuer:
            raise ValueError("PyOtpTwoFactorTotpProvider requires non-empty issuer")
        uri = self._totp(secret=secret).provisioning_uri(
            name=normalized_label,
            issuer_name=normalized_issuer,
        )
        if not uri.startswith("otpauth://totp/"):
            raise ValueError("PyOtpTwoFactorTotpProvider produced invalid otpauth URI")
        return uri

    def verify_code(self, *, secret: str, code: str, at_time: datetime) -> bool:
        return self.matching_counter(secret=secret, code=code, at_time=at_time) is not None

    def matching_counter(self, *, secret: str, code: str, at_time: datetime) -> int | None:
        """
        Return matching time-step counter or `None`.

        Args:
            secret: Base32 TOTP secret.
            code: Normalized six-digit code.
            at_time: Timezone-aware UTC verification instant.
        Returns:
            int | None: Counter of the matching candidate.
        Assumptions:
            `pyotp.TOTP.verify` hides the counter, so candidates are walked explicitly.
        Raises:
            ValueError: If timestamp is not UTC or secret is not valid Base32.
        Side Effects:
            None.
        """
        now = _ensure_utc_datetime(value=at_time, field_name="at_time")
        totp = self._totp(secret=secret)
        current = totp.timecode(now)
        matched: int | None = None
        for offset in range(-self._valid_window, self._valid_window + 1):
            counter = current + offset
            if counter < 0:
                continue
            candidate = totp.generate_otp(counter)
            if hmac.compare_digest(candidate, code) and matched is None:
                matched = counter
        return matched

    def _totp(self, *, secret: str) -> pyotp.TOTP:
        normalized_secret = secret.strip().upper()
        if not normalized_secret:
            raise ValueError("PyOtpTwoFactorTotpProvider requires non-empty secret")
        return pyotp.TOTP(
            normalized_secret,
            digits=_TOTP_DIGITS,
            interval=_TOTP_PERIOD_SECONDS,
        )


def _ensure_utc_datetime(*, value: datetime, field_name: str) -> datetime:
    offset = value.utcoffset()
    if value.tzinfo is None or offset is None:
        raise ValueError(f"{field_name} must be timezone-aware UTC datetime")
    if offset.total_seconds() != 0:
        raise ValueError(f"{field_name} must be UTC datetime")
    return value
