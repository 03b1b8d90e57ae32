from __future__ import annotations

import secrets
from datetime import datetime
from urllib.parse import quote, urlencode

from kivilcim.contexts.identity.application.ports.two_factor_totp_provider import (
    TwoFactorTotpProvider,
)

from . import base32_codec, rfc6238_totp

_SECRET_BYTES = 20


class Rfc6238TwoFactorTotpProvider(TwoFactorTotpProvider):
    """
    Rfc6238TwoFactorTotpProvider — default first-principles TOTP provider (HMAC-SHA1, 30 s, 6 digits).

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/outbound/security/two_factor/rfc6238_totp.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/two_factor/base32_codec.py
      - apps/api/wiring/modules/identity.py
    """

    def __init__(self, *, valid_window: int = rfc6238_totp.DEFAULT_VALID_WINDOW) -> None:
        """
        Initialize provider drift tolerance.

        Args:
            valid_window: Number of time steps accepted before/after the current step.
        Returns:
            None.
        Assumptions:
            Window of 1 tolerates about 30 seconds of clock drift each way.
        Raises:
            ValueError: If window is negative.
        Side Effects:
            None.
        """
        if valid_window < 0:
            raise ValueError("Rfc6238TwoFactorTotpProvider valid_window must be >= 0")
        self._valid_window = valid_window

    def create_secret(self) -> str:
        """
        Generate 160-bit secret and return it as unpadded Base32.

        Args:
            None.
        Returns:
            str: 32-character uppercase Base32 secret.
        Assumptions:
            `secrets` module is backed by the OS CSPRNG.
        Raises:
            None.
        Side Effects:
            Reads OS random source.
        """
        return base32_codec.encode(secrets.token_bytes(_SECRET_BYTES))

    def build_otpauth_uri(self, *, secret: str, account_label: str, issuer: str) -> str:
        """
        Build `otpauth://totp/{issuer}:{label}?...` provisioning URI.

        Args:
            secret: Base32 TOTP secret.
            account_label: Account name shown in authenticator apps.
            issuer: Issuer label shown in authenticator apps.
        Returns:
            str: Provisioning URI with algorithm, digits, and period parameters.
        Assumptions:
            Label parts are percent-encoded so `:` and spaces stay unambiguous.
        Raises:
            ValueError: If secret, label, or issuer is empty.
        Side Effects:
            None.
        """
        normalized_secret = secret.strip().upper()
        normalized_label = account_label.strip()
        normalized_issuer = issuer.strip()
        if not normalized_secret:
            raise ValueError("Rfc6238TwoFactorTotpProvider requires non-empty secret")
        if not normalized_label:
            raise ValueError("Rfc6238TwoFactorTotpProvider requires non-empty account_label")
        if not normalized_issuer:
            raise ValueError("Rfc6238TwoFactorTotpProvider requires non-empty issuer")

        label = f"{quote(normalized_issuer, safe='')}:{quote(normalized_label, safe='')}"
        query = urlencode(
            {
                "secret": normalized_secret,
                "issuer": normalized_issuer,
                "algorithm": "SHA1",
                "digits": str(rfc6238_totp.TOTP_DIGITS),
                "period": str(rfc6238_totp.TOTP_PERIOD_SECONDS),
            },
            quote_via=quote,
        )
        return f"otpauth://totp/{label}?{query}"

    def verify_code(self, *, secret: str, code: str, at_time: datetime) -> bool:
        """
        Verify code inside the configured drift window.

        Args:
            secret: Base32 TOTP secret.
            code: Normalized six-digit code.
            at_time: Timezone-aware UTC verification instant.
        Returns:
            bool: `True` when any candidate matches.
        Assumptions:
            Same semantics as `matching_counter(...) is not None`.
        Raises:
            ValueError: If timestamp is not UTC or secret decodes to no key bytes.
        Side Effects:
            None.
        """
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
            Every candidate is compared with `hmac.compare_digest`.
        Raises:
            ValueError: If timestamp is not UTC or secret decodes to no key bytes.
        Side Effects:
            None.
        """
        now = _ensure_utc_datetime(value=at_time, field_name="at_time")
        key = base32_codec.decode(secret)
        if not key:
            raise ValueError("Rfc6238TwoFactorTotpProvider secret decodes to empty key")
        return rfc6238_totp.matching_counter(
            key,
            now.timestamp(),
            code,
            window=self._valid_window,
        )


def _ensure_utc_datetime(*, value: datetime, field_name: str) -> datetime:
    offset = value.utcoffset()
    if value.tzinfo is None or offset is None:
        raise ValueError(f"{field_name} must be timezone-aware UTC datetime")
    if offset.total_seconds() != 0:
        raise ValueError(f"{field_name} must be UTC datetime")
    return value
