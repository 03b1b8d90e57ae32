from __future__ import annotations

from datetime import datetime
from typing import Protocol


class TwoFactorTotpProvider(Protocol):
    """
    TwoFactorTotpProvider — узкий порт операций RFC 6238 TOTP.

    The trust state machine depends only on this port, so the first-principles
    implementation and the pyotp-backed one are interchangeable.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/outbound/security/two_factor/
        rfc6238_totp_provider.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/two_factor/
        pyotp_totp_provider.py
      - src/kivilcim/contexts/identity/application/use_cases/two_factor_support.py
    """

    def create_secret(self) -> str:
        """
        Generate new Base32 secret with at least 160 bits of entropy.

        Args:
            None.
        Returns:
            str: Uppercase Base32 secret without padding.
        Assumptions:
            Secret comes from a cryptographically secure random source.
        Raises:
            ValueError: If provider cannot generate valid secret.
        Side Effects:
            Reads OS random source.
        """
        ...

    def build_otpauth_uri(self, *, secret: str, account_label: str, issuer: str) -> str:
        """
        Build provisioning URI for authenticator QR rendering.

        Args:
            secret: Base32 TOTP secret.
            account_label: Account name shown in authenticator apps.
            issuer: Issuer label shown in authenticator apps.
        Returns:
            str: URI starting with `otpauth://totp/`.
        Assumptions:
            URI advertises SHA1, 6 digits, and 30-second period.
        Raises:
            ValueError: If secret, label, or issuer is empty.
        Side Effects:
            None.
        """
        ...

    def verify_code(self, *, secret: str, code: str, at_time: datetime) -> bool:
        """
        Check submitted code against the tolerated time-step candidates.

        Args:
            secret: Base32 TOTP secret.
            code: Normalized six-digit code.
            at_time: Timezone-aware UTC verification instant.
        Returns:
            bool: `True` when any candidate matches.
        Assumptions:
            Comparison does not short-circuit on the first mismatching candidate.
        Raises:
            ValueError: If timestamp is not UTC or inputs are empty.
        Side Effects:
            None.
        """
        ...

    def matching_counter(self, *, secret: str, code: str, at_time: datetime) -> int | None:
        """
        Return the TOTP counter whose code matches, if any.

        Args:
            secret: Base32 TOTP secret.
            code: Normalized six-digit code.
            at_time: Timezone-aware UTC verification instant.
        Returns:
            int | None: Matching counter (`floor(unix_time / 30)` domain) or `None`.
        Assumptions:
            Used by replay rejection; `verify_code` equals `matching_counter(...) is not None`.
        Raises:
            ValueError: If timestamp is not UTC or inputs are empty.
        Side Effects:
            None.
        """
        ...
