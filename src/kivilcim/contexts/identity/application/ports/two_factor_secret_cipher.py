from __future__ import annotations

from typing import Protocol


class TwoFactorSecretCipher(Protocol):
    """
    TwoFactorSecretCipher — порт envelope encryption для TOTP секрета.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/use_cases/setup_two_factor_totp.py
      - src/kivilcim/contexts/identity/application/use_cases/two_factor_support.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/two_factor/
        aes_gcm_envelope_secret_cipher.py
    """

    def encrypt_secret(self, *, secret: str) -> bytes:
        """
        Encrypt Base32 TOTP secret into opaque blob suitable for persistence.

        Args:
            secret: Base32 TOTP secret in plaintext form.
        Returns:
            bytes: Encrypted opaque secret blob.
        Assumptions:
            Plaintext secret must never be persisted or logged.
        Raises:
            ValueError: If secret is empty or encryption fails.
        Side Effects:
            None.
        """
        ...

    def decrypt_secret(self, *, secret_enc: bytes) -> str:
        """
        Decrypt persisted secret blob for transient TOTP verification.

        Args:
            secret_enc: Opaque encrypted blob from persistence.
        Returns:
            str: Plaintext Base32 TOTP secret.
        Assumptions:
            Decrypted value is kept in-memory only.
        Raises:
            ValueError: If blob format is invalid or authentication fails.
        Side Effects:
            None.
        """
        ...
