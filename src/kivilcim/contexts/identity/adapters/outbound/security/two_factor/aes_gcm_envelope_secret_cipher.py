from __future__ import annotations

import base64
import binascii
import os
import struct
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from kivilcim.contexts.identity.application.ports.two_factor_secret_cipher import (
    TwoFactorSecretCipher,
)

_FORMAT_VERSION = 1
_NONCE_SIZE = 12
_DEK_SIZE = 32
_GCM_TAG_SIZE = 16
_HEADER = struct.Struct(">BBBH")
_AAD = b"kivilcim.identity.2fa.totp.v1"
_KEK_SIZES = frozenset({16, 24, 32})


@dataclass(frozen=True, slots=True)
class _Envelope:
    """
    _Envelope — parsed parts of the versioned secret blob.

    Layout: header `>BBBH` (version, dek nonce len, secret nonce len, wrapped dek len),
    then dek nonce, wrapped dek, secret nonce, encrypted secret.
    """

    dek_nonce: bytes
    wrapped_dek: bytes
    secret_nonce: bytes
    ciphertext: bytes

    def pack(self) -> bytes:
        header = _HEADER.pack(
            _FORMAT_VERSION,
            len(self.dek_nonce),
            len(self.secret_nonce),
            len(self.wrapped_dek),
        )
        return b"".join(
            (header, self.dek_nonce, self.wrapped_dek, self.secret_nonce, self.ciphertext)
        )

    @classmethod
    def unpack(cls, blob: bytes) -> _Envelope:
        """
        Parse blob into envelope parts validating every length field.

        Args:
            blob: Stored opaque blob.
        Returns:
            _Envelope: Parsed parts.
        Assumptions:
            Only format version 1 exists.
        Raises:
            ValueError: If blob is truncated, has unknown version, or bad lengths.
        Side Effects:
            None.
        """
        if len(blob) < _HEADER.size:
            raise ValueError("Encrypted 2FA secret blob is too short")
        version, dek_nonce_len, secret_nonce_len, wrapped_dek_len = _HEADER.unpack_from(blob)
        if version != _FORMAT_VERSION:
            raise ValueError("Unsupported encrypted 2FA secret blob version")
        if dek_nonce_len != _NONCE_SIZE or secret_nonce_len != _NONCE_SIZE:
            raise ValueError("Encrypted 2FA secret blob contains invalid nonce length")
        if wrapped_dek_len <= _GCM_TAG_SIZE:
            raise ValueError("Encrypted 2FA secret blob contains invalid wrapped key length")

        cursor = _HEADER.size
        dek_nonce = blob[cursor : cursor + dek_nonce_len]
        cursor += dek_nonce_len
        wrapped_dek = blob[cursor : cursor + wrapped_dek_len]
        cursor += wrapped_dek_len
        secret_nonce = blob[cursor : cursor + secret_nonce_len]
        cursor += secret_nonce_len
        ciphertext = blob[cursor:]
        if len(wrapped_dek) != wrapped_dek_len or len(secret_nonce) != secret_nonce_len:
            raise ValueError("Encrypted 2FA secret blob payload is truncated")
        if len(ciphertext) <= _GCM_TAG_SIZE:
            raise ValueError("Encrypted 2FA secret blob payload is truncated")
        return cls(
            dek_nonce=dek_nonce,
            wrapped_dek=wrapped_dek,
            secret_nonce=secret_nonce,
            ciphertext=ciphertext,
        )


class AesGcmEnvelopeTwoFactorSecretCipher(TwoFactorSecretCipher):
    """
    AesGcmEnvelopeTwoFactorSecretCipher — AES-GCM envelope cipher (random DEK wrapped by KEK).

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/two_factor_secret_cipher.py
      - apps/api/wiring/modules/identity.py
      - alembic/versions/20261018_0001_identity_2fa_credentials_v1.py
    """

    def __init__(self, *, kek_b64: str) -> None:
        """
        Initialize envelope cipher using base64-encoded KEK.

        Args:
            kek_b64: Base64-encoded KEK bytes (`IDENTITY_2FA_KEK_B64`).
        Returns:
            None.
        Assumptions:
            KEK length is an AES key size (16/24/32 bytes).
        Raises:
            ValueError: If KEK value is empty, malformed, or unsupported length.
        Side Effects:
            None.
        """
        normalized = kek_b64.strip()
        if not normalized:
            raise ValueError("AesGcmEnvelopeTwoFactorSecretCipher requires non-empty kek_b64")
        try:
            kek = base64.b64decode(normalized, validate=True)
        except binascii.Error as error:
            raise ValueError("IDENTITY_2FA_KEK_B64 must be valid base64") from error
        if len(kek) not in _KEK_SIZES:
            raise ValueError("IDENTITY_2FA_KEK_B64 must decode to 16, 24, or 32 bytes for AES-GCM")
        self._kek = AESGCM(kek)

    def encrypt_secret(self, *, secret: str) -> bytes:
        """
        Encrypt Base32 secret under a fresh DEK and wrap the DEK with the KEK.

        Args:
            secret: Plaintext Base32 secret.
        Returns:
            bytes: Versioned envelope blob.
        Assumptions:
            Two encryptions of the same secret never produce the same blob.
        Raises:
            ValueError: If secret is empty.
        Side Effects:
            Uses OS CSPRNG for DEK and nonces.
        """
        normalized = secret.strip()
        if not normalized:
            raise ValueError("AesGcmEnvelopeTwoFactorSecretCipher secret must be non-empty")

        dek = AESGCM.generate_key(bit_length=_DEK_SIZE * 8)
        dek_nonce = os.urandom(_NONCE_SIZE)
        secret_nonce = os.urandom(_NONCE_SIZE)
        return _Envelope(
            dek_nonce=dek_nonce,
            wrapped_dek=self._kek.encrypt(dek_nonce, dek, _AAD),
            secret_nonce=secret_nonce,
            ciphertext=AESGCM(dek).encrypt(secret_nonce, normalized.encode("utf-8"), _AAD),
        ).pack()

    def decrypt_secret(self, *, secret_enc: bytes) -> str:
        """
        Unwrap DEK and decrypt the Base32 secret.

        Args:
            secret_enc: Stored envelope blob (bytes or memoryview from the driver).
        Returns:
            str: Plaintext Base32 secret.
        Assumptions:
            Result is used transiently for one verification.
        Raises:
            ValueError: If blob is malformed, authentication fails, or plaintext is empty.
        Side Effects:
            None.
        """
        blob = bytes(secret_enc)
        if not blob:
            raise ValueError("AesGcmEnvelopeTwoFactorSecretCipher secret_enc must be non-empty")
        envelope = _Envelope.unpack(blob)
        try:
            dek = self._kek.decrypt(envelope.dek_nonce, envelope.wrapped_dek, _AAD)
            plaintext = AESGCM(dek).decrypt(envelope.secret_nonce, envelope.ciphertext, _AAD)
        except InvalidTag as error:
            raise ValueError("Encrypted 2FA secret blob authentication failed") from error
        try:
            secret = plaintext.decode("utf-8")
        except UnicodeDecodeError as error:
            raise ValueError("Encrypted 2FA secret plaintext is not valid UTF-8") from error
        if not secret:
            raise ValueError("Encrypted 2FA secret plaintext is empty")
        return secret
