from __future__ import annotations

import base64

import pytest

from kivilcim.contexts.identity.adapters.outbound.security.two_factor import (
    AesGcmEnvelopeTwoFactorSecretCipher,
)

_KEK_B64 = base64.b64encode(b"kivilcim-test-identity-2fa-k0001").decode("ascii")
_OTHER_KEK_B64 = base64.b64encode(b"kivilcim-test-identity-2fa-k0002").decode("ascii")
_SECRET = "JBSWY3DPEHPK3PXPJBSWY3DPEHPK3PXP"


def test_cipher_round_trip_never_stores_plaintext() -> None:
    """
    Verify encrypted envelope decrypts to original secret and hides plaintext bytes.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Each encryption uses a fresh DEK and nonces.
    Raises:
        AssertionError: If round trip fails or plaintext leaks into the blob.
    Side Effects:
        None.
    """
    cipher = AesGcmEnvelopeTwoFactorSecretCipher(kek_b64=_KEK_B64)

    first = cipher.encrypt_secret(secret=_SECRET)
    second = cipher.encrypt_secret(secret=_SECRET)

    assert _SECRET.encode("utf-8") not in first
    assert first != second
    assert cipher.decrypt_secret(secret_enc=first) == _SECRET
    assert cipher.decrypt_secret(secret_enc=memoryview(second)) == _SECRET


def test_cipher_rejects_tampered_blob_and_foreign_kek() -> None:
    """
    Verify AES-GCM authentication failures surface as `ValueError`.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Use cases translate `ValueError` into invalid-code errors.
    Raises:
        AssertionError: If tampering or wrong KEK is not detected.
    Side Effects:
        None.
    """
    cipher = AesGcmEnvelopeTwoFactorSecretCipher(kek_b64=_KEK_B64)
    other_cipher = AesGcmEnvelopeTwoFactorSecretCipher(kek_b64=_OTHER_KEK_B64)
    blob = bytearray(cipher.encrypt_secret(secret=_SECRET))
    blob[-1] ^= 0x01

    with pytest.raises(ValueError):
        cipher.decrypt_secret(secret_enc=bytes(blob))
    with pytest.raises(ValueError):
        other_cipher.decrypt_secret(secret_enc=cipher.encrypt_secret(secret=_SECRET))


@pytest.mark.parametrize("blob", [b"", b"\x01\x0c", b"\x02\x0c\x0c\x00\x30" + b"\x00" * 80])
def test_cipher_rejects_malformed_blobs(blob: bytes) -> None:
    cipher = AesGcmEnvelopeTwoFactorSecretCipher(kek_b64=_KEK_B64)

    with pytest.raises(ValueError):
        cipher.decrypt_secret(secret_enc=blob)


@pytest.mark.parametrize(
    "kek_b64",
    ["", "not base64!", base64.b64encode(b"short").decode("ascii")],
)
def test_cipher_rejects_invalid_kek(kek_b64: str) -> None:
    with pytest.raises(ValueError):
        AesGcmEnvelopeTwoFactorSecretCipher(kek_b64=kek_b64)
