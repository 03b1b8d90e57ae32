"""
RFC 4648 Base32 codec for TOTP secrets.

Decoding is deliberately tolerant: authenticator apps and users paste secrets with
spaces, dashes, lowercase letters and `=` padding, so every character outside the
alphabet is skipped rather than rejected.

Docs:
  - docs/architecture/identity/identity-2fa-trust-engine-v1.md
Related:
  - src/kivilcim/contexts/identity/adapters/outbound/security/two_factor/rfc6238_totp.py
  - src/kivilcim/contexts/identity/adapters/outbound/security/two_factor/
    rfc6238_totp_provider.py
"""

from __future__ import annotations

BASE32_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

_BITS_PER_CHAR = 5
_CHAR_MASK = 0x1F
_BYTE_MASK = 0xFF
_ALPHABET_INDEX = {char: index for index, char in enumerate(BASE32_ALPHABET)}


def encode(data: bytes) -> str:
    """
    Encode bytes as uppercase Base32 text without padding.

    Args:
        data: Arbitrary byte buffer.
    Returns:
        str: Base32 text; empty input yields empty string.
    Assumptions:
        Trailing bits of the last group are zero-filled.
    Raises:
        None.
    Side Effects:
        None.
    """
    chars: list[str] = []
    buffer = 0
    bits = 0
    for byte in data:
        buffer = ((buffer << 8) | byte) & 0xFFFF
        bits += 8
        while bits >= _BITS_PER_CHAR:
            bits -= _BITS_PER_CHAR
            chars.append(BASE32_ALPHABET[(buffer >> bits) & _CHAR_MASK])
    if bits > 0:
        chars.append(BASE32_ALPHABET[(buffer << (_BITS_PER_CHAR - bits)) & _CHAR_MASK])
    return "".join(chars)


def decode(text: str) -> bytes:
    """
    Decode Base32 text, skipping any character outside the alphabet.

    Args:
        text: Base32 text, case-insensitive, with optional separators or padding.
    Returns:
        bytes: Decoded bytes; a trailing incomplete byte is dropped.
    Assumptions:
        `decode(encode(data)) == data` for every byte buffer.
    Raises:
        None.
    Side Effects:
        None.
    """
    output = bytearray()
    buffer = 0
    bits = 0
    for char in text.upper():
        index = _ALPHABET_INDEX.get(char)
        if index is None:
            continue
        buffer = ((buffer << _BITS_PER_CHAR) | index) & 0xFFFF
        bits += _BITS_PER_CHAR
        if bits >= 8:
            bits -= 8
            output.append((buffer >> bits) & _BYTE_MASK)
    return bytes(output)
