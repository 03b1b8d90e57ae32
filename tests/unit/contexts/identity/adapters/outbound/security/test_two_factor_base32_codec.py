from __future__ import annotations

import base64
import os

import pytest

from kivilcim.contexts.identity.adapters.outbound.security.two_factor import base32_codec


@pytest.mark.parametrize("size", [10, 16, 20, 32, 33, 64])
def test_base32_round_trip_for_random_buffers(size: int) -> None:
    """
    Verify `decode(encode(data)) == data` for secret-sized random buffers.

    Args:
        size: Buffer length in bytes.
    Returns:
        None.
    Assumptions:
        Encoder emits unpadded uppercase output.
    Raises:
        AssertionError: If round trip loses or alters bytes.
    Side Effects:
        None.
    """
    data = os.urandom(size)

    encoded = base32_codec.encode(data)

    assert set(encoded) <= set(base32_codec.BASE32_ALPHABET)
    assert base32_codec.decode(encoded) == data


def test_base32_encode_matches_stdlib_without_padding() -> None:
    """
    Verify encoder output equals RFC 4648 reference output with `=` padding removed.
    """
    data = b"12345678901234567890"

    assert base32_codec.encode(data) == base64.b32encode(data).decode("ascii").rstrip("=")
    assert base32_codec.encode(data) == "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


def test_base32_decode_skips_separators_padding_and_lowercase() -> None:
    """
    Verify tolerant decoding ignores spaces, dashes, padding and accepts lowercase input.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Users paste secrets grouped by spaces or dashes.
    Raises:
        AssertionError: If decoding rejects or misreads tolerated input.
    Side Effects:
        None.
    """
    expected = b"12345678901234567890"

    assert base32_codec.decode("gezd gnbv-gy3t qojq gezd gnbv gy3t qojq") == expected
    assert base32_codec.decode("GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ====") == expected


def test_base32_empty_input_yields_empty_output() -> None:
    assert base32_codec.encode(b"") == ""
    assert base32_codec.decode("") == b""
    assert base32_codec.decode("-- ==") == b""
