"""
First-principles RFC 6238 TOTP over HMAC-SHA1.

Pure functions of `(key, unix_time)`; no clock access and no shared state.

Docs:
  - docs/architecture/identity/identity-2fa-trust-engine-v1.md
Related:
  - src/kivilcim/contexts/identity/adapters/outbound/security/two_factor/base32_codec.py
  - src/kivilcim/contexts/identity/adapters/outbound/security/two_factor/
    rfc6238_totp_provider.py
"""

from __future__ import annotations

import hashlib
import hmac
import struct

TOTP_PERIOD_SECONDS = 30
TOTP_DIGITS = 6
DEFAULT_VALID_WINDOW = 1

_COUNTER_STRUCT = struct.Struct(">Q")


def time_counter(unix_time: float, *, period: int = TOTP_PERIOD_SECONDS) -> int:
    """
    Return RFC 6238 time-step counter `floor(unix_time / period)`.

    Args:
        unix_time: Seconds since the Unix epoch.
        period: Time-step length in seconds.
    Returns:
        int: Non-negative counter.
    Assumptions:
        Pre-epoch timestamps are not meaningful for TOTP.
    Raises:
        ValueError: If timestamp is negative or period is not positive.
    Side Effects:
        None.
    """
    if period <= 0:
        raise ValueError("TOTP period must be > 0")
    if unix_time < 0:
        raise ValueError("TOTP unix_time must be >= 0")
    return int(unix_time // period)


def hotp_code(key: bytes, counter: int, *, digits: int = TOTP_DIGITS) -> str:
    """
    Compute RFC 4226 HOTP value with dynamic truncation.

    Args:
        key: Raw shared secret bytes.
        counter: Moving factor, encoded as 8-byte big-endian.
        digits: Output length.
    Returns:
        str: Zero-padded decimal code.
    Assumptions:
        SHA-1 digest is always 20 bytes, so `digest[19]` selects the offset.
    Raises:
        ValueError: If key is empty or counter is negative.
    Side Effects:
        None.
    """
    if not key:
        raise ValueError("TOTP key must be non-empty")
    if counter < 0:
        raise ValueError("TOTP counter must be >= 0")
    digest = hmac.new(key, _COUNTER_STRUCT.pack(counter), hashlib.sha1).digest()
    offset = digest[19] & 0x0F
    binary = int.from_bytes(digest[offset : offset + 4], "big") & 0x7FFFFFFF
    return str(binary % (10**digits)).zfill(digits)


def totp_code(key: bytes, unix_time: float) -> str:
    """Return the six-digit code for the time step containing `unix_time`."""
    return hotp_code(key, time_counter(unix_time))


def candidate_codes(
    key: bytes,
    unix_time: float,
    *,
    window: int = DEFAULT_VALID_WINDOW,
) -> list[tuple[int, str]]:
    """
    Return `(counter, code)` pairs for counters `counter - window ... counter + window`.

    Args:
        key: Raw shared secret bytes.
        unix_time: Seconds since the Unix epoch.
        window: Tolerated clock drift in time steps on each side.
    Returns:
        list[tuple[int, str]]: Candidates in ascending counter order.
    Assumptions:
        Counters below zero are skipped.
    Raises:
        ValueError: If window is negative.
    Side Effects:
        None.
    """
    if window < 0:
        raise ValueError("TOTP window must be >= 0")
    current = time_counter(unix_time)
    return [
        (counter, hotp_code(key, counter))
        for counter in range(current - window, current + window + 1)
        if counter >= 0
    ]


def matching_counter(
    key: bytes,
    unix_time: float,
    code: str,
    *,
    window: int = DEFAULT_VALID_WINDOW,
) -> int | None:
    """
    Return the counter whose code equals `code`, comparing every candidate.

    Args:
        key: Raw shared secret bytes.
        unix_time: Seconds since the Unix epoch.
        code: Submitted code.
        window: Tolerated clock drift in time steps on each side.
    Returns:
        int | None: Matching counter, or `None` when nothing matches.
    Assumptions:
        Loop never exits early so timing does not reveal which candidate matched.
    Raises:
        ValueError: If window is negative.
    Side Effects:
        None.
    """
    submitted = code.encode("ascii", errors="replace")
    matched: int | None = None
    for counter, candidate in candidate_codes(key, unix_time, window=window):
        if hmac.compare_digest(candidate.encode("ascii"), submitted) and matched is None:
            matched = counter
    return matched


def verify(key: bytes, unix_time: float, code: str, *, window: int = DEFAULT_VALID_WINDOW) -> bool:
    """Return whether `code` matches any candidate inside the drift window."""
    return matching_counter(key, unix_time, code, window=window) is not None
