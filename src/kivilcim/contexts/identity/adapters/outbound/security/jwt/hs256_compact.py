"""
Shared HS256 compact-token primitives (`header.payload.signature`, base64url JSON).

Used by the session JWT codec and by the client trust cache codec, which differ only in
their `typ` header and claim set.

Docs:
  - docs/architecture/identity/identity-2fa-trust-engine-v1.md
Related:
  - src/kivilcim/contexts/identity/adapters/outbound/security/jwt/hs256_jwt_codec.py
  - src/kivilcim/contexts/identity/adapters/outbound/security/trust_cache/
    hs256_trust_cache_codec.py
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
from typing import Any, Mapping

from kivilcim.contexts.identity.application.ports.jwt_codec import JwtDecodeError

_ALGORITHM = "HS256"


def sign_compact(*, secret_key: bytes, typ: str, claims: Mapping[str, Any]) -> str:
    """
    Serialize claims deterministically and sign them with HMAC-SHA256.

    Args:
        secret_key: HMAC key bytes.
        typ: Token type header value.
        claims: JSON-serializable claims mapping.
    Returns:
        str: Compact signed token.
    Assumptions:
        Sorted keys and compact separators keep output deterministic.
    Raises:
        ValueError: If claims cannot be JSON-serialized.
    Side Effects:
        None.
    """
    header_segment = _to_b64url_json(payload={"alg": _ALGORITHM, "typ": typ})
    payload_segment = _to_b64url_json(payload=dict(claims))
    signing_input = f"{header_segment}.{payload_segment}".encode("utf-8")
    signature = hmac.new(secret_key, signing_input, hashlib.sha256).digest()
    return f"{header_segment}.{payload_segment}.{_to_b64url_bytes(raw=signature)}"


def verify_compact(*, secret_key: bytes, typ: str, token: str) -> dict[str, Any]:
    """
    Verify token structure, header, and signature, then return claims mapping.

    Args:
        secret_key: HMAC key bytes.
        typ: Expected token type header value.
        token: Compact token string.
    Returns:
        dict[str, Any]: Decoded claims (temporal claims are not checked here).
    Assumptions:
        Signature is compared in constant time.
    Raises:
        JwtDecodeError: If token is empty, malformed, has wrong header, or bad signature.
    Side Effects:
        None.
    """
    token_value = token.strip()
    if not token_value:
        raise JwtDecodeError(code="missing_token", message="Token is empty")

    segments = token_value.split(".")
    if len(segments) != 3:
        raise JwtDecodeError(
            code="invalid_token_format",
            message="Token must contain 3 dot-separated segments",
        )

    header_segment, payload_segment, signature_segment = segments
    header = _from_b64url_json(segment=header_segment)
    if header.get("alg") != _ALGORITHM or header.get("typ") != typ:
        raise JwtDecodeError(
            code="invalid_header",
            message=f"Token header must contain alg={_ALGORITHM} and typ={typ}",
        )

    signing_input = f"{header_segment}.{payload_segment}".encode("utf-8")
    expected_signature = hmac.new(secret_key, signing_input, hashlib.sha256).digest()
    provided_signature = _from_b64url_bytes(segment=signature_segment)
    if not hmac.compare_digest(expected_signature, provided_signature):
        raise JwtDecodeError(code="invalid_signature", message="Token signature verification failed")

    return _from_b64url_json(segment=payload_segment)


def _to_b64url_json(*, payload: dict[str, Any]) -> str:
    raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return _to_b64url_bytes(raw=raw)


def _from_b64url_json(*, segment: str) -> dict[str, Any]:
    """
    Decode base64url JSON segment into mapping.

    Args:
        segment: Base64url token segment.
    Returns:
        dict[str, Any]: Decoded JSON object.
    Assumptions:
        Segment contains JSON object representation.
    Raises:
        JwtDecodeError: If segment cannot be decoded into JSON object.
    Side Effects:
        None.
    """
    raw = _from_b64url_bytes(segment=segment)
    try:
        loaded = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as error:
        raise JwtDecodeError(
            code="invalid_token_format",
            message="Token segment is not valid JSON",
        ) from error
    if not isinstance(loaded, dict):
        raise JwtDecodeError(
            code="invalid_token_format",
            message="Token JSON segment must be an object",
        )
    return loaded


def _to_b64url_bytes(*, raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _from_b64url_bytes(*, segment: str) -> bytes:
    padding = "=" * ((4 - len(segment) % 4) % 4)
    try:
        return base64.urlsafe_b64decode(f"{segment}{padding}".encode("ascii"))
    except (ValueError, UnicodeEncodeError) as error:
        raise JwtDecodeError(
            code="invalid_token_format",
            message="Token segment is not valid base64url",
        ) from error
