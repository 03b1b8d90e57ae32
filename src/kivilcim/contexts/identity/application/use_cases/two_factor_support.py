from __future__ import annotations

import logging
from datetime import datetime

from kivilcim.contexts.identity.application.ports.two_factor_repository import (
    TwoFactorRepository,
    TwoFactorVersionConflictError,
)
from kivilcim.contexts.identity.application.ports.two_factor_secret_cipher import (
    TwoFactorSecretCipher,
)
from kivilcim.contexts.identity.application.ports.two_factor_totp_provider import (
    TwoFactorTotpProvider,
)
from kivilcim.contexts.identity.application.use_cases.two_factor_errors import (
    TwoFactorConcurrentUpdateError,
    TwoFactorInvalidCodeError,
    TwoFactorMalformedCodeError,
)
from kivilcim.contexts.identity.domain.entities import TwoFactorCredential
from kivilcim.shared_kernel.primitives import UserId

log = logging.getLogger(__name__)

_TOTP_CODE_DIGITS = 6


def normalize_totp_code(*, code: str) -> str:
    """
    Normalize and validate TOTP code format before any cryptographic work.

    Args:
        code: Raw code from API payload.
    Returns:
        str: Six ASCII digits with all whitespace removed.
    Assumptions:
        Authenticator apps often render codes as `123 456`.
    Raises:
        TwoFactorMalformedCodeError: If code is not exactly six ASCII digits.
    Side Effects:
        None.
    """
    normalized = "".join(code.split())
    if len(normalized) != _TOTP_CODE_DIGITS:
        raise TwoFactorMalformedCodeError()
    if not (normalized.isascii() and normalized.isdigit()):
        raise TwoFactorMalformedCodeError()
    return normalized


def match_totp_code(
    *,
    secret_cipher: TwoFactorSecretCipher,
    totp_provider: TwoFactorTotpProvider,
    secret_enc: bytes,
    code: str,
    at_time: datetime,
    user_id: UserId,
    last_accepted_counter: int | None,
    reject_replayed_codes: bool,
) -> int:
    """
    Decrypt stored secret and return the time-step counter matched by `code`.

    Args:
        secret_cipher: Envelope cipher for stored secrets.
        totp_provider: TOTP implementation behind the narrow port.
        secret_enc: Encrypted Base32 secret.
        code: Normalized six-digit code.
        at_time: UTC verification instant.
        user_id: Credential owner, used only for logging.
        last_accepted_counter: Last accepted counter when replay tracking is on.
        reject_replayed_codes: Whether already-used time steps are refused.
    Returns:
        int: Matched time-step counter.
    Assumptions:
        Plaintext secret lives only in this call frame.
    Raises:
        TwoFactorInvalidCodeError: If code does not match, is replayed, or secret is unreadable.
    Side Effects:
        Logs failed attempts without code or secret material.
    """
    try:
        secret = secret_cipher.decrypt_secret(secret_enc=secret_enc)
        counter = totp_provider.matching_counter(secret=secret, code=code, at_time=at_time)
    except ValueError as error:
        log.warning(
            "two_factor stored secret unreadable user_id=%s error=%s",
            user_id,
            type(error).__name__,
        )
        raise TwoFactorInvalidCodeError() from error

    if counter is None:
        log.info("two_factor code rejected user_id=%s reason=mismatch", user_id)
        raise TwoFactorInvalidCodeError()
    if (
        reject_replayed_codes
        and last_accepted_counter is not None
        and counter <= last_accepted_counter
    ):
        log.warning("two_factor code rejected user_id=%s reason=replay", user_id)
        raise TwoFactorInvalidCodeError()
    return counter


def save_credential(
    *,
    repository: TwoFactorRepository,
    credential: TwoFactorCredential,
    expected_version: int | None,
) -> TwoFactorCredential:
    """
    Persist credential with optimistic version check mapped to operation error.

    Args:
        repository: Trust store port.
        credential: Next credential state.
        expected_version: Version read before the change, `None` for first insert.
    Returns:
        TwoFactorCredential: Persisted credential.
    Assumptions:
        Caller derived `credential` from the snapshot carrying `expected_version`.
    Raises:
        TwoFactorConcurrentUpdateError: If a concurrent writer won the race.
    Side Effects:
        Writes one storage record.
    """
    try:
        return repository.save(credential=credential, expected_version=expected_version)
    except TwoFactorVersionConflictError as error:
        log.warning(
            "two_factor concurrent update user_id=%s expected_version=%s",
            credential.user_id,
            expected_version,
        )
        raise TwoFactorConcurrentUpdateError() from error


def delete_credential(
    *,
    repository: TwoFactorRepository,
    user_id: UserId,
    expected_version: int,
) -> None:
    """
    Delete credential with optimistic version check mapped to operation error.

    Args:
        repository: Trust store port.
        user_id: Credential owner.
        expected_version: Version read before the change.
    Returns:
        None.
    Assumptions:
        None.
    Raises:
        TwoFactorConcurrentUpdateError: If a concurrent writer won the race.
    Side Effects:
        Deletes one storage record.
    """
    try:
        repository.delete(user_id=user_id, expected_version=expected_version)
    except TwoFactorVersionConflictError as error:
        log.warning(
            "two_factor concurrent delete user_id=%s expected_version=%s",
            user_id,
            expected_version,
        )
        raise TwoFactorConcurrentUpdateError() from error


def ensure_utc_datetime(*, value: datetime, field_name: str) -> datetime:
    """
    Validate datetime is timezone-aware UTC and return same value.

    Args:
        value: Datetime value to validate.
        field_name: Field label for deterministic error message.
    Returns:
        datetime: Same validated datetime.
    Assumptions:
        UTC datetimes have zero offset.
    Raises:
        ValueError: If datetime is naive or non-UTC.
    Side Effects:
        None.
    """
    offset = value.utcoffset()
    if value.tzinfo is None or offset is None:
        raise ValueError(f"{field_name} must be timezone-aware UTC datetime")
    if offset.total_seconds() != 0:
        raise ValueError(f"{field_name} must be UTC datetime")
    return value
