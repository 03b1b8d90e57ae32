from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from kivilcim.contexts.identity.application.ports import IdentityClock
from kivilcim.contexts.identity.application.ports.two_factor_repository import TwoFactorRepository
from kivilcim.contexts.identity.application.ports.two_factor_secret_cipher import (
    TwoFactorSecretCipher,
)
from kivilcim.contexts.identity.application.ports.two_factor_totp_provider import (
    TwoFactorTotpProvider,
)
from kivilcim.contexts.identity.application.use_cases.two_factor_support import (
    ensure_utc_datetime,
    match_totp_code,
    normalize_totp_code,
    save_credential,
)
from kivilcim.shared_kernel.primitives import UserId

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VerifyTwoFactorTotpResult:
    """
    VerifyTwoFactorTotpResult — output model for `/2fa/verify`.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/use_cases/verify_two_factor_totp.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/routes/two_factor.py
    """

    verified: bool
    last_verification_at: datetime | None

    def __post_init__(self) -> None:
        """
        Validate that verify result always reports success.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Failed verification raises instead of returning a result.
        Raises:
            ValueError: If result is created with `verified=False`.
        Side Effects:
            None.
        """
        if not self.verified:
            raise ValueError("VerifyTwoFactorTotpResult.verified must be true")


class VerifyTwoFactorTotpUseCase:
    """
    VerifyTwoFactorTotpUseCase — verify TOTP code against the active secret and open trust window.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/use_cases/two_factor_support.py
      - src/kivilcim/contexts/identity/domain/services/trust_evaluation.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/routes/two_factor.py
    """

    def __init__(
        self,
        *,
        repository: TwoFactorRepository,
        secret_cipher: TwoFactorSecretCipher,
        totp_provider: TwoFactorTotpProvider,
        clock: IdentityClock,
        reject_replayed_codes: bool = False,
    ) -> None:
        """
        Initialize verify use-case dependencies.

        Args:
            repository: Trust store port.
            secret_cipher: Secret decryption port.
            totp_provider: TOTP verification provider.
            clock: UTC time source for verification and timestamps.
            reject_replayed_codes: Whether codes from an already accepted time step fail.
        Returns:
            None.
        Assumptions:
            Dependencies are initialized and non-null.
        Raises:
            ValueError: If required dependency is missing.
        Side Effects:
            None.
        """
        if repository is None:  # type: ignore[truthy-bool]
            raise ValueError("VerifyTwoFactorTotpUseCase requires repository")
        if secret_cipher is None:  # type: ignore[truthy-bool]
            raise ValueError("VerifyTwoFactorTotpUseCase requires secret_cipher")
        if totp_provider is None:  # type: ignore[truthy-bool]
            raise ValueError("VerifyTwoFactorTotpUseCase requires totp_provider")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("VerifyTwoFactorTotpUseCase requires clock")

        self._repository = repository
        self._secret_cipher = secret_cipher
        self._totp_provider = totp_provider
        self._clock = clock
        self._reject_replayed_codes = reject_replayed_codes

    def verify(self, *, user_id: UserId, code: str) -> VerifyTwoFactorTotpResult:
        """
        Validate submitted code against the active secret and refresh the trust window.

        Args:
            user_id: Authenticated identity user id.
            code: User-submitted TOTP code.
        Returns:
            VerifyTwoFactorTotpResult: Success marker with the new verification timestamp.
        Assumptions:
            A user without enabled 2FA has nothing to verify and is reported as verified
            with `last_verification_at=None`; storage is not touched in that case.
        Raises:
            TwoFactorMalformedCodeError: If code is not six digits.
            TwoFactorInvalidCodeError: If code does not match the active secret.
            TwoFactorConcurrentUpdateError: If the credential changed concurrently.
        Side Effects:
            Decrypts the active secret in-memory and updates the stored credential.
        """
        normalized_code = normalize_totp_code(code=code)
        credential = self._repository.find_by_user_id(user_id=user_id)
        if credential is None or not credential.enabled or credential.secret_enc is None:
            return VerifyTwoFactorTotpResult(verified=True, last_verification_at=None)

        now = ensure_utc_datetime(value=self._clock.now(), field_name="clock.now")
        counter = match_totp_code(
            secret_cipher=self._secret_cipher,
            totp_provider=self._totp_provider,
            secret_enc=credential.secret_enc,
            code=normalized_code,
            at_time=now,
            user_id=user_id,
            last_accepted_counter=credential.last_accepted_counter,
            reject_replayed_codes=self._reject_replayed_codes,
        )
        saved = save_credential(
            repository=self._repository,
            credential=credential.mark_verified(
                now=now,
                counter=counter if self._reject_replayed_codes else None,
            ),
            expected_version=credential.version,
        )
        log.info("two_factor verified user_id=%s", user_id)
        return VerifyTwoFactorTotpResult(
            verified=True,
            last_verification_at=saved.last_verification_at,
        )
