from __future__ import annotations

import logging
from dataclasses import dataclass

from kivilcim.contexts.identity.application.ports import IdentityClock
from kivilcim.contexts.identity.application.ports.two_factor_repository import TwoFactorRepository
from kivilcim.contexts.identity.application.ports.two_factor_secret_cipher import (
    TwoFactorSecretCipher,
)
from kivilcim.contexts.identity.application.ports.two_factor_totp_provider import (
    TwoFactorTotpProvider,
)
from kivilcim.contexts.identity.application.use_cases.two_factor_errors import (
    TwoFactorNoPendingSecretError,
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
class EnableTwoFactorTotpResult:
    """
    EnableTwoFactorTotpResult — output model for `/2fa/enable`.
    """

    enabled: bool

    def __post_init__(self) -> None:
        if not self.enabled:
            raise ValueError("EnableTwoFactorTotpResult.enabled must be true")


class EnableTwoFactorTotpUseCase:
    """
    EnableTwoFactorTotpUseCase — confirm pending secret and atomically make it active.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/use_cases/setup_two_factor_totp.py
      - src/kivilcim/contexts/identity/domain/entities/two_factor_credential.py
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
        Initialize enable use-case dependencies.

        Args:
            repository: Trust store port.
            secret_cipher: Secret decryption port.
            totp_provider: TOTP verification provider.
            clock: UTC time source.
            reject_replayed_codes: Whether accepted time-step counters are tracked.
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
            raise ValueError("EnableTwoFactorTotpUseCase requires repository")
        if secret_cipher is None:  # type: ignore[truthy-bool]
            raise ValueError("EnableTwoFactorTotpUseCase requires secret_cipher")
        if totp_provider is None:  # type: ignore[truthy-bool]
            raise ValueError("EnableTwoFactorTotpUseCase requires totp_provider")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("EnableTwoFactorTotpUseCase requires clock")

        self._repository = repository
        self._secret_cipher = secret_cipher
        self._totp_provider = totp_provider
        self._clock = clock
        self._reject_replayed_codes = reject_replayed_codes

    def enable(self, *, user_id: UserId, code: str) -> EnableTwoFactorTotpResult:
        """
        Validate code against the pending secret and swap it into the active slot.

        Args:
            user_id: Authenticated identity user id.
            code: User-submitted TOTP code.
        Returns:
            EnableTwoFactorTotpResult: Successful enablement marker.
        Assumptions:
            The same operation completes both first-time setup and rotation. A failed
            attempt leaves the stored credential untouched.
        Raises:
            TwoFactorMalformedCodeError: If code is not six digits.
            TwoFactorNoPendingSecretError: If no pending secret is staged.
            TwoFactorInvalidCodeError: If code does not match the pending secret.
            TwoFactorConcurrentUpdateError: If the credential changed concurrently.
        Side Effects:
            Replaces stored credential with the activated version.
        """
        normalized_code = normalize_totp_code(code=code)
        credential = self._repository.find_by_user_id(user_id=user_id)
        if credential is None or credential.pending is None:
            raise TwoFactorNoPendingSecretError()

        now = ensure_utc_datetime(value=self._clock.now(), field_name="clock.now")
        counter = match_totp_code(
            secret_cipher=self._secret_cipher,
            totp_provider=self._totp_provider,
            secret_enc=credential.pending.secret_enc,
            code=normalized_code,
            at_time=now,
            user_id=user_id,
            last_accepted_counter=None,
            reject_replayed_codes=False,
        )
        rotation = credential.enabled
        save_credential(
            repository=self._repository,
            credential=credential.activate_pending(
                now=now,
                counter=counter if self._reject_replayed_codes else None,
            ),
            expected_version=credential.version,
        )
        log.info("two_factor enabled user_id=%s rotation=%s", user_id, rotation)
        return EnableTwoFactorTotpResult(enabled=True)
