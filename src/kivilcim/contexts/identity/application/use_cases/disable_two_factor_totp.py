from __future__ import annotations

import logging
from dataclasses import dataclass

from kivilcim.contexts.identity.application.ports import IdentityClock
from kivilcim.contexts.identity.application.ports.privileged_role_policy import (
    PrivilegedRolePolicy,
)
from kivilcim.contexts.identity.application.ports.two_factor_repository import TwoFactorRepository
from kivilcim.contexts.identity.application.ports.two_factor_secret_cipher import (
    TwoFactorSecretCipher,
)
from kivilcim.contexts.identity.application.ports.two_factor_totp_provider import (
    TwoFactorTotpProvider,
)
from kivilcim.contexts.identity.application.use_cases.two_factor_errors import (
    TwoFactorDisableForbiddenError,
    TwoFactorNotEnabledError,
)
from kivilcim.contexts.identity.application.use_cases.two_factor_support import (
    delete_credential,
    ensure_utc_datetime,
    match_totp_code,
    normalize_totp_code,
)
from kivilcim.shared_kernel.primitives import UserId, UserRole

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DisableTwoFactorTotpResult:
    """
    DisableTwoFactorTotpResult — output model for `/2fa/disable`.
    """

    enabled: bool

    def __post_init__(self) -> None:
        if self.enabled:
            raise ValueError("DisableTwoFactorTotpResult.enabled must be false")


class DisableTwoFactorTotpUseCase:
    """
    DisableTwoFactorTotpUseCase — turn 2FA off after proving possession of the active secret.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/privileged_role_policy.py
      - src/kivilcim/contexts/identity/application/ports/two_factor_repository.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/routes/two_factor.py
    """

    def __init__(
        self,
        *,
        repository: TwoFactorRepository,
        secret_cipher: TwoFactorSecretCipher,
        totp_provider: TwoFactorTotpProvider,
        clock: IdentityClock,
        role_policy: PrivilegedRolePolicy,
        allow_privileged_disable: bool = True,
        reject_replayed_codes: bool = False,
    ) -> None:
        """
        Initialize disable use-case dependencies and privileged-disable policy.

        Args:
            repository: Trust store port.
            secret_cipher: Secret decryption port.
            totp_provider: TOTP verification provider.
            clock: UTC time source.
            role_policy: Predicate deciding which roles are privileged.
            allow_privileged_disable: Whether privileged roles may turn 2FA off.
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
            raise ValueError("DisableTwoFactorTotpUseCase requires repository")
        if secret_cipher is None:  # type: ignore[truthy-bool]
            raise ValueError("DisableTwoFactorTotpUseCase requires secret_cipher")
        if totp_provider is None:  # type: ignore[truthy-bool]
            raise ValueError("DisableTwoFactorTotpUseCase requires totp_provider")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("DisableTwoFactorTotpUseCase requires clock")
        if role_policy is None:  # type: ignore[truthy-bool]
            raise ValueError("DisableTwoFactorTotpUseCase requires role_policy")

        self._repository = repository
        self._secret_cipher = secret_cipher
        self._totp_provider = totp_provider
        self._clock = clock
        self._role_policy = role_policy
        self._allow_privileged_disable = allow_privileged_disable
        self._reject_replayed_codes = reject_replayed_codes

    def disable(self, *, user_id: UserId, role: UserRole, code: str) -> DisableTwoFactorTotpResult:
        """
        Verify code against the active secret and delete the whole credential.

        Args:
            user_id: Authenticated identity user id.
            role: Caller role supplied by the identity system.
            code: User-submitted TOTP code.
        Returns:
            DisableTwoFactorTotpResult: Disabled marker.
        Assumptions:
            Deleting the credential also drops any staged rotation secret.
        Raises:
            TwoFactorMalformedCodeError: If code is not six digits.
            TwoFactorDisableForbiddenError: If privileged disable is turned off by config.
            TwoFactorNotEnabledError: If 2FA is not enabled.
            TwoFactorInvalidCodeError: If code does not match the active secret.
            TwoFactorConcurrentUpdateError: If the credential changed concurrently.
        Side Effects:
            Deletes the stored credential on success.
        """
        normalized_code = normalize_totp_code(code=code)
        if not self._allow_privileged_disable and self._role_policy.is_privileged(role=role):
            log.warning("two_factor disable forbidden user_id=%s role=%s", user_id, role.value)
            raise TwoFactorDisableForbiddenError()

        credential = self._repository.find_by_user_id(user_id=user_id)
        if credential is None or not credential.enabled or credential.secret_enc is None:
            raise TwoFactorNotEnabledError()

        now = ensure_utc_datetime(value=self._clock.now(), field_name="clock.now")
        match_totp_code(
            secret_cipher=self._secret_cipher,
            totp_provider=self._totp_provider,
            secret_enc=credential.secret_enc,
            code=normalized_code,
            at_time=now,
            user_id=user_id,
            last_accepted_counter=credential.last_accepted_counter,
            reject_replayed_codes=self._reject_replayed_codes,
        )
        delete_credential(
            repository=self._repository,
            user_id=user_id,
            expected_version=credential.version,
        )
        log.info("two_factor disabled user_id=%s", user_id)
        return DisableTwoFactorTotpResult(enabled=False)
