from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from kivilcim.contexts.identity.application.ports import IdentityClock
from kivilcim.contexts.identity.application.ports.two_factor_repository import TwoFactorRepository
from kivilcim.contexts.identity.application.ports.two_factor_secret_cipher import (
    TwoFactorSecretCipher,
)
from kivilcim.contexts.identity.application.ports.two_factor_totp_provider import (
    TwoFactorTotpProvider,
)
from kivilcim.contexts.identity.application.ports.two_factor_trust_gate import (
    TwoFactorVerificationRequiredError,
)
from kivilcim.contexts.identity.application.use_cases.two_factor_support import (
    ensure_utc_datetime,
    save_credential,
)
from kivilcim.contexts.identity.domain.entities import TwoFactorCredential
from kivilcim.contexts.identity.domain.services import (
    DEFAULT_SESSION_TIMEOUT_MINUTES,
    evaluate_trust,
)
from kivilcim.shared_kernel.primitives import UserId

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SetupTwoFactorTotpResult:
    """
    SetupTwoFactorTotpResult — provisioning payload returned by `/2fa/setup`.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/use_cases/setup_two_factor_totp.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/routes/two_factor.py
    """

    secret_base32: str
    provisioning_uri: str

    def __post_init__(self) -> None:
        """
        Validate that result contains a Base32 secret and standard otpauth URI.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            UI renders a QR code from the URI and offers the secret for manual entry.
        Raises:
            ValueError: If secret is empty or URI does not use the `otpauth://totp` scheme.
        Side Effects:
            None.
        """
        if not self.secret_base32.strip():
            raise ValueError("SetupTwoFactorTotpResult.secret_base32 must be non-empty")
        if not self.provisioning_uri.startswith("otpauth://totp/"):
            raise ValueError(
                "SetupTwoFactorTotpResult.provisioning_uri must start with 'otpauth://totp/'"
            )


class SetupTwoFactorTotpUseCase:
    """
    SetupTwoFactorTotpUseCase — stage a new pending TOTP secret (first setup or rotation).

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/use_cases/enable_two_factor_totp.py
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
        issuer: str = "Kivilcim",
        session_timeout_minutes: int = DEFAULT_SESSION_TIMEOUT_MINUTES,
    ) -> None:
        """
        Initialize setup use-case dependencies and issuer/rotation policy.

        Args:
            repository: Trust store port.
            secret_cipher: Envelope encryption port for TOTP secret.
            totp_provider: Provider generating secrets and otpauth URI.
            clock: UTC time source.
            issuer: Issuer label used in authenticator apps.
            session_timeout_minutes: Trust window required to start a rotation.
        Returns:
            None.
        Assumptions:
            All dependencies are initialized and non-null.
        Raises:
            ValueError: If dependencies are missing, issuer is empty, or timeout is not positive.
        Side Effects:
            None.
        """
        normalized_issuer = issuer.strip()
        if repository is None:  # type: ignore[truthy-bool]
            raise ValueError("SetupTwoFactorTotpUseCase requires repository")
        if secret_cipher is None:  # type: ignore[truthy-bool]
            raise ValueError("SetupTwoFactorTotpUseCase requires secret_cipher")
        if totp_provider is None:  # type: ignore[truthy-bool]
            raise ValueError("SetupTwoFactorTotpUseCase requires totp_provider")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("SetupTwoFactorTotpUseCase requires clock")
        if not normalized_issuer:
            raise ValueError("SetupTwoFactorTotpUseCase requires non-empty issuer")
        if session_timeout_minutes <= 0:
            raise ValueError("SetupTwoFactorTotpUseCase requires session_timeout_minutes > 0")

        self._repository = repository
        self._secret_cipher = secret_cipher
        self._totp_provider = totp_provider
        self._clock = clock
        self._issuer = normalized_issuer
        self._session_timeout = timedelta(minutes=session_timeout_minutes)

    def setup(self, *, user_id: UserId, account_label: str) -> SetupTwoFactorTotpResult:
        """
        Generate pending TOTP secret, persist encrypted blob, and return provisioning payload.

        Args:
            user_id: Authenticated identity user id.
            account_label: Label shown in authenticator apps (email or user id).
        Returns:
            SetupTwoFactorTotpResult: Base32 secret and otpauth URI.
        Assumptions:
            When 2FA is already enabled this starts a rotation, which requires a fresh
            verification against the current secret. The active secret stays valid.
        Raises:
            TwoFactorVerificationRequiredError: If rotation is requested without fresh trust.
            TwoFactorConcurrentUpdateError: If the credential changed concurrently.
            ValueError: If dependencies return invalid data.
        Side Effects:
            Persists encrypted pending secret, overwriting a previous pending one.
        """
        now = ensure_utc_datetime(value=self._clock.now(), field_name="clock.now")
        existing = self._repository.find_by_user_id(user_id=user_id)
        if existing is not None and existing.enabled:
            snapshot = evaluate_trust(
                credential=existing,
                privileged=True,
                now=now,
                session_timeout=self._session_timeout,
            )
            if not snapshot.state.allows_privileged_actions:
                log.info(
                    "two_factor rotation denied user_id=%s state=%s",
                    user_id,
                    snapshot.state.value,
                )
                raise TwoFactorVerificationRequiredError()

        plaintext_secret = self._totp_provider.create_secret()
        secret_enc = self._secret_cipher.encrypt_secret(secret=plaintext_secret)
        if existing is None:
            save_credential(
                repository=self._repository,
                credential=TwoFactorCredential.provision(
                    user_id=user_id,
                    secret_enc=secret_enc,
                    now=now,
                ),
                expected_version=None,
            )
        else:
            save_credential(
                repository=self._repository,
                credential=existing.with_pending_secret(secret_enc=secret_enc, now=now),
                expected_version=existing.version,
            )

        log.info(
            "two_factor secret staged user_id=%s rotation=%s",
            user_id,
            existing is not None and existing.enabled,
        )
        provisioning_uri = self._totp_provider.build_otpauth_uri(
            secret=plaintext_secret,
            account_label=account_label,
            issuer=self._issuer,
        )
        return SetupTwoFactorTotpResult(
            secret_base32=plaintext_secret,
            provisioning_uri=provisioning_uri,
        )
