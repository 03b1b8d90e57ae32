from __future__ import annotations

from typing import Protocol

from kivilcim.contexts.identity.domain.value_objects import TrustSnapshot
from kivilcim.shared_kernel.primitives import UserId, UserRole

_SETUP_REQUIRED_CODE = "two_factor_setup_required"
_SETUP_REQUIRED_MESSAGE = "Two-factor authentication must be set up first."
_VERIFICATION_REQUIRED_CODE = "two_factor_verification_required"
_VERIFICATION_REQUIRED_MESSAGE = "Two-factor verification is required."


class TwoFactorGateError(PermissionError):
    """
    TwoFactorGateError — базовый отказ trust gate для привилегированного действия.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/outbound/policy/two_factor_trust_gate.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/deps/two_factor_trusted.py
    """

    def __init__(self, *, code: str, message: str) -> None:
        """
        Initialize gate error payload fields.

        Args:
            code: Machine-readable deterministic error code.
            message: Human-readable deterministic message.
        Returns:
            None.
        Assumptions:
            Error payload is reused directly in HTTP 403 responses.
        Raises:
            None.
        Side Effects:
            None.
        """
        super().__init__(message)
        self.code = code
        self.message = message

    def payload(self) -> dict[str, str]:
        """
        Return gate error payload with stable key order.

        Args:
            None.
        Returns:
            dict[str, str]: `{"error": "...", "message": "..."}` payload.
        Assumptions:
            Keys order remains deterministic for API responses.
        Raises:
            None.
        Side Effects:
            None.
        """
        return {
            "error": self.code,
            "message": self.message,
        }


class TwoFactorSetupRequiredError(TwoFactorGateError):
    """
    TwoFactorSetupRequiredError — privileged caller has no enabled 2FA (`NOT_CONFIGURED`).
    """

    def __init__(self) -> None:
        super().__init__(code=_SETUP_REQUIRED_CODE, message=_SETUP_REQUIRED_MESSAGE)


class TwoFactorVerificationRequiredError(TwoFactorGateError):
    """
    TwoFactorVerificationRequiredError — trust window missing or expired.
    """

    def __init__(self) -> None:
        super().__init__(
            code=_VERIFICATION_REQUIRED_CODE,
            message=_VERIFICATION_REQUIRED_MESSAGE,
        )


class TwoFactorTrustGate(Protocol):
    """
    TwoFactorTrustGate — единая точка вычисления trust state и проверки привилегий.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/domain/services/trust_evaluation.py
      - src/kivilcim/contexts/identity/adapters/outbound/policy/two_factor_trust_gate.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/deps/two_factor_trusted.py
    """

    def evaluate(self, *, user_id: UserId, role: UserRole) -> TrustSnapshot:
        """
        Compute authoritative snapshot from persisted credential, role, and clock.

        Args:
            user_id: Identity user identifier.
            role: Caller role supplied by the identity system.
        Returns:
            TrustSnapshot: Current trust snapshot.
        Assumptions:
            Client trust cache is never consulted.
        Raises:
            ValueError: If stored state cannot be mapped.
        Side Effects:
            Reads one credential snapshot.
        """
        ...

    def require_trusted(self, *, user_id: UserId, role: UserRole) -> TrustSnapshot:
        """
        Enforce that a privileged action may proceed.

        Args:
            user_id: Identity user identifier.
            role: Caller role supplied by the identity system.
        Returns:
            TrustSnapshot: Snapshot in `TRUSTED` or `ROTATING` state.
        Assumptions:
            Non-privileged roles always pass.
        Raises:
            TwoFactorSetupRequiredError: If state is `NOT_CONFIGURED`.
            TwoFactorVerificationRequiredError: If state is `PENDING_VERIFICATION`.
        Side Effects:
            Reads one credential snapshot.
        """
        ...
