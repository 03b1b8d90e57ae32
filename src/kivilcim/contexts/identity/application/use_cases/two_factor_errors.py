from __future__ import annotations


class TwoFactorOperationError(ValueError):
    """
    TwoFactorOperationError — base deterministic application error for 2FA flows.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/use_cases/two_factor_support.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/routes/two_factor.py
    """

    def __init__(self, *, code: str, message: str, status_code: int) -> None:
        """
        Initialize stable operation error attributes for HTTP mapping.

        Args:
            code: Machine-readable deterministic error code.
            message: Human-readable deterministic message.
            status_code: HTTP status expected by inbound adapter.
        Returns:
            None.
        Assumptions:
            Status code is final and does not require additional adapter mapping logic.
        Raises:
            None.
        Side Effects:
            None.
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code

    def payload(self) -> dict[str, str]:
        """
        Build deterministic HTTP error payload with stable key order.

        Args:
            None.
        Returns:
            dict[str, str]: `{"error": "...", "message": "..."}` payload.
        Assumptions:
            Payload is consumed by FastAPI HTTPException `detail`.
        Raises:
            None.
        Side Effects:
            None.
        """
        return {
            "error": self.code,
            "message": self.message,
        }


class TwoFactorInvalidCodeError(TwoFactorOperationError):
    """
    TwoFactorInvalidCodeError — well-formed code did not match any accepted time step.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/use_cases/two_factor_support.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/two_factor/rfc6238_totp.py
    """

    def __init__(self) -> None:
        """
        Initialize deterministic invalid-code error.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Invalid codes are user-input errors mapped to HTTP 422 and never change state.
        Raises:
            None.
        Side Effects:
            None.
        """
        super().__init__(
            code="invalid_two_factor_code",
            message="Invalid two-factor authentication code.",
            status_code=422,
        )


class TwoFactorMalformedCodeError(TwoFactorOperationError):
    """
    TwoFactorMalformedCodeError — submitted code is not exactly six ASCII digits.
    """

    def __init__(self) -> None:
        super().__init__(
            code="malformed_two_factor_code",
            message="Two-factor authentication code must be exactly 6 digits.",
            status_code=422,
        )


class TwoFactorNoPendingSecretError(TwoFactorOperationError):
    """
    TwoFactorNoPendingSecretError — enable was requested before setup staged a secret.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/use_cases/enable_two_factor_totp.py
    """

    def __init__(self) -> None:
        super().__init__(
            code="two_factor_no_pending_secret",
            message="Two-factor setup must be started first.",
            status_code=409,
        )


class TwoFactorNotEnabledError(TwoFactorOperationError):
    """
    TwoFactorNotEnabledError — operation needs an active secret but 2FA is off.
    """

    def __init__(self) -> None:
        super().__init__(
            code="two_factor_not_enabled",
            message="Two-factor authentication is not enabled.",
            status_code=409,
        )


class TwoFactorDisableForbiddenError(TwoFactorOperationError):
    """
    TwoFactorDisableForbiddenError — privileged role may not turn 2FA off.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/use_cases/disable_two_factor_totp.py
      - src/kivilcim/platform/config/identity_two_factor.py
    """

    def __init__(self) -> None:
        super().__init__(
            code="two_factor_disable_forbidden",
            message="Privileged accounts cannot disable two-factor authentication.",
            status_code=403,
        )


class TwoFactorConcurrentUpdateError(TwoFactorOperationError):
    """
    TwoFactorConcurrentUpdateError — credential changed between read and write.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/two_factor_repository.py
      - src/kivilcim/contexts/identity/application/use_cases/two_factor_support.py
    """

    def __init__(self) -> None:
        """
        Initialize deterministic conflict error for lost optimistic version race.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Client may retry the request after re-reading status.
        Raises:
            None.
        Side Effects:
            None.
        """
        super().__init__(
            code="two_factor_concurrent_update",
            message="Two-factor state changed concurrently, please retry.",
            status_code=409,
        )
