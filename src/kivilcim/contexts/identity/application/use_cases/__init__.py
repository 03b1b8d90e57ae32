from .disable_two_factor_totp import DisableTwoFactorTotpResult, DisableTwoFactorTotpUseCase
from .enable_two_factor_totp import EnableTwoFactorTotpResult, EnableTwoFactorTotpUseCase
from .end_two_factor_session import EndTwoFactorSessionUseCase
from .get_two_factor_status import GetTwoFactorStatusUseCase
from .setup_two_factor_totp import SetupTwoFactorTotpResult, SetupTwoFactorTotpUseCase
from .two_factor_errors import (
    TwoFactorConcurrentUpdateError,
    TwoFactorDisableForbiddenError,
    TwoFactorInvalidCodeError,
    TwoFactorMalformedCodeError,
    TwoFactorNoPendingSecretError,
    TwoFactorNotEnabledError,
    TwoFactorOperationError,
)
from .verify_two_factor_totp import VerifyTwoFactorTotpResult, VerifyTwoFactorTotpUseCase

__all__ = [
    "DisableTwoFactorTotpResult",
    "DisableTwoFactorTotpUseCase",
    "EnableTwoFactorTotpResult",
    "EnableTwoFactorTotpUseCase",
    "EndTwoFactorSessionUseCase",
    "GetTwoFactorStatusUseCase",
    "SetupTwoFactorTotpResult",
    "SetupTwoFactorTotpUseCase",
    "TwoFactorConcurrentUpdateError",
    "TwoFactorDisableForbiddenError",
    "TwoFactorInvalidCodeError",
    "TwoFactorMalformedCodeError",
    "TwoFactorNoPendingSecretError",
    "TwoFactorNotEnabledError",
    "TwoFactorOperationError",
    "VerifyTwoFactorTotpResult",
    "VerifyTwoFactorTotpUseCase",
]
