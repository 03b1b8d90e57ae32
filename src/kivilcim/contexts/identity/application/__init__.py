from .ports import (
    CurrentUser,
    CurrentUserPrincipal,
    CurrentUserUnauthorizedError,
    IdentityClock,
    IdentityJwtClaims,
    JwtCodec,
    JwtDecodeError,
    PrivilegedRolePolicy,
    TrustCacheCodec,
    TwoFactorGateError,
    TwoFactorRepository,
    TwoFactorSecretCipher,
    TwoFactorSetupRequiredError,
    TwoFactorTotpProvider,
    TwoFactorTrustGate,
    TwoFactorVerificationRequiredError,
    TwoFactorVersionConflictError,
)
from .use_cases import (
    DisableTwoFactorTotpUseCase,
    EnableTwoFactorTotpUseCase,
    EndTwoFactorSessionUseCase,
    GetTwoFactorStatusUseCase,
    SetupTwoFactorTotpUseCase,
    TwoFactorOperationError,
    VerifyTwoFactorTotpUseCase,
)

__all__ = [
    "CurrentUser",
    "CurrentUserPrincipal",
    "CurrentUserUnauthorizedError",
    "DisableTwoFactorTotpUseCase",
    "EnableTwoFactorTotpUseCase",
    "EndTwoFactorSessionUseCase",
    "GetTwoFactorStatusUseCase",
    "IdentityClock",
    "IdentityJwtClaims",
    "JwtCodec",
    "JwtDecodeError",
    "PrivilegedRolePolicy",
    "SetupTwoFactorTotpUseCase",
    "TrustCacheCodec",
    "TwoFactorGateError",
    "TwoFactorOperationError",
    "TwoFactorRepository",
    "TwoFactorSecretCipher",
    "TwoFactorSetupRequiredError",
    "TwoFactorTotpProvider",
    "TwoFactorTrustGate",
    "TwoFactorVerificationRequiredError",
    "TwoFactorVersionConflictError",
    "VerifyTwoFactorTotpUseCase",
]
