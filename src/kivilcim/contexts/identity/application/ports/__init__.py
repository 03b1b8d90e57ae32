from .clock import IdentityClock
from .current_user import CurrentUser, CurrentUserPrincipal, CurrentUserUnauthorizedError
from .jwt_codec import IdentityJwtClaims, JwtCodec, JwtDecodeError
from .privileged_role_policy import PrivilegedRolePolicy
from .trust_cache_codec import TrustCacheCodec, TrustCacheToken
from .two_factor_repository import TwoFactorRepository, TwoFactorVersionConflictError
from .two_factor_secret_cipher import TwoFactorSecretCipher
from .two_factor_totp_provider import TwoFactorTotpProvider
from .two_factor_trust_gate import (
    TwoFactorGateError,
    TwoFactorSetupRequiredError,
    TwoFactorTrustGate,
    TwoFactorVerificationRequiredError,
)

__all__ = [
    "CurrentUser",
    "CurrentUserPrincipal",
    "CurrentUserUnauthorizedError",
    "IdentityClock",
    "IdentityJwtClaims",
    "JwtCodec",
    "JwtDecodeError",
    "PrivilegedRolePolicy",
    "TrustCacheCodec",
    "TrustCacheToken",
    "TwoFactorGateError",
    "TwoFactorRepository",
    "TwoFactorSecretCipher",
    "TwoFactorSetupRequiredError",
    "TwoFactorTotpProvider",
    "TwoFactorTrustGate",
    "TwoFactorVerificationRequiredError",
    "TwoFactorVersionConflictError",
]
