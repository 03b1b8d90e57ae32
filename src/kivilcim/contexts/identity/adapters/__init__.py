"""
Adapters package for identity bounded context.
"""

from .inbound import (
    RequireCurrentUserDependency,
    RequireTwoFactorTrustedDependency,
    TrustCacheCookie,
    build_two_factor_router,
    register_two_factor_trust_exception_handler,
)
from .outbound import (
    AesGcmEnvelopeTwoFactorSecretCipher,
    Hs256JwtCodec,
    Hs256TrustCacheCodec,
    InMemoryIdentityTwoFactorRepository,
    JwtCookieCurrentUser,
    PostgresIdentityTwoFactorRepository,
    PsycopgIdentityPostgresGateway,
    RepositoryTwoFactorTrustGate,
    Rfc6238TwoFactorTotpProvider,
    StaticPrivilegedRolePolicy,
    SystemIdentityClock,
)

__all__ = [
    "AesGcmEnvelopeTwoFactorSecretCipher",
    "Hs256JwtCodec",
    "Hs256TrustCacheCodec",
    "InMemoryIdentityTwoFactorRepository",
    "JwtCookieCurrentUser",
    "PostgresIdentityTwoFactorRepository",
    "PsycopgIdentityPostgresGateway",
    "RepositoryTwoFactorTrustGate",
    "RequireCurrentUserDependency",
    "RequireTwoFactorTrustedDependency",
    "Rfc6238TwoFactorTotpProvider",
    "StaticPrivilegedRolePolicy",
    "SystemIdentityClock",
    "TrustCacheCookie",
    "build_two_factor_router",
    "register_two_factor_trust_exception_handler",
]
