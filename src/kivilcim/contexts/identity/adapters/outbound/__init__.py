from .persistence import (
    IdentityPostgresGateway,
    InMemoryIdentityTwoFactorRepository,
    PostgresIdentityTwoFactorRepository,
    PsycopgIdentityPostgresGateway,
)
from .policy import RepositoryTwoFactorTrustGate, StaticPrivilegedRolePolicy
from .security import (
    AesGcmEnvelopeTwoFactorSecretCipher,
    Hs256JwtCodec,
    Hs256TrustCacheCodec,
    JwtCookieCurrentUser,
    PyOtpTwoFactorTotpProvider,
    Rfc6238TwoFactorTotpProvider,
)
from .time import SystemIdentityClock

__all__ = [
    "AesGcmEnvelopeTwoFactorSecretCipher",
    "Hs256JwtCodec",
    "Hs256TrustCacheCodec",
    "IdentityPostgresGateway",
    "InMemoryIdentityTwoFactorRepository",
    "JwtCookieCurrentUser",
    "PostgresIdentityTwoFactorRepository",
    "PsycopgIdentityPostgresGateway",
    "PyOtpTwoFactorTotpProvider",
    "RepositoryTwoFactorTrustGate",
    "Rfc6238TwoFactorTotpProvider",
    "StaticPrivilegedRolePolicy",
    "SystemIdentityClock",
]
