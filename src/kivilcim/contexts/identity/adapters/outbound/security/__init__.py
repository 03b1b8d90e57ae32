from .current_user import JwtCookieCurrentUser
from .jwt import Hs256JwtCodec
from .trust_cache import Hs256TrustCacheCodec
from .two_factor import (
    AesGcmEnvelopeTwoFactorSecretCipher,
    PyOtpTwoFactorTotpProvider,
    Rfc6238TwoFactorTotpProvider,
)

__all__ = [
    "AesGcmEnvelopeTwoFactorSecretCipher",
    "Hs256JwtCodec",
    "Hs256TrustCacheCodec",
    "JwtCookieCurrentUser",
    "PyOtpTwoFactorTotpProvider",
    "Rfc6238TwoFactorTotpProvider",
]
