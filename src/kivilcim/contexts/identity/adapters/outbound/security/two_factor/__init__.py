from . import base32_codec, rfc6238_totp
from .aes_gcm_envelope_secret_cipher import AesGcmEnvelopeTwoFactorSecretCipher
from .pyotp_totp_provider import PyOtpTwoFactorTotpProvider
from .rfc6238_totp_provider import Rfc6238TwoFactorTotpProvider

__all__ = [
    "AesGcmEnvelopeTwoFactorSecretCipher",
    "PyOtpTwoFactorTotpProvider",
    "Rfc6238TwoFactorTotpProvider",
    "base32_codec",
    "rfc6238_totp",
]
