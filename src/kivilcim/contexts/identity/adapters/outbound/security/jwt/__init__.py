from .hs256_compact import sign_compact, verify_compact
from .hs256_jwt_codec import Hs256JwtCodec

__all__ = [
    "Hs256JwtCodec",
    "sign_compact",
    "verify_compact",
]
