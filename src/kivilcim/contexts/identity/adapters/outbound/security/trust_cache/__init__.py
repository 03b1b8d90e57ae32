from .hs256_trust_cache_codec import Hs256TrustCacheCodec

__all__ = [
    "Hs256TrustCacheCodec",
]
