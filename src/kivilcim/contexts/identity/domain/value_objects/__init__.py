from .two_factor_trust import AdvisoryTrustView, TrustSnapshot, TrustState

__all__ = [
    "AdvisoryTrustView",
    "TrustSnapshot",
    "TrustState",
]
