from .entities import ProvisioningSession, TwoFactorCredential
from .services import DEFAULT_SESSION_TIMEOUT_MINUTES, evaluate_trust
from .value_objects import AdvisoryTrustView, TrustSnapshot, TrustState

__all__ = [
    "AdvisoryTrustView",
    "DEFAULT_SESSION_TIMEOUT_MINUTES",
    "ProvisioningSession",
    "TrustSnapshot",
    "TrustState",
    "TwoFactorCredential",
    "evaluate_trust",
]
