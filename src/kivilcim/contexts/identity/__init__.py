from .application import (
    CurrentUser,
    CurrentUserPrincipal,
    CurrentUserUnauthorizedError,
    IdentityClock,
    TwoFactorGateError,
    TwoFactorOperationError,
    TwoFactorTrustGate,
)
from .domain import AdvisoryTrustView, TrustSnapshot, TrustState, TwoFactorCredential

__all__ = [
    "AdvisoryTrustView",
    "CurrentUser",
    "CurrentUserPrincipal",
    "CurrentUserUnauthorizedError",
    "IdentityClock",
    "TrustSnapshot",
    "TrustState",
    "TwoFactorCredential",
    "TwoFactorGateError",
    "TwoFactorOperationError",
    "TwoFactorTrustGate",
]
