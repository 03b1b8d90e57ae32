from .two_factor_credential import ProvisioningSession, TwoFactorCredential

__all__ = [
    "ProvisioningSession",
    "TwoFactorCredential",
]
