from .two_factor import (
    TwoFactorAdvisoryStatusResponse,
    TwoFactorCachedStatusResponse,
    TwoFactorCodeRequest,
    TwoFactorEnabledResponse,
    TwoFactorSetupResponse,
    TwoFactorStatusResponse,
    TwoFactorVerifyResponse,
    build_two_factor_router,
)

__all__ = [
    "TwoFactorAdvisoryStatusResponse",
    "TwoFactorCachedStatusResponse",
    "TwoFactorCodeRequest",
    "TwoFactorEnabledResponse",
    "TwoFactorSetupResponse",
    "TwoFactorStatusResponse",
    "TwoFactorVerifyResponse",
    "build_two_factor_router",
]
