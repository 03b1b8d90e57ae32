from .deps import (
    RequireCurrentUserDependency,
    RequireTwoFactorTrustedDependency,
    TrustCacheCookie,
    TwoFactorTrustHttpError,
    register_two_factor_trust_exception_handler,
    two_factor_trust_http_error_handler,
)
from .routes import (
    TwoFactorCachedStatusResponse,
    TwoFactorCodeRequest,
    TwoFactorEnabledResponse,
    TwoFactorSetupResponse,
    TwoFactorStatusResponse,
    TwoFactorVerifyResponse,
    build_two_factor_router,
)

__all__ = [
    "RequireCurrentUserDependency",
    "RequireTwoFactorTrustedDependency",
    "TrustCacheCookie",
    "TwoFactorCachedStatusResponse",
    "TwoFactorCodeRequest",
    "TwoFactorEnabledResponse",
    "TwoFactorSetupResponse",
    "TwoFactorStatusResponse",
    "TwoFactorVerifyResponse",
    "TwoFactorTrustHttpError",
    "build_two_factor_router",
    "register_two_factor_trust_exception_handler",
    "two_factor_trust_http_error_handler",
]
