from .api import (
    RequireCurrentUserDependency,
    RequireTwoFactorTrustedDependency,
    TrustCacheCookie,
    build_two_factor_router,
    register_two_factor_trust_exception_handler,
)

__all__ = [
    "RequireCurrentUserDependency",
    "RequireTwoFactorTrustedDependency",
    "TrustCacheCookie",
    "build_two_factor_router",
    "register_two_factor_trust_exception_handler",
]
