from .current_user import RequireCurrentUserDependency
from .trust_cache_cookie import CookieSameSite, TrustCacheCookie
from .two_factor_trusted import (
    RequireTwoFactorTrustedDependency,
    TwoFactorTrustHttpError,
    register_two_factor_trust_exception_handler,
    two_factor_trust_http_error_handler,
)

__all__ = [
    "CookieSameSite",
    "RequireCurrentUserDependency",
    "RequireTwoFactorTrustedDependency",
    "TrustCacheCookie",
    "TwoFactorTrustHttpError",
    "register_two_factor_trust_exception_handler",
    "two_factor_trust_http_error_handler",
]
