from .modules import (
    IdentityApiModule,
    IdentityRuntimeSettings,
    build_identity_api_module,
    build_identity_router,
)

__all__ = [
    "IdentityApiModule",
    "IdentityRuntimeSettings",
    "build_identity_api_module",
    "build_identity_router",
]
