"""
Identity API routes.

Docs:
  - docs/architecture/identity/identity-2fa-trust-engine-v1.md
"""

from __future__ import annotations

from fastapi import APIRouter

from kivilcim.contexts.identity.adapters.inbound.api.deps import (
    RequireCurrentUserDependency,
    TrustCacheCookie,
)
from kivilcim.contexts.identity.adapters.inbound.api.routes import build_two_factor_router
from kivilcim.contexts.identity.application.use_cases import (
    DisableTwoFactorTotpUseCase,
    EnableTwoFactorTotpUseCase,
    EndTwoFactorSessionUseCase,
    GetTwoFactorStatusUseCase,
    SetupTwoFactorTotpUseCase,
    VerifyTwoFactorTotpUseCase,
)


def build_identity_router(
    *,
    two_factor_setup: SetupTwoFactorTotpUseCase,
    two_factor_enable: EnableTwoFactorTotpUseCase,
    two_factor_verify: VerifyTwoFactorTotpUseCase,
    two_factor_disable: DisableTwoFactorTotpUseCase,
    two_factor_status: GetTwoFactorStatusUseCase,
    two_factor_end_session: EndTwoFactorSessionUseCase,
    current_user_dependency: RequireCurrentUserDependency,
    trust_cache_cookie: TrustCacheCookie,
) -> APIRouter:
    """
    Build identity router facade for FastAPI app composition root.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/inbound/api/routes/two_factor.py
      - apps/api/wiring/modules/identity.py

    Args:
        two_factor_setup: 2FA setup/rotation use-case.
        two_factor_enable: 2FA enable use-case.
        two_factor_verify: 2FA verify use-case.
        two_factor_disable: 2FA disable use-case.
        two_factor_status: Authoritative trust status use-case.
        two_factor_end_session: Trust window reset use-case.
        current_user_dependency: FastAPI dependency resolving authenticated principal.
        trust_cache_cookie: Client trust cache cookie helper.
    Returns:
        APIRouter: Configured identity router.
    Assumptions:
        Session login routes are owned by the surrounding identity system.
    Raises:
        ValueError: If one of required dependencies is missing.
    Side Effects:
        None.
    """
    router = APIRouter()
    router.include_router(
        build_two_factor_router(
            setup_use_case=two_factor_setup,
            enable_use_case=two_factor_enable,
            verify_use_case=two_factor_verify,
            disable_use_case=two_factor_disable,
            status_use_case=two_factor_status,
            end_session_use_case=two_factor_end_session,
            current_user_dependency=current_user_dependency,
            trust_cache_cookie=trust_cache_cookie,
        )
    )
    return router
