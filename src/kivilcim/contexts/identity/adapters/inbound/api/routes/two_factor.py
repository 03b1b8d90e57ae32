from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from starlette.requests import Request

from kivilcim.contexts.identity.adapters.inbound.api.deps.current_user import (
    RequireCurrentUserDependency,
)
from kivilcim.contexts.identity.adapters.inbound.api.deps.trust_cache_cookie import (
    TrustCacheCookie,
)
from kivilcim.contexts.identity.adapters.inbound.api.deps.two_factor_trusted import (
    TwoFactorTrustHttpError,
)
from kivilcim.contexts.identity.application.ports.current_user import CurrentUserPrincipal
from kivilcim.contexts.identity.application.ports.two_factor_trust_gate import (
    TwoFactorGateError,
)
from kivilcim.contexts.identity.application.use_cases import (
    DisableTwoFactorTotpUseCase,
    EnableTwoFactorTotpUseCase,
    EndTwoFactorSessionUseCase,
    GetTwoFactorStatusUseCase,
    SetupTwoFactorTotpUseCase,
    TwoFactorOperationError,
    VerifyTwoFactorTotpUseCase,
)
from kivilcim.contexts.identity.domain.value_objects import AdvisoryTrustView, TrustSnapshot


class TwoFactorCodeRequest(BaseModel):
    """
    TwoFactorCodeRequest — request payload for `/2fa/enable`, `/2fa/verify`, `/2fa/disable`.
    """

    code: str


class TwoFactorSetupResponse(BaseModel):
    """
    TwoFactorSetupResponse — provisioning payload for `POST /2fa/setup`.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/use_cases/setup_two_factor_totp.py
      - apps/api/routes/identity.py
    """

    secret_base32: str
    provisioning_uri: str


class TwoFactorEnabledResponse(BaseModel):
    """
    TwoFactorEnabledResponse — `{enabled}` payload for `/2fa/enable` and `/2fa/disable`.
    """

    enabled: bool


class TwoFactorVerifyResponse(BaseModel):
    """
    TwoFactorVerifyResponse — payload for `POST /2fa/verify`.
    """

    verified: bool
    last_verification_at: datetime | None


class TwoFactorStatusResponse(BaseModel):
    """
    TwoFactorStatusResponse — authoritative trust snapshot payload.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/domain/value_objects/two_factor_trust.py
      - src/kivilcim/contexts/identity/application/use_cases/get_two_factor_status.py
    """

    state: str
    required: bool
    enabled: bool
    verified: bool
    requires_verification: bool
    session_timeout_mins: int
    last_verification_at: datetime | None

    @classmethod
    def from_snapshot(cls, snapshot: TrustSnapshot) -> TwoFactorStatusResponse:
        return cls(
            state=snapshot.state.value,
            required=snapshot.required,
            enabled=snapshot.enabled,
            verified=snapshot.verified,
            requires_verification=snapshot.requires_verification,
            session_timeout_mins=snapshot.session_timeout_mins,
            last_verification_at=snapshot.last_verification_at,
        )


class TwoFactorAdvisoryStatusResponse(TwoFactorStatusResponse):
    """
    TwoFactorAdvisoryStatusResponse — cached advisory view with cache lifetime bounds.
    """

    issued_at: datetime
    expires_at: datetime

    @classmethod
    def from_view(cls, view: AdvisoryTrustView) -> TwoFactorAdvisoryStatusResponse:
        return cls(
            state=view.state.value,
            required=view.required,
            enabled=view.enabled,
            verified=view.verified,
            requires_verification=view.requires_verification,
            session_timeout_mins=view.session_timeout_mins,
            last_verification_at=view.last_verification_at,
            issued_at=view.issued_at,
            expires_at=view.expires_at,
        )


class TwoFactorCachedStatusResponse(BaseModel):
    """
    TwoFactorCachedStatusResponse — `{cached}` envelope; `null` means "unknown".
    """

    cached: TwoFactorAdvisoryStatusResponse | None


def build_two_factor_router(
    *,
    setup_use_case: SetupTwoFactorTotpUseCase,
    enable_use_case: EnableTwoFactorTotpUseCase,
    verify_use_case: VerifyTwoFactorTotpUseCase,
    disable_use_case: DisableTwoFactorTotpUseCase,
    status_use_case: GetTwoFactorStatusUseCase,
    end_session_use_case: EndTwoFactorSessionUseCase,
    current_user_dependency: RequireCurrentUserDependency,
    trust_cache_cookie: TrustCacheCookie,
) -> APIRouter:
    """
    Build router exposing the two-factor trust engine endpoints.

    Args:
        setup_use_case: Secret provisioning (first setup and rotation).
        enable_use_case: Pending secret confirmation.
        verify_use_case: Trust window refresh.
        disable_use_case: 2FA removal.
        status_use_case: Authoritative snapshot reader.
        end_session_use_case: Trust window reset.
        current_user_dependency: Auth dependency for current user principal.
        trust_cache_cookie: Client trust cache writer/reader.
    Returns:
        APIRouter: Router with `/2fa/*` endpoints.
    Assumptions:
        Every successful call rewrites the trust cache cookie in the same response.
        App registers `register_two_factor_trust_exception_handler` for flat 403 payloads.
    Raises:
        ValueError: If required dependencies are missing.
    Side Effects:
        None.
    """
    if setup_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_two_factor_router requires setup_use_case")
    if enable_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_two_factor_router requires enable_use_case")
    if verify_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_two_factor_router requires verify_use_case")
    if disable_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_two_factor_router requires disable_use_case")
    if status_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_two_factor_router requires status_use_case")
    if end_session_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_two_factor_router requires end_session_use_case")
    if current_user_dependency is None:  # type: ignore[truthy-bool]
        raise ValueError("build_two_factor_router requires current_user_dependency")
    if trust_cache_cookie is None:  # type: ignore[truthy-bool]
        raise ValueError("build_two_factor_router requires trust_cache_cookie")

    router = APIRouter(tags=["identity"])

    def _refresh_cache(*, response: Response, principal: CurrentUserPrincipal) -> TrustSnapshot:
        snapshot = status_use_case.status(user_id=principal.user_id, role=principal.role)
        trust_cache_cookie.write(response=response, snapshot=snapshot)
        return snapshot

    @router.post("/2fa/setup", response_model=TwoFactorSetupResponse)
    def post_two_factor_setup(
        response: Response,
        principal: CurrentUserPrincipal = Depends(current_user_dependency),
    ) -> TwoFactorSetupResponse:
        """
        Stage a pending secret and return provisioning payload.

        Args:
            response: Outgoing response used for the trust cache cookie.
            principal: Authenticated current user.
        Returns:
            TwoFactorSetupResponse: Base32 secret and otpauth URI.
        Assumptions:
            Rotation requires fresh verification against the current secret.
        Raises:
            TwoFactorTrustHttpError: Flat 403 when rotation lacks trust.
            HTTPException: 409 on concurrent update.
        Side Effects:
            Persists encrypted pending secret and refreshes trust cache cookie.
        """
        try:
            result = setup_use_case.setup(
                user_id=principal.user_id,
                account_label=principal.account_label,
            )
        except TwoFactorGateError as error:
            raise TwoFactorTrustHttpError(code=error.code, message=error.message) from error
        except TwoFactorOperationError as error:
            raise HTTPException(
                status_code=error.status_code,
                detail=error.payload(),
            ) from error
        _refresh_cache(response=response, principal=principal)
        return TwoFactorSetupResponse(
            secret_base32=result.secret_base32,
            provisioning_uri=result.provisioning_uri,
        )

    @router.post("/2fa/enable", response_model=TwoFactorEnabledResponse)
    def post_two_factor_enable(
        request: TwoFactorCodeRequest,
        response: Response,
        principal: CurrentUserPrincipal = Depends(current_user_dependency),
    ) -> TwoFactorEnabledResponse:
        """
        Confirm pending secret with a TOTP code and activate it.

        Args:
            request: Submitted code payload.
            response: Outgoing response used for the trust cache cookie.
            principal: Authenticated current user.
        Returns:
            TwoFactorEnabledResponse: `{"enabled": true}`.
        Assumptions:
            None.
        Raises:
            HTTPException: 422 for malformed/invalid code, 409 without pending secret.
        Side Effects:
            Activates pending secret, opens trust window, refreshes trust cache cookie.
        """
        try:
            result = enable_use_case.enable(user_id=principal.user_id, code=request.code)
        except TwoFactorOperationError as error:
            raise HTTPException(
                status_code=error.status_code,
                detail=error.payload(),
            ) from error
        _refresh_cache(response=response, principal=principal)
        return TwoFactorEnabledResponse(enabled=result.enabled)

    @router.post("/2fa/verify", response_model=TwoFactorVerifyResponse)
    def post_two_factor_verify(
        request: TwoFactorCodeRequest,
        response: Response,
        principal: CurrentUserPrincipal = Depends(current_user_dependency),
    ) -> TwoFactorVerifyResponse:
        """
        Verify TOTP code against the active secret and refresh the trust window.

        Args:
            request: Submitted code payload.
            response: Outgoing response used for the trust cache cookie.
            principal: Authenticated current user.
        Returns:
            TwoFactorVerifyResponse: Verification marker and timestamp.
        Assumptions:
            Users without enabled 2FA get `verified=true` with no timestamp.
        Raises:
            HTTPException: 422 for malformed/invalid code, 409 on concurrent update.
        Side Effects:
            Updates stored verification state and refreshes trust cache cookie.
        """
        try:
            result = verify_use_case.verify(user_id=principal.user_id, code=request.code)
        except TwoFactorOperationError as error:
            raise HTTPException(
                status_code=error.status_code,
                detail=error.payload(),
            ) from error
        _refresh_cache(response=response, principal=principal)
        return TwoFactorVerifyResponse(
            verified=result.verified,
            last_verification_at=result.last_verification_at,
        )

    @router.post("/2fa/disable", response_model=TwoFactorEnabledResponse)
    def post_two_factor_disable(
        request: TwoFactorCodeRequest,
        response: Response,
        principal: CurrentUserPrincipal = Depends(current_user_dependency),
    ) -> TwoFactorEnabledResponse:
        try:
            result = disable_use_case.disable(
                user_id=principal.user_id,
                role=principal.role,
                code=request.code,
            )
        except TwoFactorOperationError as error:
            raise HTTPException(
                status_code=error.status_code,
                detail=error.payload(),
            ) from error
        _refresh_cache(response=response, principal=principal)
        return TwoFactorEnabledResponse(enabled=result.enabled)

    @router.get("/2fa/status", response_model=TwoFactorStatusResponse)
    def get_two_factor_status(
        response: Response,
        principal: CurrentUserPrincipal = Depends(current_user_dependency),
    ) -> TwoFactorStatusResponse:
        snapshot = _refresh_cache(response=response, principal=principal)
        return TwoFactorStatusResponse.from_snapshot(snapshot)

    @router.get("/2fa/status/cached", response_model=TwoFactorCachedStatusResponse)
    def get_two_factor_cached_status(
        request: Request,
        _principal: CurrentUserPrincipal = Depends(current_user_dependency),
    ) -> TwoFactorCachedStatusResponse:
        """
        Return advisory view decoded from the trust cache cookie without a store read.

        Args:
            request: Incoming request carrying the trust cache cookie.
            _principal: Authenticated current user (authentication only).
        Returns:
            TwoFactorCachedStatusResponse: Advisory view or `{"cached": null}`.
        Assumptions:
            Result is for UI hints only; privileged routes never consult it.
        Raises:
            None.
        Side Effects:
            None.
        """
        view = trust_cache_cookie.read(request=request)
        if view is None:
            return TwoFactorCachedStatusResponse(cached=None)
        return TwoFactorCachedStatusResponse(cached=TwoFactorAdvisoryStatusResponse.from_view(view))

    @router.post("/2fa/session/end", response_model=TwoFactorStatusResponse)
    def post_two_factor_session_end(
        response: Response,
        principal: CurrentUserPrincipal = Depends(current_user_dependency),
    ) -> TwoFactorStatusResponse:
        try:
            end_session_use_case.end_session(user_id=principal.user_id)
        except TwoFactorOperationError as error:
            raise HTTPException(
                status_code=error.status_code,
                detail=error.payload(),
            ) from error
        snapshot = _refresh_cache(response=response, principal=principal)
        return TwoFactorStatusResponse.from_snapshot(snapshot)

    return router
