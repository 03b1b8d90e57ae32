from typing import cast

from fastapi import FastAPI
from starlette.requests import Request
from starlette.responses import JSONResponse

from kivilcim.contexts.identity.adapters.inbound.api.deps.current_user import (
    RequireCurrentUserDependency,
)
from kivilcim.contexts.identity.application.ports.current_user import CurrentUserPrincipal
from kivilcim.contexts.identity.application.ports.two_factor_trust_gate import (
    TwoFactorGateError,
    TwoFactorTrustGate,
)


class TwoFactorTrustHttpError(PermissionError):
    """
    TwoFactorTrustHttpError — HTTP-facing 403 error raised when the trust gate denies access.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/two_factor_trust_gate.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/deps/two_factor_trusted.py
      - apps/api/main/app.py
    """

    def __init__(self, *, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def payload(self) -> dict[str, str]:
        """
        Build 403 payload with stable key order.

        Args:
            None.
        Returns:
            dict[str, str]: `{"error": "...", "message": "..."}` payload.
        Assumptions:
            Clients branch on `error` to show either setup or verification UI.
        Raises:
            None.
        Side Effects:
            None.
        """
        return {
            "error": self.code,
            "message": self.message,
        }


def two_factor_trust_http_error_handler(
    _request: Request,
    error: Exception,
) -> JSONResponse:
    """
    Map `TwoFactorTrustHttpError` to flat 403 JSON payload.

    Args:
        _request: Starlette request object (unused).
        error: Trust gate HTTP error.
    Returns:
        JSONResponse: HTTP 403 with `{"error", "message"}` payload.
    Assumptions:
        None.
    Raises:
        None.
    Side Effects:
        None.
    """
    typed_error = cast(TwoFactorTrustHttpError, error)
    return JSONResponse(
        status_code=403,
        content=typed_error.payload(),
    )


def register_two_factor_trust_exception_handler(*, app: FastAPI) -> None:
    """
    Register trust gate exception handler on FastAPI app instance.

    Args:
        app: FastAPI application where the handler should be installed.
    Returns:
        None.
    Assumptions:
        Called once during app startup.
    Raises:
        ValueError: If app reference is missing.
    Side Effects:
        Updates app-level exception handler registry.
    """
    if app is None:  # type: ignore[truthy-bool]
        raise ValueError("register_two_factor_trust_exception_handler requires app")
    app.add_exception_handler(
        TwoFactorTrustHttpError,
        two_factor_trust_http_error_handler,
    )


class RequireTwoFactorTrustedDependency:
    """
    RequireTwoFactorTrustedDependency — reusable dependency guarding privileged routes.

    Collaborator routers (articles, events, backups, ...) declare
    `Depends(two_factor_trusted_dependency)` on every privileged endpoint.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/outbound/policy/two_factor_trust_gate.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/deps/current_user.py
      - apps/api/wiring/modules/identity.py
    """

    def __init__(
        self,
        *,
        current_user_dependency: RequireCurrentUserDependency,
        trust_gate: TwoFactorTrustGate,
    ) -> None:
        """
        Initialize dependency with principal resolver and trust gate.

        Args:
            current_user_dependency: Dependency resolving authenticated current user.
            trust_gate: Single trust evaluation point.
        Returns:
            None.
        Assumptions:
            Client trust cache cookie is never consulted here.
        Raises:
            ValueError: If dependency arguments are missing.
        Side Effects:
            None.
        """
        if current_user_dependency is None:  # type: ignore[truthy-bool]
            raise ValueError("RequireTwoFactorTrustedDependency requires current_user_dependency")
        if trust_gate is None:  # type: ignore[truthy-bool]
            raise ValueError("RequireTwoFactorTrustedDependency requires trust_gate")
        self._current_user_dependency = current_user_dependency
        self._trust_gate = trust_gate

    def __call__(self, request: Request) -> CurrentUserPrincipal:
        """
        Resolve principal and enforce a fresh trust window for privileged roles.

        Args:
            request: FastAPI request carrying the session cookie.
        Returns:
            CurrentUserPrincipal: Principal allowed to perform the privileged action.
        Assumptions:
            Non-privileged roles pass without a store-backed trust requirement.
        Raises:
            TwoFactorTrustHttpError: If the gate reports setup or verification required.
            HTTPException: 401 errors propagated from current-user dependency.
        Side Effects:
            Reads one credential snapshot.
        """
        principal = self._current_user_dependency(request)
        try:
            self._trust_gate.require_trusted(user_id=principal.user_id, role=principal.role)
        except TwoFactorGateError as error:
            raise TwoFactorTrustHttpError(code=error.code, message=error.message) from error
        return principal
