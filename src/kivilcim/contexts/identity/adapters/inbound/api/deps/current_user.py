from fastapi import HTTPException
from starlette.requests import Request

from kivilcim.contexts.identity.application.ports.current_user import (
    CurrentUser,
    CurrentUserPrincipal,
    CurrentUserUnauthorizedError,
)


class RequireCurrentUserDependency:
    """
    RequireCurrentUserDependency — FastAPI dependency resolving the authenticated principal.

    Every `/2fa/*` route and `RequireTwoFactorTrustedDependency` start here; the resolved
    role decides whether the trust gate applies.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/current_user.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/current_user/
        jwt_cookie_current_user.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/routes/two_factor.py
    """

    def __init__(self, *, current_user: CurrentUser, cookie_name: str) -> None:
        """
        Initialize dependency with current-user port and session cookie key.

        Args:
            current_user: Port resolving principal from session JWT.
            cookie_name: Cookie key where session JWT is stored.
        Returns:
            None.
        Assumptions:
            Session cookie is written by the surrounding identity system.
        Raises:
            ValueError: If dependencies are invalid.
        Side Effects:
            None.
        """
        normalized_cookie_name = cookie_name.strip()
        if current_user is None:  # type: ignore[truthy-bool]
            raise ValueError("RequireCurrentUserDependency requires current_user")
        if not normalized_cookie_name:
            raise ValueError("RequireCurrentUserDependency requires non-empty cookie_name")

        self._current_user = current_user
        self._cookie_name = normalized_cookie_name

    def __call__(self, request: Request) -> CurrentUserPrincipal:
        """
        Resolve authenticated principal from request cookies.

        Args:
            request: FastAPI HTTP request.
        Returns:
            CurrentUserPrincipal: User id, role, and optional email from the session JWT.
        Assumptions:
            The 2FA trust cache cookie is not read here.
        Raises:
            HTTPException: 401 with deterministic payload for unauthorized requests.
        Side Effects:
            None.
        """
        token = request.cookies.get(self._cookie_name)
        try:
            return self._current_user.require(token=token)
        except CurrentUserUnauthorizedError as error:
            raise HTTPException(
                status_code=401,
                detail={
                    "error": error.code,
                    "message": error.message,
                },
            ) from error
