from __future__ import annotations

from kivilcim.contexts.identity.application.ports.current_user import (
    CurrentUser,
    CurrentUserPrincipal,
    CurrentUserUnauthorizedError,
)
from kivilcim.contexts.identity.application.ports.jwt_codec import JwtCodec, JwtDecodeError


class JwtCookieCurrentUser(CurrentUser):
    """
    JwtCookieCurrentUser — `CurrentUser` adapter resolving principal from session JWT cookie.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/current_user.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/jwt/hs256_jwt_codec.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/deps/current_user.py
    """

    def __init__(self, *, jwt_codec: JwtCodec) -> None:
        if jwt_codec is None:  # type: ignore[truthy-bool]
            raise ValueError("JwtCookieCurrentUser requires jwt_codec")
        self._jwt_codec = jwt_codec

    def require(self, *, token: str | None) -> CurrentUserPrincipal:
        """
        Decode session token and return authenticated principal.

        Args:
            token: Session JWT from cookie; may be missing.
        Returns:
            CurrentUserPrincipal: Principal with user id, role, and optional email.
        Assumptions:
            Role comes from the signed token, never from request parameters.
        Raises:
            CurrentUserUnauthorizedError: If token is missing, invalid, or expired.
        Side Effects:
            None.
        """
        if token is None or not token.strip():
            raise CurrentUserUnauthorizedError(
                code="missing_token",
                message="Authentication cookie is missing",
            )
        try:
            claims = self._jwt_codec.decode(token=token)
        except JwtDecodeError as error:
            raise CurrentUserUnauthorizedError(code=error.code, message=error.message) from error
        return CurrentUserPrincipal(
            user_id=claims.user_id,
            role=claims.role,
            email=claims.email,
        )
