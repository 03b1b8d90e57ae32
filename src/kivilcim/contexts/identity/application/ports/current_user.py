from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from kivilcim.shared_kernel.primitives import UserId, UserRole


@dataclass(frozen=True, slots=True)
class CurrentUserPrincipal:
    """
    CurrentUserPrincipal — стабильный user context для protected API endpoints.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/inbound/api/deps/current_user.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/current_user/
        jwt_cookie_current_user.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/routes/two_factor.py
    """

    user_id: UserId
    role: UserRole
    email: str | None = None

    @property
    def account_label(self) -> str:
        """
        Return label shown in authenticator apps for this account.

        Args:
            None.
        Returns:
            str: Email when known, otherwise the user id.
        Assumptions:
            Email claim is optional in session tokens.
        Raises:
            None.
        Side Effects:
            None.
        """
        if self.email:
            return self.email
        return str(self.user_id)


class CurrentUserUnauthorizedError(ValueError):
    """
    CurrentUserUnauthorizedError — детерминированная ошибка авторизации CurrentUser.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/inbound/api/deps/current_user.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/current_user/
        jwt_cookie_current_user.py
    """

    def __init__(self, *, code: str, message: str) -> None:
        """
        Initialize authorization error with stable code and message.

        Args:
            code: Machine-readable deterministic error code.
            message: Human-readable deterministic description.
        Returns:
            None.
        Assumptions:
            Error code is consumed by API layer in 401 payload.
        Raises:
            None.
        Side Effects:
            None.
        """
        super().__init__(message)
        self.code = code
        self.message = message


class CurrentUser(Protocol):
    """
    CurrentUser — порт извлечения `CurrentUserPrincipal` из session JWT cookie.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/inbound/api/deps/current_user.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/current_user/
        jwt_cookie_current_user.py
    """

    def require(self, *, token: str | None) -> CurrentUserPrincipal:
        """
        Resolve authenticated user principal or raise unauthorized error.

        Args:
            token: Session JWT from HttpOnly cookie; may be missing.
        Returns:
            CurrentUserPrincipal: Authenticated user context.
        Assumptions:
            Token is issued by the surrounding identity system with the shared HS256 key.
        Raises:
            CurrentUserUnauthorizedError: If token is missing, invalid, or expired.
        Side Effects:
            None.
        """
        ...
