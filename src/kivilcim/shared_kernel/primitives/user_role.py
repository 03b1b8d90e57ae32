from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """
    UserRole — закрытый перечень ролей пользователя платформы.

    Privilege is not encoded here; the identity collaborator decides which roles are
    privileged through `PrivilegedRolePolicy`.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/privileged_role_policy.py
      - src/kivilcim/contexts/identity/adapters/outbound/policy/static_privileged_role_policy.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/jwt/hs256_jwt_codec.py
    """

    USER = "USER"
    MEMBER = "MEMBER"
    REPRESENTATIVE = "REPRESENTATIVE"
    MODERATOR = "MODERATOR"
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"

    @classmethod
    def from_string(cls, raw_value: str) -> UserRole:
        """
        Parse role from case-insensitive literal.

        Args:
            raw_value: Raw role literal (token claim, config entry).
        Returns:
            UserRole: Parsed enum member.
        Assumptions:
            Literals are compared after trimming and upper-casing.
        Raises:
            ValueError: If literal does not name a known role.
        Side Effects:
            None.
        """
        normalized = raw_value.strip().upper()
        try:
            return cls(normalized)
        except ValueError as error:
            allowed = sorted(member.value for member in cls)
            raise ValueError(f"UserRole must be one of {allowed}, got {raw_value!r}") from error

    def __str__(self) -> str:
        return self.value
