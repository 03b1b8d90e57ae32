from __future__ import annotations

from typing import Iterable

from kivilcim.contexts.identity.application.ports.privileged_role_policy import (
    PrivilegedRolePolicy,
)
from kivilcim.shared_kernel.primitives import UserRole

DEFAULT_PRIVILEGED_ROLES: tuple[UserRole, ...] = (UserRole.ADMIN, UserRole.SUPERADMIN)


class StaticPrivilegedRolePolicy(PrivilegedRolePolicy):
    """
    StaticPrivilegedRolePolicy — fixed set of privileged roles resolved at startup.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/privileged_role_policy.py
      - src/kivilcim/platform/config/identity_two_factor.py
      - apps/api/wiring/modules/identity.py
    """

    def __init__(self, *, privileged_roles: Iterable[UserRole] = DEFAULT_PRIVILEGED_ROLES) -> None:
        """
        Initialize policy with privileged role set.

        Args:
            privileged_roles: Roles subject to the trust gate.
        Returns:
            None.
        Assumptions:
            Empty set is allowed and turns the gate into a no-op.
        Raises:
            ValueError: If an element is not a `UserRole`.
        Side Effects:
            None.
        """
        roles = frozenset(privileged_roles)
        for role in roles:
            if not isinstance(role, UserRole):
                raise ValueError(f"StaticPrivilegedRolePolicy got non-role value: {role!r}")
        self._privileged_roles = roles

    @property
    def privileged_roles(self) -> frozenset[UserRole]:
        return self._privileged_roles

    def is_privileged(self, *, role: UserRole) -> bool:
        return role in self._privileged_roles
