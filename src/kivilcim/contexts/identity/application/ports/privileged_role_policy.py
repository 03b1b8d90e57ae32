from __future__ import annotations

from typing import Protocol

from kivilcim.shared_kernel.primitives import UserRole


class PrivilegedRolePolicy(Protocol):
    """
    PrivilegedRolePolicy — порт решения, подпадает ли роль под 2FA trust gate.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/outbound/policy/static_privileged_role_policy.py
      - src/kivilcim/contexts/identity/adapters/outbound/policy/two_factor_trust_gate.py
      - src/kivilcim/platform/config/identity_two_factor.py
    """

    def is_privileged(self, *, role: UserRole) -> bool:
        """
        Return whether role is an administrative tier guarded by the trust gate.

        Args:
            role: Closed user role value.
        Returns:
            bool: `True` for privileged roles.
        Assumptions:
            Policy is owned by the surrounding identity system and stable per process.
        Raises:
            None.
        Side Effects:
            None.
        """
        ...
