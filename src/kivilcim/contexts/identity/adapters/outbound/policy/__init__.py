from .static_privileged_role_policy import DEFAULT_PRIVILEGED_ROLES, StaticPrivilegedRolePolicy
from .two_factor_trust_gate import RepositoryTwoFactorTrustGate

__all__ = [
    "DEFAULT_PRIVILEGED_ROLES",
    "RepositoryTwoFactorTrustGate",
    "StaticPrivilegedRolePolicy",
]
