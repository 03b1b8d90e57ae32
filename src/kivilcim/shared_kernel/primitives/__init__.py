"""
Shared Kernel primitives.

This package re-exports the primitives shared by all bounded contexts:

    from kivilcim.shared_kernel.primitives import UserId, UserRole
"""

from .user_id import UserId
from .user_role import UserRole

__all__ = [
    "UserId",
    "UserRole",
]
