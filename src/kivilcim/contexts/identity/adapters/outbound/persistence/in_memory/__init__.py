from .two_factor_repository import InMemoryIdentityTwoFactorRepository

__all__ = [
    "InMemoryIdentityTwoFactorRepository",
]
