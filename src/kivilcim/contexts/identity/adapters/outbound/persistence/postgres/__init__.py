from .gateway import IdentityPostgresGateway, PsycopgIdentityPostgresGateway
from .two_factor_repository import PostgresIdentityTwoFactorRepository

__all__ = [
    "IdentityPostgresGateway",
    "PostgresIdentityTwoFactorRepository",
    "PsycopgIdentityPostgresGateway",
]
