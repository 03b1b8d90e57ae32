from .in_memory import InMemoryIdentityTwoFactorRepository
from .postgres import (
    IdentityPostgresGateway,
    PostgresIdentityTwoFactorRepository,
    PsycopgIdentityPostgresGateway,
)

__all__ = [
    "IdentityPostgresGateway",
    "InMemoryIdentityTwoFactorRepository",
    "PostgresIdentityTwoFactorRepository",
    "PsycopgIdentityPostgresGateway",
]
