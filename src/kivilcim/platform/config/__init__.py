from .identity_two_factor import (
    IdentityTwoFactorConfig,
    load_identity_two_factor_config,
    parse_bool_literal,
    resolve_kivilcim_env,
)

__all__ = [
    "IdentityTwoFactorConfig",
    "load_identity_two_factor_config",
    "parse_bool_literal",
    "resolve_kivilcim_env",
]
