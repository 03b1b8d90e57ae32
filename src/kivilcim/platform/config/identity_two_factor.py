"""
Runtime config loader for identity two-factor trust engine.

Docs: docs/architecture/identity/identity-2fa-trust-engine-v1.md
Related: apps.api.wiring.modules.identity,
  kivilcim.contexts.identity.adapters.outbound.policy.two_factor_trust_gate
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from kivilcim.shared_kernel.primitives import UserRole

_ENV_NAME_KEY = "KIVILCIM_ENV"
_CONFIG_PATH_KEY = "KIVILCIM_IDENTITY_CONFIG"
_ALLOWED_ENVS = ("dev", "prod", "test")
_ALLOWED_TOTP_BACKENDS = ("builtin", "pyotp")

_SESSION_TIMEOUT_ENV_KEY = "IDENTITY_2FA_SESSION_TIMEOUT_MINUTES"
_ISSUER_ENV_KEY = "IDENTITY_2FA_ISSUER"
_TOTP_BACKEND_ENV_KEY = "IDENTITY_2FA_TOTP_BACKEND"
_VALID_WINDOW_ENV_KEY = "IDENTITY_2FA_VALID_WINDOW"
_PRIVILEGED_ROLES_ENV_KEY = "IDENTITY_2FA_PRIVILEGED_ROLES"
_ALLOW_PRIVILEGED_DISABLE_ENV_KEY = "IDENTITY_2FA_ALLOW_PRIVILEGED_DISABLE"
_REJECT_REPLAYED_CODES_ENV_KEY = "IDENTITY_2FA_REJECT_REPLAYED_CODES"
_TRUST_COOKIE_NAME_ENV_KEY = "IDENTITY_2FA_TRUST_COOKIE_NAME"

_DEFAULT_SESSION_TIMEOUT_MINUTES = 180
_DEFAULT_ISSUER = "Kivilcim"
_DEFAULT_TOTP_BACKEND = "builtin"
_DEFAULT_VALID_WINDOW = 1
_DEFAULT_PRIVILEGED_ROLES = (UserRole.ADMIN, UserRole.SUPERADMIN)
_DEFAULT_TRUST_COOKIE_NAME = "kivilcim_2fa_trust"

_TRUE_LITERALS = ("1", "true", "yes", "on")
_FALSE_LITERALS = ("0", "false", "no", "off")
_SECTION_PATH = "identity.two_factor"


@dataclass(frozen=True, slots=True)
class IdentityTwoFactorConfig:
    """
    Immutable runtime config for the two-factor trust engine.

    Docs: docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related: apps.api.wiring.modules.identity,
      kivilcim.contexts.identity.application.use_cases.setup_two_factor_totp
    """

    session_timeout_minutes: int = _DEFAULT_SESSION_TIMEOUT_MINUTES
    issuer: str = _DEFAULT_ISSUER
    totp_backend: str = _DEFAULT_TOTP_BACKEND
    valid_window: int = _DEFAULT_VALID_WINDOW
    privileged_roles: tuple[UserRole, ...] = _DEFAULT_PRIVILEGED_ROLES
    allow_privileged_disable: bool = True
    reject_replayed_codes: bool = False
    trust_cookie_name: str = _DEFAULT_TRUST_COOKIE_NAME

    def __post_init__(self) -> None:
        """
        Validate two-factor runtime config invariants.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Privileged roles are de-duplicated preserving declaration order.
        Raises:
            ValueError: If any value violates required bounds.
        Side Effects:
            Normalizes issuer, backend, cookie name, and privileged roles tuple.
        """
        if self.session_timeout_minutes <= 0:
            raise ValueError(
                "session_timeout_minutes must be > 0, "
                f"got {self.session_timeout_minutes}"
            )
        if self.valid_window < 0:
            raise ValueError(f"valid_window must be >= 0, got {self.valid_window}")

        issuer = self.issuer.strip()
        if not issuer:
            raise ValueError("issuer must be non-empty")
        if ":" in issuer:
            raise ValueError("issuer must not contain ':'")
        object.__setattr__(self, "issuer", issuer)

        backend = self.totp_backend.strip().lower()
        if backend not in _ALLOWED_TOTP_BACKENDS:
            raise ValueError(
                f"totp_backend must be one of {_ALLOWED_TOTP_BACKENDS}, got {self.totp_backend!r}"
            )
        object.__setattr__(self, "totp_backend", backend)

        cookie_name = self.trust_cookie_name.strip()
        if not cookie_name:
            raise ValueError("trust_cookie_name must be non-empty")
        object.__setattr__(self, "trust_cookie_name", cookie_name)

        roles = tuple(dict.fromkeys(self.privileged_roles))
        if not roles:
            raise ValueError("privileged_roles must contain at least one role")
        object.__setattr__(self, "privileged_roles", roles)


def load_identity_two_factor_config(
    *,
    environ: Mapping[str, str],
) -> IdentityTwoFactorConfig:
    """
    Load two-factor runtime config from optional YAML and env overrides.

    Args:
        environ: Environment mapping used to resolve env and override values.
    Returns:
        IdentityTwoFactorConfig: Validated runtime settings.
    Assumptions:
        Optional `identity.two_factor` section lives in identity YAML.
        Env-derived YAML path may be absent; explicit override path must exist.
    Raises:
        FileNotFoundError: If explicit `KIVILCIM_IDENTITY_CONFIG` path does not exist.
        ValueError: If YAML or environment values are invalid.
    Side Effects:
        Reads at most one YAML file from disk.
    """
    config_path, explicit = _resolve_identity_config_path(environ=environ)
    file_payload = _load_optional_two_factor_payload(path=config_path, required=explicit)

    return IdentityTwoFactorConfig(
        session_timeout_minutes=_resolve_int_setting(
            environ=environ,
            env_key=_SESSION_TIMEOUT_ENV_KEY,
            payload=file_payload,
            payload_key="session_timeout_minutes",
            default=_DEFAULT_SESSION_TIMEOUT_MINUTES,
            minimum=1,
        ),
        issuer=_resolve_str_setting(
            environ=environ,
            env_key=_ISSUER_ENV_KEY,
            payload=file_payload,
            payload_key="issuer",
            default=_DEFAULT_ISSUER,
        ),
        totp_backend=_resolve_str_setting(
            environ=environ,
            env_key=_TOTP_BACKEND_ENV_KEY,
            payload=file_payload,
            payload_key="totp_backend",
            default=_DEFAULT_TOTP_BACKEND,
        ),
        valid_window=_resolve_int_setting(
            environ=environ,
            env_key=_VALID_WINDOW_ENV_KEY,
            payload=file_payload,
            payload_key="valid_window",
            default=_DEFAULT_VALID_WINDOW,
            minimum=0,
        ),
        privileged_roles=_resolve_roles_setting(
            environ=environ,
            payload=file_payload,
        ),
        allow_privileged_disable=_resolve_bool_setting(
            environ=environ,
            env_key=_ALLOW_PRIVILEGED_DISABLE_ENV_KEY,
            payload=file_payload,
            payload_key="allow_privileged_disable",
            default=True,
        ),
        reject_replayed_codes=_resolve_bool_setting(
            environ=environ,
            env_key=_REJECT_REPLAYED_CODES_ENV_KEY,
            payload=file_payload,
            payload_key="reject_replayed_codes",
            default=False,
        ),
        trust_cookie_name=_resolve_str_setting(
            environ=environ,
            env_key=_TRUST_COOKIE_NAME_ENV_KEY,
            payload=file_payload,
            payload_key="trust_cookie_name",
            default=_DEFAULT_TRUST_COOKIE_NAME,
        ),
    )


def resolve_kivilcim_env(*, environ: Mapping[str, str]) -> str:
    """
    Resolve normalized runtime environment name.

    Args:
        environ: Environment mapping.
    Returns:
        str: One of `dev`, `prod`, `test`.
    Assumptions:
        Missing env falls back to `dev`.
    Raises:
        ValueError: If value is outside allowed set.
    Side Effects:
        None.
    """
    raw_env = environ.get(_ENV_NAME_KEY, "dev").strip().lower()
    if raw_env not in _ALLOWED_ENVS:
        raise ValueError(
            f"{_ENV_NAME_KEY} must be one of {_ALLOWED_ENVS}, got {raw_env!r}"
        )
    return raw_env


def _resolve_identity_config_path(*, environ: Mapping[str, str]) -> tuple[Path, bool]:
    """
    Resolve identity YAML path using explicit override or `KIVILCIM_ENV`.

    Args:
        environ: Environment mapping.
    Returns:
        tuple[Path, bool]: YAML path and whether it was set explicitly.
    Assumptions:
        `KIVILCIM_IDENTITY_CONFIG` has priority over env-derived path.
    Raises:
        ValueError: If env value is invalid.
    Side Effects:
        None.
    """
    override = environ.get(_CONFIG_PATH_KEY, "").strip()
    if override:
        return Path(override), True

    env_name = resolve_kivilcim_env(environ=environ)
    return Path("configs") / env_name / "identity.yaml", False


def _load_optional_two_factor_payload(*, path: Path, required: bool) -> Mapping[str, Any]:
    """
    Load optional `identity.two_factor` mapping from identity YAML.

    Args:
        path: Identity config path.
        required: Whether a missing file is an error.
    Returns:
        Mapping[str, Any]: Optional `identity.two_factor` mapping, or empty mapping.
    Assumptions:
        Unknown keys are ignored by this loader.
    Raises:
        FileNotFoundError: If required YAML path does not exist.
        ValueError: If YAML structure is invalid.
    Side Effects:
        Reads one UTF-8 file from disk when present.
    """
    if not path.exists():
        if required:
            raise FileNotFoundError(f"identity config not found: {path}")
        return {}
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError("identity config must be a mapping at top-level")

    identity_map = raw.get("identity")
    if identity_map is None:
        return {}
    if not isinstance(identity_map, dict):
        raise ValueError("identity section must be a mapping")

    two_factor_map = identity_map.get("two_factor")
    if two_factor_map is None:
        return {}
    if not isinstance(two_factor_map, dict):
        raise ValueError(f"{_SECTION_PATH} section must be a mapping")
    return two_factor_map


def _resolve_int_setting(
    *,
    environ: Mapping[str, str],
    env_key: str,
    payload: Mapping[str, Any],
    payload_key: str,
    default: int,
    minimum: int,
) -> int:
    """
    Resolve integer setting from env -> payload -> default precedence.

    Args:
        environ: Environment mapping.
        env_key: Env variable name.
        payload: Parsed YAML subsection.
        payload_key: YAML key name.
        default: Fallback default value.
        minimum: Inclusive lower bound.
    Returns:
        int: Resolved integer value.
    Assumptions:
        String env values use base-10 integer format.
    Raises:
        ValueError: If provided value is not an int or is below `minimum`.
    Side Effects:
        None.
    """
    raw = environ.get(env_key, "").strip()
    if raw:
        try:
            parsed = int(raw, 10)
        except ValueError as error:
            raise ValueError(f"{env_key} must be int, got {raw!r}") from error
        if parsed < minimum:
            raise ValueError(f"{env_key} must be >= {minimum}, got {parsed}")
        return parsed

    payload_value = payload.get(payload_key)
    if payload_value is None:
        return default
    if isinstance(payload_value, bool) or not isinstance(payload_value, int):
        raise ValueError(
            f"expected int for {_SECTION_PATH}.{payload_key}, "
            f"got {type(payload_value).__name__}"
        )
    if payload_value < minimum:
        raise ValueError(
            f"{_SECTION_PATH}.{payload_key} must be >= {minimum}, got {payload_value}"
        )
    return payload_value


def _resolve_str_setting(
    *,
    environ: Mapping[str, str],
    env_key: str,
    payload: Mapping[str, Any],
    payload_key: str,
    default: str,
) -> str:
    """
    Resolve non-empty string setting from env -> payload -> default precedence.
    """
    raw = environ.get(env_key, "").strip()
    if raw:
        return raw

    payload_value = payload.get(payload_key)
    if payload_value is None:
        return default
    if not isinstance(payload_value, str):
        raise ValueError(
            f"expected string for {_SECTION_PATH}.{payload_key}, "
            f"got {type(payload_value).__name__}"
        )
    normalized = payload_value.strip()
    if not normalized:
        raise ValueError(f"{_SECTION_PATH}.{payload_key} must be non-empty")
    return normalized


def _resolve_bool_setting(
    *,
    environ: Mapping[str, str],
    env_key: str,
    payload: Mapping[str, Any],
    payload_key: str,
    default: bool,
) -> bool:
    """
    Resolve boolean setting from env -> payload -> default precedence.

    Args:
        environ: Environment mapping.
        env_key: Env variable name.
        payload: Parsed YAML subsection.
        payload_key: YAML key name.
        default: Fallback default value.
    Returns:
        bool: Resolved flag.
    Assumptions:
        Env literals are case-insensitive `1/0`, `true/false`, `yes/no`, `on/off`.
    Raises:
        ValueError: If value cannot be parsed as boolean.
    Side Effects:
        None.
    """
    raw = environ.get(env_key, "").strip().lower()
    if raw:
        return parse_bool_literal(raw, key=env_key)

    payload_value = payload.get(payload_key)
    if payload_value is None:
        return default
    if not isinstance(payload_value, bool):
        raise ValueError(
            f"expected bool for {_SECTION_PATH}.{payload_key}, "
            f"got {type(payload_value).__name__}"
        )
    return payload_value


def _resolve_roles_setting(
    *,
    environ: Mapping[str, str],
    payload: Mapping[str, Any],
) -> tuple[UserRole, ...]:
    """
    Resolve privileged roles from comma-separated env value or YAML list.

    Args:
        environ: Environment mapping.
        payload: Parsed YAML subsection.
    Returns:
        tuple[UserRole, ...]: Privileged roles in declaration order.
    Assumptions:
        Role literals are case-insensitive.
    Raises:
        ValueError: If any literal does not name a known role.
    Side Effects:
        None.
    """
    raw = environ.get(_PRIVILEGED_ROLES_ENV_KEY, "").strip()
    if raw:
        return tuple(
            UserRole.from_string(item) for item in raw.split(",") if item.strip()
        )

    payload_value = payload.get("privileged_roles")
    if payload_value is None:
        return _DEFAULT_PRIVILEGED_ROLES
    if not isinstance(payload_value, list):
        raise ValueError(
            f"expected list for {_SECTION_PATH}.privileged_roles, "
            f"got {type(payload_value).__name__}"
        )
    roles: list[UserRole] = []
    for item in payload_value:
        if not isinstance(item, str):
            raise ValueError(f"{_SECTION_PATH}.privileged_roles items must be strings")
        roles.append(UserRole.from_string(item))
    return tuple(roles)


def parse_bool_literal(raw: str, *, key: str) -> bool:
    """
    Parse boolean env literal.

    Args:
        raw: Raw env string.
        key: Env key name for diagnostics.
    Returns:
        bool: Parsed flag.
    Assumptions:
        Input is compared case-insensitively after trimming.
    Raises:
        ValueError: If literal is not a known boolean spelling.
    Side Effects:
        None.
    """
    normalized = raw.strip().lower()
    if normalized in _TRUE_LITERALS:
        return True
    if normalized in _FALSE_LITERALS:
        return False
    raise ValueError(f"{key} must be boolean literal, got {raw!r}")


__all__ = [
    "IdentityTwoFactorConfig",
    "load_identity_two_factor_config",
    "parse_bool_literal",
    "resolve_kivilcim_env",
]
