"""
Composition helpers for identity API module.

Docs: docs/architecture/identity/identity-2fa-trust-engine-v1.md
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Literal, Mapping

from fastapi import APIRouter

from apps.api.routes import build_identity_router as build_identity_api_router
from kivilcim.contexts.identity.adapters.inbound.api.deps import (
    RequireCurrentUserDependency,
    RequireTwoFactorTrustedDependency,
    TrustCacheCookie,
)
from kivilcim.contexts.identity.adapters.outbound import (
    AesGcmEnvelopeTwoFactorSecretCipher,
    Hs256JwtCodec,
    Hs256TrustCacheCodec,
    InMemoryIdentityTwoFactorRepository,
    JwtCookieCurrentUser,
    PostgresIdentityTwoFactorRepository,
    PsycopgIdentityPostgresGateway,
    PyOtpTwoFactorTotpProvider,
    RepositoryTwoFactorTrustGate,
    Rfc6238TwoFactorTotpProvider,
    StaticPrivilegedRolePolicy,
    SystemIdentityClock,
)
from kivilcim.contexts.identity.application.ports import (
    TwoFactorRepository,
    TwoFactorTotpProvider,
    TwoFactorTrustGate,
)
from kivilcim.contexts.identity.application.use_cases import (
    DisableTwoFactorTotpUseCase,
    EnableTwoFactorTotpUseCase,
    EndTwoFactorSessionUseCase,
    GetTwoFactorStatusUseCase,
    SetupTwoFactorTotpUseCase,
    VerifyTwoFactorTotpUseCase,
)
from kivilcim.platform.config import (
    IdentityTwoFactorConfig,
    load_identity_two_factor_config,
    parse_bool_literal,
    resolve_kivilcim_env,
)

log = logging.getLogger(__name__)

_IDENTITY_FAIL_FAST_KEY = "IDENTITY_FAIL_FAST"
_IDENTITY_JWT_SECRET_KEY = "IDENTITY_JWT_SECRET"
_IDENTITY_2FA_KEK_KEY = "IDENTITY_2FA_KEK_B64"
_IDENTITY_2FA_TRUST_CACHE_SECRET_KEY = "IDENTITY_2FA_TRUST_CACHE_SECRET"
_IDENTITY_PG_DSN_KEY = "IDENTITY_PG_DSN"
_IDENTITY_COOKIE_NAME_KEY = "IDENTITY_COOKIE_NAME"
_IDENTITY_COOKIE_PATH_KEY = "IDENTITY_COOKIE_PATH"
_IDENTITY_COOKIE_SAMESITE_KEY = "IDENTITY_COOKIE_SAMESITE"
_IDENTITY_COOKIE_SECURE_KEY = "IDENTITY_COOKIE_SECURE"
_ALLOWED_ENVS = ("dev", "prod", "test")
_ALLOWED_SAMESITE = ("lax", "none", "strict")

_DEV_JWT_SECRET = "dev-identity-jwt-secret"
_DEV_TRUST_CACHE_SECRET = "dev-identity-2fa-trust-cache-secret"
_DEV_KEK_B64 = base64.b64encode(b"kivilcim-dev-2fa-kek-32-bytes!!!").decode("ascii")


@dataclass(frozen=True, slots=True)
class IdentityRuntimeSettings:
    """
    IdentityRuntimeSettings — runtime secrets and cookie policy for identity 2FA wiring.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - apps/api/wiring/modules/identity.py
      - apps/api/main/app.py
      - src/kivilcim/platform/config/identity_two_factor.py
    """

    env_name: str
    fail_fast: bool
    identity_jwt_secret: str
    two_factor_kek_b64: str
    trust_cache_secret: str
    postgres_dsn: str
    jwt_cookie_name: str
    jwt_cookie_secure: bool
    jwt_cookie_samesite: Literal["lax", "strict", "none"]
    jwt_cookie_path: str

    def __post_init__(self) -> None:
        """
        Validate identity runtime settings invariants.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Values are normalized by resolver before dataclass construction.
        Raises:
            ValueError: If one of invariants is violated.
        Side Effects:
            None.
        """
        if self.env_name not in _ALLOWED_ENVS:
            raise ValueError(
                f"IdentityRuntimeSettings.env_name must be one of {_ALLOWED_ENVS}, "
                f"got {self.env_name!r}"
            )
        if not self.identity_jwt_secret:
            raise ValueError("IdentityRuntimeSettings.identity_jwt_secret must be non-empty")
        if not self.two_factor_kek_b64:
            raise ValueError("IdentityRuntimeSettings.two_factor_kek_b64 must be non-empty")
        if not self.trust_cache_secret:
            raise ValueError("IdentityRuntimeSettings.trust_cache_secret must be non-empty")
        if self.trust_cache_secret == self.identity_jwt_secret:
            raise ValueError(
                "IdentityRuntimeSettings.trust_cache_secret must differ from identity_jwt_secret"
            )
        if not self.jwt_cookie_name:
            raise ValueError("IdentityRuntimeSettings.jwt_cookie_name must be non-empty")
        if self.jwt_cookie_samesite not in _ALLOWED_SAMESITE:
            raise ValueError(
                "IdentityRuntimeSettings.jwt_cookie_samesite must be one of "
                f"{_ALLOWED_SAMESITE}, got {self.jwt_cookie_samesite!r}"
            )
        if not self.jwt_cookie_path:
            raise ValueError("IdentityRuntimeSettings.jwt_cookie_path must be non-empty")


@dataclass(frozen=True, slots=True)
class IdentityApiModule:
    """
    IdentityApiModule — wired identity router plus reusable dependencies for collaborators.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - apps/api/main/app.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/deps/two_factor_trusted.py
    """

    router: APIRouter
    current_user_dependency: RequireCurrentUserDependency
    two_factor_trusted_dependency: RequireTwoFactorTrustedDependency
    trust_gate: TwoFactorTrustGate
    settings: IdentityRuntimeSettings
    two_factor_config: IdentityTwoFactorConfig


def build_identity_api_module(*, environ: Mapping[str, str]) -> IdentityApiModule:
    """
    Build fully wired identity module from environment settings.

    Docs: docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related: apps.api.routes.identity,
      kivilcim.contexts.identity.adapters.outbound,
      apps.api.main.app

    Args:
        environ: Runtime environment mapping.
    Returns:
        IdentityApiModule: Router and dependencies sharing one trust gate instance.
    Assumptions:
        Fail-fast policy and secrets are resolved by `_resolve_identity_runtime_settings`.
    Raises:
        ValueError: If fail-fast settings require missing secrets or invalid values.
    Side Effects:
        Reads optional identity YAML config.
    """
    settings = _resolve_identity_runtime_settings(environ=environ)
    two_factor_config = load_identity_two_factor_config(environ=environ)

    clock = SystemIdentityClock()
    repository = _build_two_factor_repository(settings=settings)
    secret_cipher = AesGcmEnvelopeTwoFactorSecretCipher(kek_b64=settings.two_factor_kek_b64)
    totp_provider = _build_totp_provider(config=two_factor_config)
    role_policy = StaticPrivilegedRolePolicy(privileged_roles=two_factor_config.privileged_roles)
    trust_gate = RepositoryTwoFactorTrustGate(
        repository=repository,
        role_policy=role_policy,
        clock=clock,
        session_timeout_minutes=two_factor_config.session_timeout_minutes,
    )

    jwt_codec = Hs256JwtCodec(
        secret_key=settings.identity_jwt_secret,
        clock=clock,
    )
    current_user_dependency = RequireCurrentUserDependency(
        current_user=JwtCookieCurrentUser(jwt_codec=jwt_codec),
        cookie_name=settings.jwt_cookie_name,
    )
    trust_cache_cookie = TrustCacheCookie(
        codec=Hs256TrustCacheCodec(secret_key=settings.trust_cache_secret, clock=clock),
        cookie_name=two_factor_config.trust_cookie_name,
        cookie_secure=settings.jwt_cookie_secure,
        cookie_samesite=settings.jwt_cookie_samesite,
        cookie_path=settings.jwt_cookie_path,
    )

    router = build_identity_api_router(
        two_factor_setup=SetupTwoFactorTotpUseCase(
            repository=repository,
            secret_cipher=secret_cipher,
            totp_provider=totp_provider,
            clock=clock,
            issuer=two_factor_config.issuer,
            session_timeout_minutes=two_factor_config.session_timeout_minutes,
        ),
        two_factor_enable=EnableTwoFactorTotpUseCase(
            repository=repository,
            secret_cipher=secret_cipher,
            totp_provider=totp_provider,
            clock=clock,
            reject_replayed_codes=two_factor_config.reject_replayed_codes,
        ),
        two_factor_verify=VerifyTwoFactorTotpUseCase(
            repository=repository,
            secret_cipher=secret_cipher,
            totp_provider=totp_provider,
            clock=clock,
            reject_replayed_codes=two_factor_config.reject_replayed_codes,
        ),
        two_factor_disable=DisableTwoFactorTotpUseCase(
            repository=repository,
            secret_cipher=secret_cipher,
            totp_provider=totp_provider,
            clock=clock,
            role_policy=role_policy,
            allow_privileged_disable=two_factor_config.allow_privileged_disable,
            reject_replayed_codes=two_factor_config.reject_replayed_codes,
        ),
        two_factor_status=GetTwoFactorStatusUseCase(trust_gate=trust_gate),
        two_factor_end_session=EndTwoFactorSessionUseCase(repository=repository, clock=clock),
        current_user_dependency=current_user_dependency,
        trust_cache_cookie=trust_cache_cookie,
    )
    log.info(
        "identity module wired env=%s storage=%s totp_backend=%s session_timeout_mins=%s",
        settings.env_name,
        "postgres" if settings.postgres_dsn else "in_memory",
        two_factor_config.totp_backend,
        two_factor_config.session_timeout_minutes,
    )
    return IdentityApiModule(
        router=router,
        current_user_dependency=current_user_dependency,
        two_factor_trusted_dependency=RequireTwoFactorTrustedDependency(
            current_user_dependency=current_user_dependency,
            trust_gate=trust_gate,
        ),
        trust_gate=trust_gate,
        settings=settings,
        two_factor_config=two_factor_config,
    )


def build_identity_router(*, environ: Mapping[str, str]) -> APIRouter:
    """
    Build fully wired identity router from environment settings.

    Args:
        environ: Runtime environment mapping.
    Returns:
        APIRouter: Identity API router with all dependencies wired.
    Assumptions:
        Same wiring as `build_identity_api_module`.
    Raises:
        ValueError: If fail-fast settings require missing secrets or invalid values.
    Side Effects:
        Reads optional identity YAML config.
    """
    return build_identity_api_module(environ=environ).router


def _build_two_factor_repository(*, settings: IdentityRuntimeSettings) -> TwoFactorRepository:
    """
    Build trust store adapter based on runtime DSN availability.

    Args:
        settings: Resolved runtime settings.
    Returns:
        TwoFactorRepository: Postgres or in-memory adapter.
    Assumptions:
        Postgres DSN is optional in dev/test, in-memory fallback is acceptable for local runs.
    Raises:
        ValueError: If Postgres DSN is malformed for gateway construction.
    Side Effects:
        None.
    """
    if settings.postgres_dsn:
        gateway = PsycopgIdentityPostgresGateway(dsn=settings.postgres_dsn)
        return PostgresIdentityTwoFactorRepository(gateway=gateway)
    return InMemoryIdentityTwoFactorRepository()


def _build_totp_provider(*, config: IdentityTwoFactorConfig) -> TwoFactorTotpProvider:
    if config.totp_backend == "pyotp":
        return PyOtpTwoFactorTotpProvider(valid_window=config.valid_window)
    return Rfc6238TwoFactorTotpProvider(valid_window=config.valid_window)


def _resolve_identity_runtime_settings(*, environ: Mapping[str, str]) -> IdentityRuntimeSettings:
    """
    Resolve identity runtime settings with fail-fast policy and defaults.

    Args:
        environ: Runtime environment mapping.
    Returns:
        IdentityRuntimeSettings: Validated normalized settings.
    Assumptions:
        Missing `KIVILCIM_ENV` defaults to `dev`.
    Raises:
        ValueError: If env values are invalid or fail-fast policy requires missing secrets.
    Side Effects:
        None.
    """
    env_name = resolve_kivilcim_env(environ=environ)
    fail_fast = _resolve_fail_fast(environ=environ, env_name=env_name)

    identity_jwt_secret = environ.get(_IDENTITY_JWT_SECRET_KEY, "").strip()
    two_factor_kek_b64 = environ.get(_IDENTITY_2FA_KEK_KEY, "").strip()
    trust_cache_secret = environ.get(_IDENTITY_2FA_TRUST_CACHE_SECRET_KEY, "").strip()

    if fail_fast:
        for key, value in (
            (_IDENTITY_JWT_SECRET_KEY, identity_jwt_secret),
            (_IDENTITY_2FA_KEK_KEY, two_factor_kek_b64),
            (_IDENTITY_2FA_TRUST_CACHE_SECRET_KEY, trust_cache_secret),
        ):
            if not value:
                raise ValueError(f"{key} must be set when {_IDENTITY_FAIL_FAST_KEY}=true")

    postgres_dsn = environ.get(_IDENTITY_PG_DSN_KEY, "").strip()
    cookie_name = environ.get(_IDENTITY_COOKIE_NAME_KEY, "kivilcim_identity_jwt").strip()
    cookie_path = environ.get(_IDENTITY_COOKIE_PATH_KEY, "/").strip()
    cookie_samesite = _resolve_cookie_samesite(environ=environ)
    cookie_secure = _resolve_cookie_secure(environ=environ, env_name=env_name)

    return IdentityRuntimeSettings(
        env_name=env_name,
        fail_fast=fail_fast,
        identity_jwt_secret=identity_jwt_secret or _DEV_JWT_SECRET,
        two_factor_kek_b64=two_factor_kek_b64 or _DEV_KEK_B64,
        trust_cache_secret=trust_cache_secret or _DEV_TRUST_CACHE_SECRET,
        postgres_dsn=postgres_dsn,
        jwt_cookie_name=cookie_name,
        jwt_cookie_secure=cookie_secure,
        jwt_cookie_samesite=cookie_samesite,
        jwt_cookie_path=cookie_path,
    )


def _resolve_fail_fast(*, environ: Mapping[str, str], env_name: str) -> bool:
    """
    Resolve fail-fast policy for identity startup validation.

    Args:
        environ: Runtime environment mapping.
        env_name: Normalized environment name.
    Returns:
        bool: Effective fail-fast flag.
    Assumptions:
        Default is enabled for `prod` and disabled for `dev`/`test`.
    Raises:
        ValueError: If override value is not parseable as boolean.
    Side Effects:
        None.
    """
    raw_override = environ.get(_IDENTITY_FAIL_FAST_KEY, "").strip()
    if not raw_override:
        return env_name == "prod"
    return parse_bool_literal(raw_override, key=_IDENTITY_FAIL_FAST_KEY)


def _resolve_cookie_secure(*, environ: Mapping[str, str], env_name: str) -> bool:
    raw_value = environ.get(_IDENTITY_COOKIE_SECURE_KEY, "").strip()
    if not raw_value:
        return env_name == "prod"
    return parse_bool_literal(raw_value, key=_IDENTITY_COOKIE_SECURE_KEY)


def _resolve_cookie_samesite(*, environ: Mapping[str, str]) -> Literal["lax", "strict", "none"]:
    """
    Resolve cookie SameSite mode with deterministic accepted values.

    Args:
        environ: Runtime environment mapping.
    Returns:
        Literal["lax", "strict", "none"]: Effective same-site mode.
    Assumptions:
        Missing value defaults to `lax`.
    Raises:
        ValueError: If provided value is unsupported.
    Side Effects:
        None.
    """
    raw_samesite = environ.get(_IDENTITY_COOKIE_SAMESITE_KEY, "lax").strip().lower()
    if raw_samesite not in _ALLOWED_SAMESITE:
        raise ValueError(
            f"{_IDENTITY_COOKIE_SAMESITE_KEY} must be one of {_ALLOWED_SAMESITE}, "
            f"got {raw_samesite!r}"
        )
    return raw_samesite  # type: ignore[return-value]
