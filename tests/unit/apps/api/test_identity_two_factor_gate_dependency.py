from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from kivilcim.contexts.identity.adapters.inbound.api.deps import (
    RequireCurrentUserDependency,
    RequireTwoFactorTrustedDependency,
    register_two_factor_trust_exception_handler,
)
from kivilcim.contexts.identity.adapters.outbound.persistence.in_memory import (
    InMemoryIdentityTwoFactorRepository,
)
from kivilcim.contexts.identity.adapters.outbound.policy import (
    RepositoryTwoFactorTrustGate,
    StaticPrivilegedRolePolicy,
)
from kivilcim.contexts.identity.adapters.outbound.security.current_user import (
    JwtCookieCurrentUser,
)
from kivilcim.contexts.identity.adapters.outbound.security.jwt import Hs256JwtCodec
from kivilcim.contexts.identity.adapters.outbound.security.trust_cache import (
    Hs256TrustCacheCodec,
)
from kivilcim.contexts.identity.application.ports import (
    CurrentUserPrincipal,
    IdentityClock,
    IdentityJwtClaims,
)
from kivilcim.contexts.identity.domain import TrustSnapshot, TrustState
from kivilcim.shared_kernel.primitives import UserId, UserRole

_NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)
_JWT_SECRET = "test-identity-jwt-secret"


class _FixedClock(IdentityClock):
    """
    Fixed UTC clock used for deterministic token and gate evaluation.
    """

    def __init__(self, *, now_value: datetime) -> None:
        self._now_value = now_value

    def now(self) -> datetime:
        return self._now_value


def _build_client() -> tuple[TestClient, Hs256JwtCodec]:
    clock = _FixedClock(now_value=_NOW)
    jwt_codec = Hs256JwtCodec(secret_key=_JWT_SECRET, clock=clock)
    current_user_dependency = RequireCurrentUserDependency(
        current_user=JwtCookieCurrentUser(jwt_codec=jwt_codec),
        cookie_name="kivilcim_identity_jwt",
    )
    dependency = RequireTwoFactorTrustedDependency(
        current_user_dependency=current_user_dependency,
        trust_gate=RepositoryTwoFactorTrustGate(
            repository=InMemoryIdentityTwoFactorRepository(),
            role_policy=StaticPrivilegedRolePolicy(),
            clock=clock,
        ),
    )
    app = FastAPI()
    register_two_factor_trust_exception_handler(app=app)

    @app.delete("/backups/{backup_id}")
    def delete_backup(
        backup_id: str,
        principal: CurrentUserPrincipal = Depends(dependency),
    ) -> dict[str, str]:
        return {"deleted": backup_id, "by": str(principal.user_id)}

    return TestClient(app), jwt_codec


def _session_token(*, jwt_codec: Hs256JwtCodec, role: UserRole) -> str:
    return jwt_codec.encode(
        claims=IdentityJwtClaims(
            user_id=UserId.from_string("admin-1"),
            role=role,
            issued_at=_NOW,
            expires_at=_NOW + timedelta(hours=1),
        )
    )


def test_gate_dependency_returns_exact_403_payload_for_unconfigured_admin() -> None:
    """
    Verify reusable trust dependency returns flat 403 payload for admin without 2FA.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Exception handler is registered on the app.
    Raises:
        AssertionError: If payload or status differ.
    Side Effects:
        None.
    """
    client, jwt_codec = _build_client()
    client.cookies.set(
        "kivilcim_identity_jwt",
        _session_token(jwt_codec=jwt_codec, role=UserRole.ADMIN),
    )

    response = client.delete("/backups/b-1")

    assert response.status_code == 403
    assert response.json() == {
        "error": "two_factor_setup_required",
        "message": "Two-factor authentication must be set up first.",
    }


def test_gate_dependency_ignores_client_trust_cache_cookie() -> None:
    """
    Verify a validly signed "trusted" cache cookie does not bypass the store-backed gate.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Trust cache is advisory and never read on privileged routes.
    Raises:
        AssertionError: If the cookie grants access.
    Side Effects:
        None.
    """
    client, jwt_codec = _build_client()
    cache_token = Hs256TrustCacheCodec(
        secret_key="test-identity-2fa-trust-cache-secret",
        clock=_FixedClock(now_value=_NOW),
    ).encode(
        snapshot=TrustSnapshot(
            state=TrustState.TRUSTED,
            required=True,
            enabled=True,
            verified=True,
            requires_verification=False,
            session_timeout_mins=180,
            last_verification_at=_NOW,
        )
    ).value
    client.cookies.set(
        "kivilcim_identity_jwt",
        _session_token(jwt_codec=jwt_codec, role=UserRole.SUPERADMIN),
    )
    client.cookies.set("kivilcim_2fa_trust", cache_token)

    response = client.delete("/backups/b-1")

    assert response.status_code == 403


def test_gate_dependency_passes_regular_user_and_rejects_missing_session() -> None:
    client, jwt_codec = _build_client()

    unauthorized = client.delete("/backups/b-1")
    client.cookies.set(
        "kivilcim_identity_jwt",
        _session_token(jwt_codec=jwt_codec, role=UserRole.MODERATOR),
    )
    allowed = client.delete("/backups/b-1")

    assert unauthorized.status_code == 401
    assert allowed.json() == {"deleted": "b-1", "by": "admin-1"}
