from __future__ import annotations

import base64
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from kivilcim.contexts.identity.adapters.inbound.api.deps import (
    RequireCurrentUserDependency,
    RequireTwoFactorTrustedDependency,
    TrustCacheCookie,
    register_two_factor_trust_exception_handler,
)
from kivilcim.contexts.identity.adapters.inbound.api.routes import build_two_factor_router
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
from kivilcim.contexts.identity.adapters.outbound.security.two_factor import (
    AesGcmEnvelopeTwoFactorSecretCipher,
    Rfc6238TwoFactorTotpProvider,
    base32_codec,
    rfc6238_totp,
)
from kivilcim.contexts.identity.application.ports import (
    CurrentUserPrincipal,
    IdentityClock,
    IdentityJwtClaims,
)
from kivilcim.contexts.identity.application.use_cases import (
    DisableTwoFactorTotpUseCase,
    EnableTwoFactorTotpUseCase,
    EndTwoFactorSessionUseCase,
    GetTwoFactorStatusUseCase,
    SetupTwoFactorTotpUseCase,
    VerifyTwoFactorTotpUseCase,
)
from kivilcim.shared_kernel.primitives import UserId, UserRole

_START = datetime(2026, 10, 18, 12, 0, 5, tzinfo=timezone.utc)
_SESSION_COOKIE = "kivilcim_identity_jwt"
_TRUST_COOKIE = "kivilcim_2fa_trust"
_JWT_SECRET = "test-identity-jwt-secret"
_TRUST_SECRET = "test-identity-2fa-trust-cache-secret"
_KEK_B64 = base64.b64encode(b"kivilcim-test-identity-2fa-k0001").decode("ascii")


class _MutableClock(IdentityClock):
    """
    Controllable UTC clock shared by JWT codec, trust cache, and trust gate.
    """

    def __init__(self, *, now: datetime) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta) -> None:
        self._now = self._now + delta


@dataclass(frozen=True, slots=True)
class _Harness:
    client: TestClient
    clock: _MutableClock
    jwt_codec: Hs256JwtCodec

    def sign_in(self, *, user_id: str, role: UserRole) -> None:
        token = self.jwt_codec.encode(
            claims=IdentityJwtClaims(
                user_id=UserId.from_string(user_id),
                role=role,
                issued_at=self.clock.now(),
                expires_at=self.clock.now() + timedelta(days=1),
                email=f"{user_id}@example.com",
            )
        )
        self.client.cookies.set(_SESSION_COOKIE, token)

    def code(self, *, secret: str) -> str:
        return rfc6238_totp.totp_code(base32_codec.decode(secret), self.clock.now().timestamp())


def _build_harness(*, allow_privileged_disable: bool = True) -> _Harness:
    """
    Build FastAPI app with two-factor router and one privileged collaborator route.

    Args:
        allow_privileged_disable: Disable policy for privileged roles.
    Returns:
        _Harness: Test client with controllable clock and session token factory.
    Assumptions:
        In-memory trust store and builtin TOTP provider are sufficient for HTTP contract tests.
    Raises:
        ValueError: If one of dependencies is misconfigured.
    Side Effects:
        None.
    """
    clock = _MutableClock(now=_START)
    repository = InMemoryIdentityTwoFactorRepository()
    cipher = AesGcmEnvelopeTwoFactorSecretCipher(kek_b64=_KEK_B64)
    provider = Rfc6238TwoFactorTotpProvider()
    role_policy = StaticPrivilegedRolePolicy()
    gate = RepositoryTwoFactorTrustGate(repository=repository, role_policy=role_policy, clock=clock)
    jwt_codec = Hs256JwtCodec(secret_key=_JWT_SECRET, clock=clock)
    current_user_dependency = RequireCurrentUserDependency(
        current_user=JwtCookieCurrentUser(jwt_codec=jwt_codec),
        cookie_name=_SESSION_COOKIE,
    )
    two_factor_trusted = RequireTwoFactorTrustedDependency(
        current_user_dependency=current_user_dependency,
        trust_gate=gate,
    )

    app = FastAPI()
    register_two_factor_trust_exception_handler(app=app)
    app.include_router(
        build_two_factor_router(
            setup_use_case=SetupTwoFactorTotpUseCase(
                repository=repository,
                secret_cipher=cipher,
                totp_provider=provider,
                clock=clock,
            ),
            enable_use_case=EnableTwoFactorTotpUseCase(
                repository=repository,
                secret_cipher=cipher,
                totp_provider=provider,
                clock=clock,
            ),
            verify_use_case=VerifyTwoFactorTotpUseCase(
                repository=repository,
                secret_cipher=cipher,
                totp_provider=provider,
                clock=clock,
            ),
            disable_use_case=DisableTwoFactorTotpUseCase(
                repository=repository,
                secret_cipher=cipher,
                totp_provider=provider,
                clock=clock,
                role_policy=role_policy,
                allow_privileged_disable=allow_privileged_disable,
            ),
            status_use_case=GetTwoFactorStatusUseCase(trust_gate=gate),
            end_session_use_case=EndTwoFactorSessionUseCase(repository=repository, clock=clock),
            current_user_dependency=current_user_dependency,
            trust_cache_cookie=TrustCacheCookie(
                codec=Hs256TrustCacheCodec(secret_key=_TRUST_SECRET, clock=clock),
                cookie_name=_TRUST_COOKIE,
                cookie_secure=False,
                cookie_samesite="lax",
            ),
        )
    )

    @app.post("/admin/articles")
    def post_admin_article(
        principal: CurrentUserPrincipal = Depends(two_factor_trusted),
    ) -> dict[str, str]:
        return {"published_by": str(principal.user_id)}

    return _Harness(client=TestClient(app), clock=clock, jwt_codec=jwt_codec)


def _enable(harness: _Harness) -> str:
    secret = harness.client.post("/2fa/setup").json()["secret_base32"]
    response = harness.client.post("/2fa/enable", json={"code": harness.code(secret=secret)})
    assert response.status_code == 200
    return secret


def test_admin_flow_from_setup_to_privileged_action_and_trust_expiry() -> None:
    """
    Verify admin is gated until 2FA is enabled, then again after the trust window expires.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Default trust window is 180 minutes.
    Raises:
        AssertionError: If gate or status endpoints disagree with the flow.
    Side Effects:
        None.
    """
    harness = _build_harness()
    harness.sign_in(user_id="admin-1", role=UserRole.ADMIN)

    denied = harness.client.post("/admin/articles")
    assert denied.status_code == 403
    assert denied.json() == {
        "error": "two_factor_setup_required",
        "message": "Two-factor authentication must be set up first.",
    }
    assert harness.client.get("/2fa/status").json()["state"] == "not_configured"

    setup = harness.client.post("/2fa/setup")
    assert setup.status_code == 200
    assert setup.json()["provisioning_uri"].startswith(
        "otpauth://totp/Kivilcim:admin-1%40example.com?"
    )

    enabled = harness.client.post(
        "/2fa/enable",
        json={"code": harness.code(secret=setup.json()["secret_base32"])},
    )
    assert enabled.json() == {"enabled": True}
    assert harness.client.post("/admin/articles").json() == {"published_by": "admin-1"}

    harness.clock.advance(timedelta(minutes=180))

    expired = harness.client.post("/admin/articles")
    status = harness.client.get("/2fa/status").json()
    assert expired.status_code == 403
    assert expired.json()["error"] == "two_factor_verification_required"
    assert status["state"] == "pending_verification"
    assert status["requires_verification"] is True
    assert status["session_timeout_mins"] == 180

    verified = harness.client.post(
        "/2fa/verify",
        json={"code": harness.code(secret=setup.json()["secret_base32"])},
    )
    assert verified.status_code == 200
    assert verified.json()["verified"] is True
    assert harness.client.post("/admin/articles").status_code == 200


def test_regular_user_is_never_gated() -> None:
    harness = _build_harness()
    harness.sign_in(user_id="user-1", role=UserRole.USER)

    status = harness.client.get("/2fa/status").json()

    assert harness.client.post("/admin/articles").status_code == 200
    assert status["state"] == "trusted"
    assert status["enabled"] is False
    assert status["verified"] is True
    assert status["required"] is False


def test_code_errors_map_to_deterministic_http_payloads() -> None:
    harness = _build_harness()
    harness.sign_in(user_id="admin-1", role=UserRole.ADMIN)

    no_pending = harness.client.post("/2fa/enable", json={"code": "123456"})
    malformed = harness.client.post("/2fa/verify", json={"code": "12-456"})
    not_enabled = harness.client.post("/2fa/disable", json={"code": "123456"})

    assert no_pending.status_code == 409
    assert no_pending.json() == {
        "detail": {
            "error": "two_factor_no_pending_secret",
            "message": "Two-factor setup must be started first.",
        }
    }
    assert malformed.status_code == 422
    assert malformed.json()["detail"]["error"] == "malformed_two_factor_code"
    assert not_enabled.status_code == 409
    assert not_enabled.json()["detail"]["error"] == "two_factor_not_enabled"


def test_missing_session_cookie_is_unauthorized() -> None:
    harness = _build_harness()

    response = harness.client.get("/2fa/status")

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "missing_token"


def test_rotation_requires_fresh_trust_over_http() -> None:
    harness = _build_harness()
    harness.sign_in(user_id="admin-1", role=UserRole.ADMIN)
    _enable(harness)
    harness.clock.advance(timedelta(minutes=200))
    harness.sign_in(user_id="admin-1", role=UserRole.ADMIN)

    response = harness.client.post("/2fa/setup")

    assert response.status_code == 403
    assert response.json() == {
        "error": "two_factor_verification_required",
        "message": "Two-factor verification is required.",
    }


def test_rotation_state_is_reported_and_privileged_actions_continue() -> None:
    harness = _build_harness()
    harness.sign_in(user_id="admin-1", role=UserRole.ADMIN)
    _enable(harness)

    harness.client.post("/2fa/setup")

    assert harness.client.get("/2fa/status").json()["state"] == "rotating"
    assert harness.client.post("/admin/articles").status_code == 200


def test_trust_cache_cookie_is_written_and_decoded_as_advisory_view() -> None:
    """
    Verify status responses refresh the signed trust cache and the cached endpoint decodes it.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Tampered and expired cookies read as unknown (`cached: null`).
    Raises:
        AssertionError: If cookie attributes or decoded view differ.
    Side Effects:
        None.
    """
    harness = _build_harness()
    harness.sign_in(user_id="admin-1", role=UserRole.ADMIN)

    assert harness.client.get("/2fa/status/cached").json() == {"cached": None}

    _enable(harness)
    status = harness.client.get("/2fa/status")
    set_cookie = status.headers["set-cookie"]
    cached = harness.client.get("/2fa/status/cached").json()["cached"]

    assert f"{_TRUST_COOKIE}=" in set_cookie
    assert "Max-Age=10800" in set_cookie
    assert "HttpOnly" in set_cookie
    assert cached["state"] == "trusted"
    assert cached["enabled"] is True
    assert cached["session_timeout_mins"] == 180
    assert cached["issued_at"] == "2026-10-18T12:00:05Z"
    assert cached["expires_at"] == "2026-10-18T15:00:05Z"

    harness.clock.advance(timedelta(minutes=180))
    assert harness.client.get("/2fa/status/cached").json() == {"cached": None}

    forged = _build_harness()
    forged.sign_in(user_id="admin-1", role=UserRole.ADMIN)
    forged.client.cookies.set(_TRUST_COOKIE, "eyJhbGciOiJIUzI1NiJ9.e30.c2lnbmF0dXJl")
    assert forged.client.get("/2fa/status/cached").json() == {"cached": None}


def test_trust_cache_cookie_late_in_window_expires_with_server_trust() -> None:
    """
    Verify a status read near the end of the trust window caps cookie and token lifetime.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Trust window opened by `enable` at 12:00:05 closes at 15:00:05.
    Raises:
        AssertionError: If cache claims trust after the server deadline.
    Side Effects:
        None.
    """
    harness = _build_harness()
    harness.sign_in(user_id="admin-1", role=UserRole.ADMIN)
    _enable(harness)
    harness.clock.advance(timedelta(minutes=170))

    status = harness.client.get("/2fa/status")
    cached = harness.client.get("/2fa/status/cached").json()["cached"]

    assert status.json()["state"] == "trusted"
    assert "Max-Age=600" in status.headers["set-cookie"]
    assert cached["issued_at"] == "2026-10-18T14:50:05Z"
    assert cached["expires_at"] == "2026-10-18T15:00:05Z"

    harness.clock.advance(timedelta(minutes=10))
    assert harness.client.post("/admin/articles").status_code == 403
    assert harness.client.get("/2fa/status/cached").json() == {"cached": None}


def test_disable_and_session_end_routes() -> None:
    harness = _build_harness()
    harness.sign_in(user_id="admin-1", role=UserRole.ADMIN)
    secret = _enable(harness)

    ended = harness.client.post("/2fa/session/end")
    assert ended.status_code == 200
    assert ended.json()["state"] == "pending_verification"
    assert harness.client.post("/admin/articles").status_code == 403

    disabled = harness.client.post("/2fa/disable", json={"code": harness.code(secret=secret)})
    assert disabled.json() == {"enabled": False}
    assert harness.client.get("/2fa/status").json()["state"] == "not_configured"


def test_privileged_disable_can_be_forbidden() -> None:
    harness = _build_harness(allow_privileged_disable=False)
    harness.sign_in(user_id="admin-1", role=UserRole.ADMIN)
    secret = _enable(harness)

    response = harness.client.post("/2fa/disable", json={"code": harness.code(secret=secret)})

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "two_factor_disable_forbidden"
    assert harness.client.get("/2fa/status").json()["enabled"] is True
