from typing import Literal

from starlette.requests import Request
from starlette.responses import Response

from kivilcim.contexts.identity.application.ports.trust_cache_codec import TrustCacheCodec
from kivilcim.contexts.identity.domain.value_objects import AdvisoryTrustView, TrustSnapshot

CookieSameSite = Literal["lax", "strict", "none"]


class TrustCacheCookie:
    """
    TrustCacheCookie — writer/reader of the client trust cache cookie.

    The cookie mirrors the last authoritative snapshot for optimistic UI decisions; the
    trust gate never reads it.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/trust_cache_codec.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/trust_cache/
        hs256_trust_cache_codec.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/routes/two_factor.py
    """

    def __init__(
        self,
        *,
        codec: TrustCacheCodec,
        cookie_name: str,
        cookie_secure: bool,
        cookie_samesite: CookieSameSite,
        cookie_path: str = "/",
    ) -> None:
        """
        Initialize cookie writer settings.

        Args:
            codec: Signed token codec.
            cookie_name: Cookie key (`IDENTITY_2FA_TRUST_COOKIE_NAME`).
            cookie_secure: Secure cookie flag.
            cookie_samesite: Cookie SameSite mode.
            cookie_path: Cookie path.
        Returns:
            None.
        Assumptions:
            Cookie settings follow the session cookie settings of the same deployment.
        Raises:
            ValueError: If codec is missing or name/path are empty.
        Side Effects:
            None.
        """
        normalized_cookie_name = cookie_name.strip()
        normalized_cookie_path = cookie_path.strip()
        if codec is None:  # type: ignore[truthy-bool]
            raise ValueError("TrustCacheCookie requires codec")
        if not normalized_cookie_name:
            raise ValueError("TrustCacheCookie requires non-empty cookie_name")
        if not normalized_cookie_path:
            raise ValueError("TrustCacheCookie requires non-empty cookie_path")

        self._codec = codec
        self._cookie_name = normalized_cookie_name
        self._cookie_path = normalized_cookie_path
        self._cookie_secure = cookie_secure
        self._cookie_samesite = cookie_samesite

    @property
    def cookie_name(self) -> str:
        return self._cookie_name

    def write(self, *, response: Response, snapshot: TrustSnapshot) -> None:
        """
        Encode snapshot and set cookie whose max-age equals the signed token lifetime.

        Args:
            response: Outgoing response of the same request that computed the snapshot.
            snapshot: Authoritative trust snapshot.
        Returns:
            None.
        Assumptions:
            Lifetime is `session_timeout_mins * 60` unless the trust window closes sooner.
            A zero lifetime makes the browser drop the cookie.
        Raises:
            ValueError: If snapshot cannot be encoded.
        Side Effects:
            Adds `Set-Cookie` header.
        """
        token = self._codec.encode(snapshot=snapshot)
        response.set_cookie(
            key=self._cookie_name,
            value=token.value,
            max_age=token.max_age_seconds,
            expires=token.max_age_seconds,
            path=self._cookie_path,
            secure=self._cookie_secure,
            httponly=True,
            samesite=self._cookie_samesite,
        )

    def read(self, *, request: Request) -> AdvisoryTrustView | None:
        return self._codec.decode(token=request.cookies.get(self._cookie_name))
