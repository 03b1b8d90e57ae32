from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from kivilcim.contexts.identity.domain.value_objects import AdvisoryTrustView, TrustSnapshot


@dataclass(frozen=True, slots=True)
class TrustCacheToken:
    """
    TrustCacheToken — signed cache token with the lifetime the cookie must carry.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/inbound/api/deps/trust_cache_cookie.py
    """

    value: str
    issued_at: datetime
    expires_at: datetime

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("TrustCacheToken.value must be non-empty")
        if self.expires_at < self.issued_at:
            raise ValueError("TrustCacheToken.expires_at must not precede issued_at")

    @property
    def max_age_seconds(self) -> int:
        return int((self.expires_at - self.issued_at).total_seconds())


class TrustCacheCodec(Protocol):
    """
    TrustCacheCodec — порт сериализации client trust cache (одностороннее зеркало).

    Encoding accepts only the authoritative `TrustSnapshot`; decoding yields only the
    advisory view, so cached state can never re-enter enforcement.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/adapters/outbound/security/trust_cache/
        hs256_trust_cache_codec.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/deps/trust_cache_cookie.py
    """

    def encode(self, *, snapshot: TrustSnapshot) -> TrustCacheToken:
        """
        Serialize snapshot into signed opaque token bounded by the server trust window.

        Args:
            snapshot: Authoritative snapshot just computed by the trust gate.
        Returns:
            TrustCacheToken: Signed token with issue and expiry instants.
        Assumptions:
            Lifetime is `snapshot.session_timeout_mins`, cut short at
            `snapshot.trust_expires_at` when trust lapses earlier.
        Raises:
            ValueError: If snapshot cannot be serialized.
        Side Effects:
            Reads clock for issue time.
        """
        ...

    def decode(self, *, token: str | None) -> AdvisoryTrustView | None:
        """
        Decode signed token into advisory view.

        Args:
            token: Raw cookie value; may be missing.
        Returns:
            AdvisoryTrustView | None: View, or `None` when token is absent, tampered, or expired.
        Assumptions:
            `None` means "unknown" to the UI, never "untrusted" or "trusted".
        Raises:
            None.
        Side Effects:
            Reads clock for expiry check.
        """
        ...
