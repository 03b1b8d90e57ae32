from __future__ import annotations

from datetime import datetime
from typing import Protocol


class IdentityClock(Protocol):
    """
    IdentityClock — порт источника времени для trust window и TOTP time steps.

    One instant is read per operation and passed down as `now`; the trust evaluation,
    TOTP counters, and trust cache expiry never read the system clock themselves.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/use_cases/verify_two_factor_totp.py
      - src/kivilcim/contexts/identity/adapters/outbound/time/system_identity_clock.py
      - src/kivilcim/contexts/identity/adapters/outbound/security/jwt/hs256_jwt_codec.py
    """

    def now(self) -> datetime:
        """
        Return the instant used for trust freshness, TOTP counters, and token lifetimes.

        Args:
            None.
        Returns:
            datetime: Timezone-aware UTC datetime.
        Assumptions:
            Tests substitute mutable clocks to step across trust window and 30-second
            TOTP boundaries.
        Raises:
            None.
        Side Effects:
            None.
        """
        ...
