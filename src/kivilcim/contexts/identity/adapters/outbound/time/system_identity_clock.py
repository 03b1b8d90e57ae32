from __future__ import annotations

from datetime import datetime, timezone

from kivilcim.contexts.identity.application.ports.clock import IdentityClock


class SystemIdentityClock(IdentityClock):
    """
    SystemIdentityClock — `IdentityClock` на системном UTC времени.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/clock.py
      - apps/api/wiring/modules/identity.py
    """

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
