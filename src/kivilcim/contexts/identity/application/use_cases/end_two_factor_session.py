from __future__ import annotations

import logging

from kivilcim.contexts.identity.application.ports import IdentityClock
from kivilcim.contexts.identity.application.ports.two_factor_repository import TwoFactorRepository
from kivilcim.contexts.identity.application.use_cases.two_factor_support import (
    ensure_utc_datetime,
    save_credential,
)
from kivilcim.shared_kernel.primitives import UserId

log = logging.getLogger(__name__)


class EndTwoFactorSessionUseCase:
    """
    EndTwoFactorSessionUseCase — drop the current trust window on logout or new sign-in.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/domain/entities/two_factor_credential.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/routes/two_factor.py
    """

    def __init__(self, *, repository: TwoFactorRepository, clock: IdentityClock) -> None:
        if repository is None:  # type: ignore[truthy-bool]
            raise ValueError("EndTwoFactorSessionUseCase requires repository")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("EndTwoFactorSessionUseCase requires clock")
        self._repository = repository
        self._clock = clock

    def end_session(self, *, user_id: UserId) -> None:
        """
        Clear `verified_this_session` while keeping secrets untouched.

        Args:
            user_id: Authenticated identity user id.
        Returns:
            None.
        Assumptions:
            Operation is idempotent: missing credential or unverified session is a no-op.
        Raises:
            TwoFactorConcurrentUpdateError: If the credential changed concurrently.
        Side Effects:
            Updates stored credential when a trust window was open.
        """
        credential = self._repository.find_by_user_id(user_id=user_id)
        if credential is None or not credential.verified_this_session:
            return

        now = ensure_utc_datetime(value=self._clock.now(), field_name="clock.now")
        save_credential(
            repository=self._repository,
            credential=credential.end_session(now=now),
            expected_version=credential.version,
        )
        log.info("two_factor session ended user_id=%s", user_id)
