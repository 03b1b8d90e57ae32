from __future__ import annotations

import logging
from datetime import timedelta

from kivilcim.contexts.identity.application.ports.clock import IdentityClock
from kivilcim.contexts.identity.application.ports.privileged_role_policy import (
    PrivilegedRolePolicy,
)
from kivilcim.contexts.identity.application.ports.two_factor_repository import TwoFactorRepository
from kivilcim.contexts.identity.application.ports.two_factor_trust_gate import (
    TwoFactorSetupRequiredError,
    TwoFactorTrustGate,
    TwoFactorVerificationRequiredError,
)
from kivilcim.contexts.identity.domain.services import (
    DEFAULT_SESSION_TIMEOUT_MINUTES,
    evaluate_trust,
)
from kivilcim.contexts.identity.domain.value_objects import TrustSnapshot, TrustState
from kivilcim.shared_kernel.primitives import UserId, UserRole

log = logging.getLogger(__name__)


class RepositoryTwoFactorTrustGate(TwoFactorTrustGate):
    """
    RepositoryTwoFactorTrustGate — trust gate reading the trust store and evaluating freshness.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/two_factor_trust_gate.py
      - src/kivilcim/contexts/identity/domain/services/trust_evaluation.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/deps/two_factor_trusted.py
    """

    def __init__(
        self,
        *,
        repository: TwoFactorRepository,
        role_policy: PrivilegedRolePolicy,
        clock: IdentityClock,
        session_timeout_minutes: int = DEFAULT_SESSION_TIMEOUT_MINUTES,
    ) -> None:
        """
        Initialize gate with store, role policy, clock, and trust window length.

        Args:
            repository: Trust store port.
            role_policy: Predicate deciding which roles are privileged.
            clock: UTC time source.
            session_timeout_minutes: Trust window length in minutes.
        Returns:
            None.
        Assumptions:
            Gate never reads the client trust cache.
        Raises:
            ValueError: If dependencies are missing or timeout is not positive.
        Side Effects:
            None.
        """
        if repository is None:  # type: ignore[truthy-bool]
            raise ValueError("RepositoryTwoFactorTrustGate requires repository")
        if role_policy is None:  # type: ignore[truthy-bool]
            raise ValueError("RepositoryTwoFactorTrustGate requires role_policy")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("RepositoryTwoFactorTrustGate requires clock")
        if session_timeout_minutes <= 0:
            raise ValueError("RepositoryTwoFactorTrustGate requires session_timeout_minutes > 0")

        self._repository = repository
        self._role_policy = role_policy
        self._clock = clock
        self._session_timeout = timedelta(minutes=session_timeout_minutes)

    def evaluate(self, *, user_id: UserId, role: UserRole) -> TrustSnapshot:
        credential = self._repository.find_by_user_id(user_id=user_id)
        return evaluate_trust(
            credential=credential,
            privileged=self._role_policy.is_privileged(role=role),
            now=self._clock.now(),
            session_timeout=self._session_timeout,
        )

    def require_trusted(self, *, user_id: UserId, role: UserRole) -> TrustSnapshot:
        """
        Enforce trust for a privileged action and return the snapshot that allowed it.

        Args:
            user_id: Identity user identifier.
            role: Caller role supplied by the identity system.
        Returns:
            TrustSnapshot: Snapshot in `TRUSTED` or `ROTATING` state.
        Assumptions:
            Every privileged check in the process goes through this method.
        Raises:
            TwoFactorSetupRequiredError: If state is `NOT_CONFIGURED`.
            TwoFactorVerificationRequiredError: If state is `PENDING_VERIFICATION`.
        Side Effects:
            Reads one credential snapshot and logs denials.
        """
        snapshot = self.evaluate(user_id=user_id, role=role)
        if snapshot.state is TrustState.NOT_CONFIGURED:
            log.warning(
                "two_factor gate denied user_id=%s role=%s state=%s",
                user_id,
                role.value,
                snapshot.state.value,
            )
            raise TwoFactorSetupRequiredError()
        if snapshot.state is TrustState.PENDING_VERIFICATION:
            log.info(
                "two_factor gate denied user_id=%s role=%s state=%s",
                user_id,
                role.value,
                snapshot.state.value,
            )
            raise TwoFactorVerificationRequiredError()
        return snapshot
