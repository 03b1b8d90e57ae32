from __future__ import annotations

from kivilcim.contexts.identity.application.ports.two_factor_trust_gate import TwoFactorTrustGate
from kivilcim.contexts.identity.domain.value_objects import TrustSnapshot
from kivilcim.shared_kernel.primitives import UserId, UserRole


class GetTwoFactorStatusUseCase:
    """
    GetTwoFactorStatusUseCase — read authoritative trust snapshot for the caller.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/contexts/identity/application/ports/two_factor_trust_gate.py
      - src/kivilcim/contexts/identity/adapters/inbound/api/routes/two_factor.py
    """

    def __init__(self, *, trust_gate: TwoFactorTrustGate) -> None:
        """
        Initialize status use case with the single trust evaluation point.

        Args:
            trust_gate: Gate computing snapshots from the trust store.
        Returns:
            None.
        Assumptions:
            Gate and status share one evaluation function, so they never disagree.
        Raises:
            ValueError: If gate is missing.
        Side Effects:
            None.
        """
        if trust_gate is None:  # type: ignore[truthy-bool]
            raise ValueError("GetTwoFactorStatusUseCase requires trust_gate")
        self._trust_gate = trust_gate

    def status(self, *, user_id: UserId, role: UserRole) -> TrustSnapshot:
        """
        Return current trust snapshot without side effects on stored state.

        Args:
            user_id: Authenticated identity user id.
            role: Caller role supplied by the identity system.
        Returns:
            TrustSnapshot: Authoritative snapshot.
        Assumptions:
            Expired trust windows are reported lazily, no background sweep exists.
        Raises:
            ValueError: If stored state cannot be mapped.
        Side Effects:
            Reads one credential snapshot.
        """
        return self._trust_gate.evaluate(user_id=user_id, role=role)
