from __future__ import annotations

from datetime import datetime, timezone

import pytest

from kivilcim.contexts.identity.adapters.outbound.persistence.in_memory import (
    InMemoryIdentityTwoFactorRepository,
)
from kivilcim.contexts.identity.application.ports import TwoFactorVersionConflictError
from kivilcim.contexts.identity.domain import TwoFactorCredential
from kivilcim.shared_kernel.primitives import UserId

_NOW = datetime(2026, 10, 18, 9, 0, 0, tzinfo=timezone.utc)
_USER_ID = UserId.from_string("user-1")


def test_save_applies_compare_and_set_on_version() -> None:
    """
    Verify second writer holding a stale version is rejected.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Both writers read version 1 before writing.
    Raises:
        AssertionError: If stale write overwrites newer state.
    Side Effects:
        None.
    """
    repository = InMemoryIdentityTwoFactorRepository()
    provisioned = repository.save(
        credential=TwoFactorCredential.provision(user_id=_USER_ID, secret_enc=b"p1", now=_NOW),
        expected_version=None,
    )

    first = provisioned.activate_pending(now=_NOW, counter=None)
    second = provisioned.with_pending_secret(secret_enc=b"p2", now=_NOW)
    repository.save(credential=first, expected_version=provisioned.version)

    with pytest.raises(TwoFactorVersionConflictError):
        repository.save(credential=second, expected_version=provisioned.version)
    with pytest.raises(TwoFactorVersionConflictError):
        repository.save(credential=provisioned, expected_version=None)

    assert repository.find_by_user_id(user_id=_USER_ID) == first


def test_save_rejects_version_that_does_not_follow_expectation() -> None:
    repository = InMemoryIdentityTwoFactorRepository()
    credential = TwoFactorCredential.provision(user_id=_USER_ID, secret_enc=b"p1", now=_NOW)

    with pytest.raises(ValueError):
        repository.save(credential=credential, expected_version=1)


def test_delete_requires_matching_version() -> None:
    repository = InMemoryIdentityTwoFactorRepository()
    stored = repository.save(
        credential=TwoFactorCredential.provision(user_id=_USER_ID, secret_enc=b"p1", now=_NOW),
        expected_version=None,
    )

    with pytest.raises(TwoFactorVersionConflictError):
        repository.delete(user_id=_USER_ID, expected_version=stored.version + 1)
    repository.delete(user_id=_USER_ID, expected_version=stored.version)
    with pytest.raises(TwoFactorVersionConflictError):
        repository.delete(user_id=_USER_ID, expected_version=stored.version)

    assert repository.find_by_user_id(user_id=_USER_ID) is None
