from __future__ import annotations

from uuid import uuid4

import pytest

from kivilcim.shared_kernel.primitives import UserId


def test_user_id_from_string_accepts_opaque_identifiers() -> None:
    """
    Verify UserId keeps UUIDs and document ids verbatim after trimming.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Identifiers are opaque strings issued by the identity system.
    Raises:
        AssertionError: If parsing alters the identifier.
    Side Effects:
        None.
    """
    raw_uuid = str(uuid4())

    assert str(UserId.from_string(raw_uuid)) == raw_uuid
    assert str(UserId.from_string("  x8Kq2DocumentId ")) == "x8Kq2DocumentId"
    assert UserId.from_string("admin-1") == UserId("admin-1")


@pytest.mark.parametrize("raw", ["", "   ", "two words", "a" * 129])
def test_user_id_rejects_invalid_values(raw: str) -> None:
    with pytest.raises(ValueError):
        UserId.from_string(raw)
