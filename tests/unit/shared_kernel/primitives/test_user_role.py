from __future__ import annotations

import pytest

from kivilcim.shared_kernel.primitives import UserRole


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("ADMIN", UserRole.ADMIN),
        (" superadmin ", UserRole.SUPERADMIN),
        ("Moderator", UserRole.MODERATOR),
        ("user", UserRole.USER),
    ],
)
def test_user_role_from_string_is_case_insensitive(raw: str, expected: UserRole) -> None:
    assert UserRole.from_string(raw) is expected


def test_user_role_from_string_rejects_unknown_literal() -> None:
    with pytest.raises(ValueError, match="UserRole must be one of"):
        UserRole.from_string("owner")


def test_user_role_str_is_wire_value() -> None:
    assert str(UserRole.REPRESENTATIVE) == "REPRESENTATIVE"
