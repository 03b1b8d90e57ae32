from __future__ import annotations

from dataclasses import dataclass

_MAX_USER_ID_LENGTH = 128


@dataclass(frozen=True, slots=True)
class UserId:
    """
    UserId — сквозной непрозрачный идентификатор пользователя платформы.

    Docs:
      - docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related:
      - src/kivilcim/shared_kernel/primitives/user_role.py
      - src/kivilcim/contexts/identity/domain/entities/two_factor_credential.py
      - src/kivilcim/contexts/identity/application/ports/current_user.py
    """

    value: str

    def __post_init__(self) -> None:
        """
        Normalize and validate opaque user identifier.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Identifiers are issued by the surrounding identity system (document ids, UUIDs).
        Raises:
            ValueError: If value is not a string, blank, too long, or contains whitespace.
        Side Effects:
            Mutates stored value to stripped representation.
        """
        if not isinstance(self.value, str):
            raise ValueError(f"UserId requires string value, got {self.value!r}")
        normalized = self.value.strip()
        if not normalized:
            raise ValueError("UserId requires non-empty value")
        if len(normalized) > _MAX_USER_ID_LENGTH:
            raise ValueError(f"UserId must be at most {_MAX_USER_ID_LENGTH} characters")
        if any(character.isspace() for character in normalized):
            raise ValueError(f"UserId must not contain whitespace, got {normalized!r}")
        object.__setattr__(self, "value", normalized)

    @classmethod
    def from_string(cls, raw_value: str) -> UserId:
        """
        Parse user identifier from raw token claim or storage value.

        Args:
            raw_value: Raw identifier string.
        Returns:
            UserId: Parsed user id value object.
        Assumptions:
            Surrounding whitespace is not significant.
        Raises:
            ValueError: If identifier is invalid.
        Side Effects:
            None.
        """
        return cls(raw_value)

    def __str__(self) -> str:
        return self.value
