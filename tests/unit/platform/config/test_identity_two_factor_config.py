from __future__ import annotations

from pathlib import Path

import pytest

from kivilcim.platform.config import (
    IdentityTwoFactorConfig,
    load_identity_two_factor_config,
    parse_bool_literal,
    resolve_kivilcim_env,
)
from kivilcim.shared_kernel.primitives import UserRole


def _write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "identity.yaml"
    path.write_text(body, encoding="utf-8")
    return path


def test_loader_reads_two_factor_section_from_yaml(tmp_path: Path) -> None:
    """
    Verify `identity.two_factor` YAML section is mapped into typed config.

    Args:
        tmp_path: Pytest temporary directory.
    Returns:
        None.
    Assumptions:
        Explicit config path is set through `KIVILCIM_IDENTITY_CONFIG`.
    Raises:
        AssertionError: If parsed values differ from YAML.
    Side Effects:
        Writes one temporary YAML file.
    """
    path = _write_config(
        tmp_path,
        """
identity:
  two_factor:
    session_timeout_minutes: 60
    issuer: "Kivilcim Staging"
    totp_backend: "pyotp"
    valid_window: 2
    privileged_roles: [superadmin, ADMIN, SUPERADMIN]
    allow_privileged_disable: false
    reject_replayed_codes: true
    trust_cookie_name: "staging_2fa_trust"
""",
    )

    config = load_identity_two_factor_config(environ={"KIVILCIM_IDENTITY_CONFIG": str(path)})

    assert config == IdentityTwoFactorConfig(
        session_timeout_minutes=60,
        issuer="Kivilcim Staging",
        totp_backend="pyotp",
        valid_window=2,
        privileged_roles=(UserRole.SUPERADMIN, UserRole.ADMIN),
        allow_privileged_disable=False,
        reject_replayed_codes=True,
        trust_cookie_name="staging_2fa_trust",
    )


def test_env_overrides_take_precedence_over_yaml(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        "identity:\n  two_factor:\n    session_timeout_minutes: 60\n    reject_replayed_codes: false\n",
    )

    config = load_identity_two_factor_config(
        environ={
            "KIVILCIM_IDENTITY_CONFIG": str(path),
            "IDENTITY_2FA_SESSION_TIMEOUT_MINUTES": "30",
            "IDENTITY_2FA_REJECT_REPLAYED_CODES": "YES",
            "IDENTITY_2FA_PRIVILEGED_ROLES": "moderator, admin",
        }
    )

    assert config.session_timeout_minutes == 30
    assert config.reject_replayed_codes is True
    assert config.privileged_roles == (UserRole.MODERATOR, UserRole.ADMIN)


def test_missing_env_derived_file_falls_back_to_defaults(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)

    config = load_identity_two_factor_config(environ={"KIVILCIM_ENV": "test"})

    assert config == IdentityTwoFactorConfig()
    assert config.session_timeout_minutes == 180
    assert config.privileged_roles == (UserRole.ADMIN, UserRole.SUPERADMIN)
    assert config.allow_privileged_disable is True
    assert config.reject_replayed_codes is False


def test_explicit_missing_config_path_fails(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_identity_two_factor_config(
            environ={"KIVILCIM_IDENTITY_CONFIG": str(tmp_path / "absent.yaml")}
        )


@pytest.mark.parametrize(
    ("body", "message"),
    [
        ("identity:\n  two_factor:\n    session_timeout_minutes: 0\n", "must be >= 1"),
        ("identity:\n  two_factor:\n    session_timeout_minutes: true\n", "expected int"),
        ("identity:\n  two_factor:\n    totp_backend: hotp\n", "totp_backend"),
        ("identity:\n  two_factor:\n    issuer: 'Acme:Corp'\n", "must not contain"),
        ("identity:\n  two_factor:\n    privileged_roles: []\n", "at least one role"),
        ("identity:\n  two_factor:\n    privileged_roles: [OWNER]\n", "UserRole"),
        ("identity: [1, 2]\n", "identity section"),
    ],
)
def test_invalid_yaml_values_are_rejected(tmp_path: Path, body: str, message: str) -> None:
    path = _write_config(tmp_path, body)

    with pytest.raises(ValueError, match=message):
        load_identity_two_factor_config(environ={"KIVILCIM_IDENTITY_CONFIG": str(path)})


def test_resolve_env_and_bool_literals() -> None:
    assert resolve_kivilcim_env(environ={}) == "dev"
    assert resolve_kivilcim_env(environ={"KIVILCIM_ENV": " PROD "}) == "prod"
    assert parse_bool_literal("On", key="X") is True
    assert parse_bool_literal("0", key="X") is False
    with pytest.raises(ValueError):
        resolve_kivilcim_env(environ={"KIVILCIM_ENV": "staging"})
    with pytest.raises(ValueError, match="X must be boolean literal"):
        parse_bool_literal("maybe", key="X")
