"""
API application package.

This module exposes a lazy `create_app` export to avoid
side effects during package import in tests and tooling.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .main import create_app

__all__ = ["create_app"]


def __getattr__(name: str) -> Any:
    """
    Lazily resolve package exports without eager FastAPI imports.

    Args:
        name: Requested attribute name.
    Returns:
        Any: Exported object for supported lazy names.
    Assumptions:
        `create_app` lives in `apps.api.main`.
    Raises:
        AttributeError: If the requested attribute is not supported.
    Side Effects:
        Imports `apps.api.main` only when `create_app` is requested.
    """
    if name == "create_app":
        from .main import create_app

        return create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
