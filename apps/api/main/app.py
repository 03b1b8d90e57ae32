"""
FastAPI application factory for Kivilcim API.
"""

from __future__ import annotations

import os
from typing import Mapping

from fastapi import FastAPI

from apps.api.common import register_api_error_handlers
from apps.api.wiring.modules import build_identity_api_module
from kivilcim.contexts.identity.adapters.inbound.api.deps import (
    register_two_factor_trust_exception_handler,
)


def create_app(*, environ: Mapping[str, str] | None = None) -> FastAPI:
    """
    Build FastAPI app with identity two-factor module wired at startup.

    Docs: docs/architecture/identity/identity-2fa-trust-engine-v1.md
    Related: apps.api.routes.identity,
      apps.api.wiring.modules.identity,
      kivilcim.contexts.identity.adapters.inbound.api.deps.two_factor_trusted

    Args:
        environ: Optional environment mapping override.
    Returns:
        FastAPI: Application instance with registered routers.
    Assumptions:
        Modules wiring performs fail-fast validation before first request.
        `app.state.identity` exposes the module so collaborator routers can reuse
        `two_factor_trusted_dependency`.
    Raises:
        FileNotFoundError: If explicit identity config path is missing.
        ValueError: If identity config parsing/validation fails.
    Side Effects:
        Reads identity YAML and validates identity runtime settings.
    """
    effective_environ = os.environ if environ is None else environ

    app = FastAPI(
        title="Kivilcim API",
        version="1.0.0",
    )
    register_api_error_handlers(app=app)
    register_two_factor_trust_exception_handler(app=app)
    identity_module = build_identity_api_module(environ=effective_environ)
    app.state.identity = identity_module
    app.include_router(identity_module.router)
    return app
