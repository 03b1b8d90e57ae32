"""
CLI entrypoint for running Kivilcim FastAPI service.
"""

from __future__ import annotations

import argparse
import logging

import uvicorn

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    """
    Build command-line parser for API process.

    Args:
        None.
    Returns:
        argparse.ArgumentParser: Configured parser.
    Assumptions:
        Defaults are suitable for local development.
    Raises:
        None.
    Side Effects:
        None.
    """
    parser = argparse.ArgumentParser(prog="kivilcim-api")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument("--log-level", default="INFO", help="Root logging level")
    return parser


def _configure_logging(*, level: str) -> None:
    logging.basicConfig(level=level.upper(), format=_LOG_FORMAT)


def main(argv: list[str] | None = None) -> int:
    """
    Run API process using uvicorn.

    Args:
        argv: Optional command arguments without program name.
    Returns:
        int: Process exit code.
    Assumptions:
        Import path `apps.api.main.app:create_app` is available in PYTHONPATH.
    Raises:
        None.
    Side Effects:
        Configures process logging and starts HTTP server loop.
    """
    args = _build_parser().parse_args(argv)
    _configure_logging(level=args.log_level)
    uvicorn.run(
        "apps.api.main.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
