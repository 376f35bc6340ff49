"""Classifieds process entry-point.

Usage:
    python -m classifieds [--host HOST] [--port PORT] [--no-seed]
                          [--log-level LEVEL] [--log-format FORMAT]

Logging is configured before anything else so every module gets a working
logger on first import.  Settings come from the environment / ``.env`` and
the command-line flags override them.  The HTTP server runs until
interrupted; the store lives only as long as the process.
"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from classifieds.core import configure_logging
from classifieds.core.exceptions import ConfigError
from classifieds.core.settings import Settings


def load_settings(args: argparse.Namespace) -> Settings:
    """Build :class:`Settings` from the environment, then apply CLI overrides.

    Raises:
        ConfigError: If the environment or an override is invalid.
    """
    overrides: dict[str, object] = {}
    if args.host is not None:
        overrides["api_host"] = args.host
    if args.port is not None:
        overrides["api_port"] = args.port
    if args.no_seed:
        overrides["seed_data"] = False
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if args.log_format is not None:
        overrides["log_format"] = args.log_format

    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="classifieds",
        description="In-memory classifieds marketplace API.",
    )
    parser.add_argument("--host", default=None, help="Override API_HOST.")
    parser.add_argument("--port", type=int, default=None, help="Override API_PORT.")
    parser.add_argument(
        "--no-seed",
        action="store_true",
        help="Start with an empty store instead of the demo user and listings.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        metavar="LEVEL",
        help="Override LOG_LEVEL env var (DEBUG|INFO|WARNING|ERROR).",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        metavar="FORMAT",
        help="Override LOG_FORMAT env var (text|json).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry-point registered in ``pyproject.toml``."""
    args = build_parser().parse_args(argv)

    try:
        configure_logging(level=args.log_level, fmt=args.log_format)
    except ValueError as exc:
        print(f"classifieds: configuration error: {exc}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    logger = logging.getLogger(__name__)

    try:
        settings = load_settings(args)
    except ConfigError as exc:
        logger.critical("Configuration error: %s", exc)
        sys.exit(1)

    # Settings may carry LOG_LEVEL / LOG_FORMAT from .env, which the first call cannot see.
    configure_logging(level=settings.log_level, fmt=settings.log_format, force=True)

    # Imported late so ``--help`` does not pay for FastAPI.
    import uvicorn  # noqa: PLC0415

    from classifieds.api import create_app  # noqa: PLC0415

    logger.info(
        "Classifieds starting on %s:%d (seed=%s)",
        settings.api_host,
        settings.api_port,
        settings.seed_data,
    )
    try:
        uvicorn.run(
            create_app(settings),
            host=settings.api_host,
            port=settings.api_port,
            log_config=None,
        )
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting.")
        sys.exit(0)


if __name__ == "__main__":
    main()
