"""
Songbook - Entry Point

Run with: python -m songbook
"""

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path

from songbook import __version__
from songbook.config import ConfigError, ServiceConfig, load_config
from songbook.server import SongbookServer


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="songbook",
        description="Songbook - song catalog service",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to a TOML config file (default: bundled songbook.toml)",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host address to bind to (overrides config)",
    )

    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help="HTTP port (overrides config)",
    )

    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="SQLite database path (overrides config)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ServiceConfig:
    """Load config and apply command line overrides on top."""
    config = load_config(args.config)

    overrides = {}
    if args.host is not None:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.db is not None:
        overrides["db_path"] = args.db

    return dataclasses.replace(config, **overrides) if overrides else config


async def run_server(config: ServiceConfig) -> None:
    """Start and run the Songbook server."""
    server = SongbookServer(config)
    await server.run()


def main() -> int:
    """Main entry point for the application."""
    args = parse_args()
    setup_logging(verbose=args.verbose)

    logger = logging.getLogger(__name__)

    try:
        config = build_config(args)
    except (ConfigError, OSError) as e:
        logger.error("Error loading config: %s", e)
        return 1
    logger.info("Config loaded")

    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        return 1

    logger.info("Server stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
