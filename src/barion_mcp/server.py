"""
Command-line entry point for the Barion MCP server.

Usage:
    barion-mcp --poskey <POSKey> --api-key <API key> --environment test

Every flag has an environment-variable equivalent (BARION_POS_KEY,
BARION_API_KEY, BARION_ENVIRONMENT). The server speaks MCP over stdio, so
all diagnostics go to stderr.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import ValidationError

from barion_mcp import __version__
from barion_mcp.config import MISSING_CREDENTIALS_MESSAGE, BarionConfig
from barion_mcp.tools import register_all_tools

logger = logging.getLogger("barion_mcp")

SERVER_NAME = "barion-mcp"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=SERVER_NAME,
        description="Barion payment and wallet tools over the Model Context Protocol",
    )
    parser.add_argument(
        "--poskey",
        "-p",
        help="Barion POSKey for payment operations (or use BARION_POS_KEY env variable)",
    )
    parser.add_argument(
        "--api-key",
        "-k",
        dest="api_key",
        help="Barion API Key for wallet operations (or use BARION_API_KEY env variable)",
    )
    parser.add_argument(
        "--environment",
        "-e",
        choices=["test", "prod"],
        help="Barion environment: test or prod (or use BARION_ENVIRONMENT env variable, "
        "default: test)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=os.getenv("BARION_LOG_LEVEL", "WARNING"),
        help="Logging level for stderr diagnostics (or use BARION_LOG_LEVEL env variable, "
        "default: WARNING)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # Request lines from the HTTP stack are redundant with our own redacted ones.
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


def create_server(config: BarionConfig) -> FastMCP:
    """Build the MCP server with every tool the config's credentials allow."""
    mcp = FastMCP(
        SERVER_NAME,
        version=__version__,
        instructions="Barion payment processing and wallet management tools.",
    )
    register_all_tools(mcp, config)
    return mcp


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    # argparse does not check choices against a default taken from the environment.
    if args.log_level not in LOG_LEVELS:
        parser.error(
            f"invalid BARION_LOG_LEVEL: {args.log_level!r} "
            f"(choose from {', '.join(LOG_LEVELS)})"
        )
    configure_logging(args.log_level)

    try:
        config = BarionConfig.resolve(vars(args))
    except ValidationError as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    logger.info("POSKey present: %s", config.pos_key is not None)
    logger.info("API Key present: %s", config.api_key is not None)
    logger.info("Environment: %s", config.environment)

    if not config.has_credentials:
        print(MISSING_CREDENTIALS_MESSAGE, file=sys.stderr)
        sys.exit(1)

    mcp = create_server(config)
    logger.info("Barion MCP server starting on stdio")
    mcp.run()


if __name__ == "__main__":
    main()
