"""
Cadence MPD client - Entry Point

Run with: python -m cadence [command]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict, is_dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable

from cadence.client import MpdClient
from cadence.config import ClientConfig, get_client_config, load_client_config
from cadence.protocol.errors import Disconnected, MpdError

logger = logging.getLogger(__name__)

COMMANDS: dict[str, Callable[[MpdClient], Awaitable[Any]]] = {
    "status": lambda mpd: mpd.status(),
    "stats": lambda mpd: mpd.stats(),
    "queue": lambda mpd: mpd.queue(),
    "listall": lambda mpd: mpd.listall(),
    "idle": lambda mpd: mpd.idle(),
}


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


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="cadence",
        description="Cadence - query a Music Player Daemon",
    )

    parser.add_argument(
        "command",
        nargs="?",
        default="status",
        choices=sorted(COMMANDS),
        help="What to ask the server (default: status)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Server host (default: from config, localhost)",
    )

    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help="Server port (default: from config, 6600)",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to a client.toml file",
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    return parser.parse_args(argv)


def to_jsonable(value: Any) -> Any:
    """Convert a reply value into something json.dumps accepts."""
    if is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(asdict(value))
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, datetime):
        return value.isoformat()
    return value


async def run_command(mpd: MpdClient, name: str, config: ClientConfig) -> Any:
    """
    Run one command, reconnecting when the server dropped the connection.

    The client itself never retries; this is the policy the tool applies.
    """
    attempts = 0
    while True:
        try:
            return await COMMANDS[name](mpd)
        except Disconnected:
            if attempts >= config.reconnect_attempts:
                raise
            attempts += 1
            logger.info(
                "Server disconnected, reconnecting (%d/%d)",
                attempts,
                config.reconnect_attempts,
            )
            await asyncio.sleep(config.reconnect_delay)
            try:
                await mpd.reconnect()
            except MpdError as e:
                logger.warning("Reconnect failed: %s", e)


async def run(args: argparse.Namespace) -> None:
    """Connect, run the requested command and print the result."""
    config = load_client_config(args.config) if args.config else get_client_config()

    if args.host is not None:
        config = replace(config, host=args.host)
    if args.port is not None:
        config = replace(config, port=args.port)

    async with MpdClient(config=config) as mpd:
        result = await run_command(mpd, args.command, config)

    print(json.dumps(to_jsonable(result), indent=2))


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except MpdError as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
