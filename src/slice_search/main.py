"""
Service entry point.

    slice-search [--config PATH] [--host HOST] [--port PORT]

`--config` sets CONFIG_PATH before settings are loaded; host and port
override the `server` section.
"""

from __future__ import annotations

import argparse
import os
import sys

import uvicorn

from slice_search.app import create_app
from slice_search.config import ConfigurationError, get_settings


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="slice-search",
        description="Serve streaming similarity search over a float32 vector blob.",
    )
    parser.add_argument("--config", help="Path to config.yaml (overrides CONFIG_PATH)")
    parser.add_argument("--host", help="Bind address (overrides server.host)")
    parser.add_argument("--port", type=int, help="Bind port (overrides server.port)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the service with uvicorn."""
    args = parse_args(argv)
    if args.config:
        os.environ["CONFIG_PATH"] = args.config

    try:
        settings = get_settings()
    except ConfigurationError as e:
        print(f"FATAL: Configuration error\n{e}", file=sys.stderr)
        return 1

    uvicorn.run(
        create_app(),
        host=args.host or settings.server.host,
        port=args.port if args.port is not None else settings.server.port,
        log_level="warning",
        access_log=False,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
