"""
=============================================================================
COMMAND LINE
=============================================================================

    # Serve ./public on port 3000 (publicDir from ./settings.json)
    python -m staticserver

    # Port as a positional argument or a flag
    python -m staticserver 8080
    python -m staticserver --port 8080

    # Everything from the command line, no settings file needed
    python -m staticserver --public-dir ./public --host 0.0.0.0 --workers 8

A port that is not a number falls back to 3000. A missing public
directory is fatal: the error is printed and the exit status is 1.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import DEFAULT_SETTINGS_FILE, ServerConfig, parse_port
from .exceptions import ConfigError
from .server import HTTPServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="staticserver",
        description="Serve a directory over HTTP with byte-range support",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m staticserver                        # port 3000, settings.json
  python -m staticserver 8080                   # custom port
  python -m staticserver --public-dir ./public  # no settings file needed
  python -m staticserver --host 0.0.0.0         # listen on all interfaces
        """,
    )

    parser.add_argument(
        "port",
        nargs="?",
        default=None,
        help="Port to listen on (default: 3000)",
    )
    parser.add_argument(
        "--port", "-p",
        dest="port_option",
        default=None,
        help="Port to listen on; overrides the positional port",
    )
    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)",
    )
    parser.add_argument(
        "--public-dir", "-d",
        default=None,
        help="Directory to serve; overrides publicDir from the settings file",
    )
    parser.add_argument(
        "--settings", "-s",
        default=DEFAULT_SETTINGS_FILE,
        help=f"JSON settings file (default: {DEFAULT_SETTINGS_FILE})",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Number of worker threads (default: 4, max will be 2x this)",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Access log format (default: text)",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"staticserver {__version__}",
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """
    Merge the settings file, environment and command line into a config.

    Raises:
        ConfigError: The settings file is unreadable or malformed.
    """
    raw_port = args.port_option if args.port_option is not None else args.port

    overrides = {
        "public_dir": args.public_dir,
        "host": args.host,
        "port": parse_port(raw_port) if raw_port is not None else None,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    if args.workers is not None:
        overrides["min_workers"] = args.workers
        overrides["max_workers"] = args.workers * 2

    return ServerConfig.load(settings_file=args.settings, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        server = HTTPServer(config_from_args(args))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    server.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
