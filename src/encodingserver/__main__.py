"""
=============================================================================
ENCODING SERVER CLI ENTRY POINT
=============================================================================

    # Encode ./test.html and serve it on localhost:8080
    python -m encodingserver

    # Another file, another port, all interfaces
    python -m encodingserver --source site/index.html --port 3000 --host 0.0.0.0

    # Serve variants generated by an earlier run
    python -m encodingserver --no-generate

    # JSON access log, verbose
    python -m encodingserver --log-format json --log-level DEBUG

Options not given on the command line fall back to the HTTP_* environment
variables (see ServerConfig.from_env), then to the built-in defaults.

Try it:

    curl -sv -H "Accept-Encoding: gzip, br" http://127.0.0.1:8080/ -o /dev/null
    curl -s --compressed http://127.0.0.1:8080/

=============================================================================
"""

import argparse
import sys
from typing import Optional

from . import __version__
from .config import ServerConfig
from .server import EncodingServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="encoding-server",
        description="Serve a pre-compressed file in the best encoding the client accepts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m encodingserver                          # ./test.html on :8080
  python -m encodingserver --source index.html      # another asset
  python -m encodingserver --port 3000              # custom port
  python -m encodingserver --no-generate            # reuse existing variants
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080, 0 picks a free port)"
    )

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Minimum worker threads (max will be 2x this)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--source", "-s",
        default=None,
        help="File to encode and serve (default: test.html)"
    )

    parser.add_argument(
        "--no-generate",
        action="store_true",
        help="Do not (re)write the .br/.gz/.zz variants at startup"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"EncodingServer {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment-derived config with the given CLI options on top."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.workers is not None:
        config.min_workers = args.workers
        config.max_workers = args.workers * 2
    if args.source is not None:
        config.source_path = args.source
    if args.log_level is not None:
        config.log_level = args.log_level

    config.log_format = args.log_format
    config.generate_on_start = not args.no_generate
    return config


def main(argv: Optional[list[str]] = None):
    """
    Main CLI entry point.

    Any startup failure (bad option value, unreadable source, port in use)
    is printed as "Error: ..." and exits with status 1.
    """
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = EncodingServer(config)
        server.run()
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
