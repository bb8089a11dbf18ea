"""
Noughts CLI - Command-line interface for the server.

Usage:
    noughts serve [--host HOST] [--port PORT] [--log-level LEVEL]
    noughts version
"""

import argparse
import logging
import sys


def main(argv=None):
    """Main CLI entry point."""
    from .api.app import HOST, PORT, LOG_LEVEL

    parser = argparse.ArgumentParser(
        description="Noughts - Multiplayer Tic-Tac-Toe Server",
        prog="noughts",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the WebSocket server")
    serve_parser.add_argument("--host", default=HOST, help=f"Bind address (default {HOST})")
    serve_parser.add_argument("--port", type=int, default=PORT, help=f"Port (default {PORT})")
    serve_parser.add_argument(
        "--log-level",
        default=LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging level",
    )

    subparsers.add_parser("version", help="Print the version")

    args = parser.parse_args(argv)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "version":
        cmd_version(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the server under uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info("WebSocket server running on %s:%s", args.host, args.port)
    uvicorn.run(
        "noughts.api.app:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )


def cmd_version(args):
    from . import __version__
    print(f"noughts {__version__}")


if __name__ == "__main__":
    main()
