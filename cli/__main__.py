"""Command-line entry point: ``mathtutor-cli`` or ``python -m cli``."""

import argparse
import asyncio
import sys
from collections.abc import Sequence

from .config import CLIConfig
from .tutor_cli import main

_DEFAULTS = CLIConfig()


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mathtutor-cli",
        description=(
            "Ask math problems and read the streamed answers.\n"
            "Finish a question with an empty line; /clear, /export <path>,\n"
            "exit and quit are available at the prompt."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", default=_DEFAULTS.host, help="server host")
    parser.add_argument("--port", type=int, default=_DEFAULTS.port, help="server port")
    parser.add_argument(
        "--api-path",
        default=_DEFAULTS.api_path,
        help=f"path of the solve endpoint (default: {_DEFAULTS.api_path})",
    )
    parser.add_argument(
        "--connect-timeout",
        type=float,
        default=_DEFAULTS.connect_timeout,
        metavar="SECONDS",
        help="give up connecting after this long; answers themselves may stream for minutes",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="log request URLs and response headers to stderr",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> CLIConfig:
    return CLIConfig(
        host=args.host,
        port=args.port,
        api_path=args.api_path,
        connect_timeout=args.connect_timeout,
    )


def cli_entry(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        asyncio.run(main(build_config(args), debug=args.debug))
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    cli_entry()
