from __future__ import annotations

import argparse
import os

from gh_notify_bridge.entrypoints import commands
from gh_notify_bridge.settings import DEFAULT_STATE_FILE


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gh-notify-bridge",
        description="Poll GitHub notifications and forward them to UnifiedPush",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("serve", help="Run the HTTP server and background poller")
    subparsers.add_parser("poll-once", help="Run a single poll cycle and exit")

    show_parser = subparsers.add_parser(
        "show-state",
        help="Print the persisted endpoint and poll cursor",
    )
    show_parser.add_argument(
        "--state-file",
        default=os.getenv("STATE_FILE") or DEFAULT_STATE_FILE,
        help="Path to state JSON file",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    command = args.command or "serve"

    if command == "poll-once":
        return commands.poll_once()
    if command == "show-state":
        return commands.show_state(args.state_file)
    return commands.run_service()


if __name__ == "__main__":
    raise SystemExit(main())
