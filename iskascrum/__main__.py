from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from iskascrum.api import OPERATIONS, call, to_plain
from iskascrum.core import Core
from iskascrum.tools import TOOLS


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="iska-scrum")
    parser.add_argument("--verbose", action="store_true")
    parser.add_argument("--config", type=Path, default=None, help="Config file (default: ~/.iska-scrum/config.json)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Write the default config if missing and create the tables")
    sub.add_parser("show-config", help="Print the active configuration")
    sub.add_parser("test-connection", help="Try to connect with the active configuration")

    for name in TOOLS:
        sub.add_parser(name, help="Read one JSON request from stdin")

    c = sub.add_parser("call", help="Run one named operation")
    c.add_argument("operation", choices=sorted(OPERATIONS))
    c.add_argument("args_json", nargs="?", default="[]", help="JSON array of positional arguments")

    return parser


def _print_json(value: Any) -> None:
    print(json.dumps(to_plain(value), ensure_ascii=False, indent=2))


def _parse_args_json(raw: str) -> list[Any]:
    value = json.loads(raw)
    if isinstance(value, list):
        return value
    return [value]


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    load_dotenv()

    if args.command in TOOLS:
        return TOOLS[args.command](sys.stdin, sys.stdout, config_path=args.config)

    core = Core(args.config)
    try:
        if args.command == "show-config":
            _print_json(core.get_config())
            return 0
        if args.command == "test-connection":
            check = core.test_connection()
            _print_json(check)
            return 0 if check.success else 1
        with core:
            if args.command == "init":
                _print_json({"ok": True, "backend": core.store.backend.name, "config": str(core.config_store.path)})
                return 0
            _print_json(call(core, args.operation, *_parse_args_json(args.args_json)))
            return 0
    except Exception as e:
        logging.error("%s failed: %s", args.command, e)
        _print_json({"ok": False, "error": str(e)})
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
