from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Optional

from . import __version__
from .engine.aria2 import Aria2Client
from .kernel.errors import ConfigError, GatewayError
from .kernel.retention import auto_clean, delete_oldest, oldest_file, used_space
from .kernel.settings import load_settings, load_settings_file, save_settings_file
from .util.obslog import setup_root_json_logging


def _print_json(obj: Any) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def _error(e: GatewayError) -> dict:
    return {"ok": False, "error": {"code": e.code, "message": e.message, "details": e.details}}


def cmd_run(args: argparse.Namespace) -> int:
    from .daemon.server import serve_forever

    return int(serve_forever(load_settings()))


def cmd_clean(args: argparse.Namespace) -> int:
    s = load_settings()
    setup_root_json_logging(component="cli", level=s.log_level)
    if args.oldest:
        try:
            f = delete_oldest(s.save_dir)
        except GatewayError as e:
            _print_json(_error(e))
            return 1
        _print_json({"ok": True, "result": {"deleted": str(f.path), "size_bytes": f.size_bytes}})
        return 0

    days = s.auto_clean_days if args.days is None else int(args.days)
    if days < 0:
        _print_json({"ok": False, "error": {"code": "invalid_argument", "message": "--days must be >= 0"}})
        return 2
    report = auto_clean(s.save_dir, days)
    _print_json({"ok": True, "result": report.to_dict()})
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    s = load_settings()
    oldest = oldest_file(s.save_dir)
    storage = {
        "root": str(s.save_dir),
        "used_bytes": used_space(s.save_dir),
        "oldest": str(oldest.path) if oldest else None,
    }
    client = Aria2Client(
        s.aria2_rpc_url,
        s.save_dir,
        timeout_s=s.aria2_timeout_seconds,
        secret=s.aria2_rpc_secret,
    )
    try:
        engine = client.global_stats().model_dump()
    except GatewayError as e:
        _print_json({**_error(e), "result": {"storage": storage}})
        return 1
    _print_json({"ok": True, "result": {"engine": engine, "storage": storage}})
    return 0


def cmd_keygen(args: argparse.Namespace) -> int:
    from pynostr.key import PrivateKey

    key = PrivateKey()
    out = {"nsec": key.bech32(), "npub": key.public_key.bech32(), "pubkey": key.public_key.hex()}
    if args.write:
        doc = load_settings_file()
        doc["nsec"] = out["nsec"]
        out["written"] = str(save_settings_file(doc))
    _print_json({"ok": True, "result": out})
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    print(__version__)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="remote-dl", description="Remote download gateway (Telegram + Nostr -> aria2)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_run = sub.add_parser("run", help="Run the gateway in the foreground")
    p_run.set_defaults(func=cmd_run)

    p_clean = sub.add_parser("clean", help="Run one retention sweep now")
    mode = p_clean.add_mutually_exclusive_group()
    mode.add_argument("--days", type=int, default=None, help="Delete files older than N days (default: AUTO_CLEAN_DAYS)")
    mode.add_argument("--oldest", action="store_true", help="Delete only the single oldest file")
    p_clean.set_defaults(func=cmd_clean)

    p_stats = sub.add_parser("stats", help="Show engine and storage stats")
    p_stats.set_defaults(func=cmd_stats)

    p_keygen = sub.add_parser("keygen", help="Generate a Nostr identity")
    p_keygen.add_argument("--write", action="store_true", help="Store the nsec in settings.yaml")
    p_keygen.set_defaults(func=cmd_keygen)

    p_version = sub.add_parser("version", help="Print version")
    p_version.set_defaults(func=cmd_version)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args))
    except ConfigError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
