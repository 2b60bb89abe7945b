"""Inspect and repair the role map file while the bot is stopped, and report telemetry."""
from __future__ import annotations

import argparse
import json
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..config import get_settings
from ..store import RoleMaps, RoleMapStore
from ..telemetry import TelemetryCollector, get_telemetry


def _store(args: argparse.Namespace) -> RoleMapStore:
    if args.file is not None:
        return RoleMapStore(args.file)
    return RoleMapStore(get_settings().data_path)


def unknown_buttons(maps: RoleMaps, valid_ids: Tuple[str, ...]) -> List[Tuple[str, str, str]]:
    """Mappings whose button is no longer rendered on the panel."""

    return [
        (guild_id, button_id, role_id)
        for guild_id, buttons in sorted(maps.items())
        for button_id, role_id in sorted(buttons.items())
        if button_id not in valid_ids
    ]


def cmd_show(args: argparse.Namespace) -> int:
    maps = _store(args).load()
    if args.guild:
        maps = {args.guild: maps.get(args.guild, {})}
    print(json.dumps(maps, indent=2, sort_keys=True))
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    store = _store(args)
    maps = store.load()
    stale = unknown_buttons(maps, get_settings().button_ids)
    if not stale:
        total = sum(len(buttons) for buttons in maps.values())
        print(f"{total} mapping(s) across {len(maps)} guild(s); all buttons known.")
        return 0
    print("Mappings for buttons missing from the panel:")
    for guild_id, button_id, role_id in stale:
        print(f"  - guild {guild_id}: {button_id} -> role {role_id}")
    return 1


def cmd_unset(args: argparse.Namespace) -> int:
    store = _store(args)
    maps = store.load()
    buttons = maps.get(args.guild_id, {})
    if args.button_id not in buttons:
        print(f"No mapping for {args.button_id} in guild {args.guild_id}.")
        return 1
    role_id = buttons.pop(args.button_id)
    if not buttons:
        maps.pop(args.guild_id, None)
    if not store.save(maps):
        print(f"Failed to write {store.path}; see log output.")
        return 1
    print(f"Removed {args.button_id} -> role {role_id} from guild {args.guild_id}.")
    return 0

def telemetry_report(collector: TelemetryCollector, *, hours: int = 24) -> Dict[str, Any]:
    """Gather command, toggle and error aggregates for the last ``hours``."""

    collector.flush()
    return {
        "database": str(collector.db_path),
        "hours": hours,
        "commands": collector.get_command_stats(time.time() - hours * 3600),
        "toggles": collector.get_toggle_summary(hours),
        "errors": collector.get_error_summary(hours),
    }


def cmd_stats(args: argparse.Namespace) -> int:
    if args.telemetry_db is not None:
        collector = TelemetryCollector(args.telemetry_db)
    else:
        collector = get_telemetry()
    payload = telemetry_report(collector, hours=args.hours)
    if args.cleanup_days is not None:
        payload["deleted_events"] = collector.cleanup_old_data(days_to_keep=args.cleanup_days)
    print(json.dumps(payload, indent=2, sort_keys=True))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect or edit stored reaction role maps.")
    parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Role map JSON file (default: resolved from settings and REACTION_ROLES_DATA_DIR).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    show = subparsers.add_parser("show", help="Print stored mappings as JSON.")
    show.add_argument("--guild", type=str, help="Only print one guild.")
    show.set_defaults(func=cmd_show)

    check = subparsers.add_parser(
        "check", help="Report mappings whose button id is not on the panel."
    )
    check.set_defaults(func=cmd_check)

    unset = subparsers.add_parser(
        "unset", help="Remove one mapping. Stop the bot first; it rewrites the file."
    )
    unset.add_argument("guild_id", type=str)
    unset.add_argument("button_id", type=str)
    unset.set_defaults(func=cmd_unset)

    stats = subparsers.add_parser("stats", help="Print telemetry aggregates as JSON.")
    stats.add_argument(
        "--telemetry-db",
        type=Path,
        default=None,
        help="Telemetry SQLite database (default: REACTION_ROLES_TELEMETRY_DB or telemetry.db).",
    )
    stats.add_argument("--hours", type=int, default=24, help="Look-back window in hours.")
    stats.add_argument(
        "--cleanup-days",
        type=int,
        default=None,
        help="Also delete events older than this many days.",
    )
    stats.set_defaults(func=cmd_stats)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
