#!/usr/bin/env python3
"""Unit admin CLI for local roster management.

Commands:
    units   - List internal units and their rank ladders
    show    - Show an officer's units, ranks and level in every unit
    apply   - Run a management action as a given caller

Usage:
    uv run unit-admin units
    uv run unit-admin show <uid>
    uv run unit-admin apply iad add-member <uid> --as <caller-uid>
    uv run unit-admin apply iad assign-rank <uid> --rank iad-deputy-chief-inspector --as <caller>
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Silence noisy libraries
logging.getLogger("azure").setLevel(logging.WARNING)


def cmd_units(args: argparse.Namespace) -> int:
    """Print the unit catalog."""
    from lspd.units.registry import RANKS, UNITS

    for unit in UNITS.values():
        print(f"{unit.id:<10} {unit.label}")
        for rank in reversed(unit.ranks):
            rank_def = RANKS[rank]
            print(f"    {rank_def.tier.name.lower():<10} {rank_def.id}")
    return 0


async def _show(uid: str) -> int:
    from lspd.core.roles import is_high_command, role_label
    from lspd.profiles.store import ProfileStore
    from lspd.units.permissions import permission_level
    from lspd.units.registry import UNITS, describe_level

    async with ProfileStore() as store:
        record = await store.get(uid)

    if record is None:
        print(f"Error: Officer {uid} not found")
        return 1

    print(f"{record.display_name} ({record.login})")
    hc = " [high command]" if is_high_command(record.role) else ""
    print(f"  Role:  {role_label(record.role)}{hc}")
    print(f"  Units: {', '.join(record.units) or '(none)'}")
    print(f"  Ranks: {', '.join(record.additional_ranks) or '(none)'}")
    for unit in UNITS:
        level = permission_level(unit, record.units, record.additional_ranks)
        if level:
            print(f"  {unit:<10} level {level} ({describe_level(level)})")
    return 0


async def _apply(unit: str, action: str, uid: str, rank: str | None, caller_uid: str) -> int:
    from lspd.auth import UserContext, set_current_user
    from lspd.profiles.store import ProfileStore
    from lspd.units.errors import UnitManagementError
    from lspd.units.management import ManagementRequest, manage_unit

    caller = UserContext(user_id=caller_uid, name="Local Admin")
    set_current_user(caller)

    try:
        request = ManagementRequest.parse(
            {"unit": unit, "action": action, "targetUid": uid, "rank": rank}
        )
        async with ProfileStore() as store:
            result = await manage_unit(store, caller, request)
    except UnitManagementError as e:
        print(f"Error ({e.status}): {e.message}")
        return 1

    print("Updated" if result.changed else "No changes")
    print(f"  Units: {', '.join(result.units) or '(none)'}")
    print(f"  Ranks: {', '.join(result.ranks) or '(none)'}")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Show an officer's unit permissions."""
    load_dotenv()
    return asyncio.run(_show(args.uid))


def cmd_apply(args: argparse.Namespace) -> int:
    """Apply a management action as another officer."""
    load_dotenv()
    return asyncio.run(_apply(args.unit, args.action, args.uid, args.rank, args.caller))


def main() -> None:
    """CLI entry point for unit admin commands."""
    parser = argparse.ArgumentParser(description="Unit roster admin CLI")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("units", help="List units and rank ladders")

    show_p = sub.add_parser("show", help="Show an officer's unit permissions")
    show_p.add_argument("uid", help="Officer profile ID")

    apply_p = sub.add_parser("apply", help="Run a management action")
    apply_p.add_argument("unit", help="Unit ID (e.g. iad)")
    apply_p.add_argument(
        "action", choices=["add-member", "remove-member", "assign-rank", "remove-rank"]
    )
    apply_p.add_argument("uid", help="Target officer profile ID")
    apply_p.add_argument("--rank", help="Rank ID for assign-rank / remove-rank")
    apply_p.add_argument(
        "--as", dest="caller", required=True, help="Profile ID of the acting officer"
    )

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "units": cmd_units,
        "show": cmd_show,
        "apply": cmd_apply,
    }
    sys.exit(commands[args.command](args))


if __name__ == "__main__":
    main()
