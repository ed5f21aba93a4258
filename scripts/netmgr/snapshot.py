#!/usr/bin/env python3
"""Dump the host's links, addresses and routes to a netmgr state file."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Set

REPO_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from netmgr import NetManager  # noqa: E402
from netmgr.types import Address, Route  # noqa: E402
from netmgr_agent import netlink, state_file  # noqa: E402
from netmgr_events import EventTranslator  # noqa: E402
from netmgr_events.translator import RT_TABLE_LOCAL  # noqa: E402


LOG = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("deploy/netmgr/state.json"),
        help="Where the state file will be written",
    )
    parser.add_argument(
        "--active-only",
        action="store_true",
        help="Only include addresses and routes on active interfaces",
    )
    parser.add_argument(
        "--include-local-table",
        action="store_true",
        help=f"Keep routes from the local routing table ({RT_TABLE_LOCAL})",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args()


def collect(manager: NetManager, active_only: bool):
    if active_only:
        return manager.addresses, manager.routes

    addresses: Set[Address] = set()
    routes: Set[Route] = set(manager.routes)
    for iface_id in manager.interfaces():
        addresses |= manager.interface_addresses(iface_id)
        routes |= manager.interface_routes(iface_id)
    return addresses, routes


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    ignored = () if args.include_local_table else (RT_TABLE_LOCAL,)
    manager = NetManager()
    translator = EventTranslator(manager, ignored_tables=ignored)
    translator.apply_snapshot(netlink.dump_state())

    interfaces = manager.interfaces()
    if not interfaces:
        LOG.warning("The kernel reported no interfaces")
    addresses, routes = collect(manager, args.active_only)

    document = state_file.dump_state(interfaces.values(), addresses, routes)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(json.dumps(document, indent=2) + "\n")
    LOG.info(
        "Wrote %d interface(s), %d address(es) and %d route(s) to %s",
        len(document["interfaces"]),
        len(document["addresses"]),
        len(document["routes"]),
        args.output,
    )


if __name__ == "__main__":
    main()
