"""JSON snapshot format understood by the file watcher.

A state file describes the full network state of a host::

    {
      "interfaces": [{"id": 2, "name": "eth0", "mtu": 1500,
                      "hw_addr": "52:54:00:12:34:56",
                      "flags": ["up", "running"]}],
      "addresses": [{"iface_id": 2, "local": "10.0.0.5",
                     "broadcast": "10.0.0.255", "prefix_len": 24}],
      "routes": [{"dst": "0.0.0.0", "dst_prefix_len": 0,
                  "gateway": "10.0.0.1", "iface_id_out": 2}]
    }

``flags`` may also be given as an integer bitset.
"""

from __future__ import annotations

import ipaddress
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from netmgr.types import Address, Interface, InterfaceFlags, IPAddress, Route
from netmgr_events.events import AddressEvent, EventBatch, LinkEvent, RouteEvent

_FLAG_NAMES = {
    "up": InterfaceFlags.UP,
    "running": InterfaceFlags.RUNNING,
    "loopback": InterfaceFlags.LOOPBACK,
    "pointtopoint": InterfaceFlags.POINT_TO_POINT,
    "ptp": InterfaceFlags.POINT_TO_POINT,
}

_KNOWN_FLAGS = int(
    InterfaceFlags.ACTIVE | InterfaceFlags.LOOPBACK | InterfaceFlags.POINT_TO_POINT
)


def _parse_ip(value: Optional[str]) -> Optional[IPAddress]:
    if value in (None, ""):
        return None
    return ipaddress.ip_address(value)


def _format_ip(value: Optional[IPAddress]) -> Optional[str]:
    return None if value is None else str(value)


def parse_hw_addr(value: Optional[str]) -> bytes:
    if not value:
        return b""
    return bytes.fromhex(value.replace(":", ""))


def format_hw_addr(value: bytes) -> str:
    return ":".join(f"{b:02x}" for b in value)


def _parse_flags(value: Any) -> InterfaceFlags:
    if value is None:
        return InterfaceFlags.NONE
    if isinstance(value, int):
        return InterfaceFlags(value & _KNOWN_FLAGS)
    flags = InterfaceFlags.NONE
    for name in value:
        try:
            flags |= _FLAG_NAMES[str(name).lower()]
        except KeyError:
            raise ValueError(f"Unsupported interface flag '{name}'") from None
    return flags


def _format_flags(flags: InterfaceFlags) -> List[str]:
    names = []
    for name, flag in (
        ("up", InterfaceFlags.UP),
        ("running", InterfaceFlags.RUNNING),
        ("loopback", InterfaceFlags.LOOPBACK),
        ("pointtopoint", InterfaceFlags.POINT_TO_POINT),
    ):
        if flag in flags:
            names.append(name)
    return names


def _parse_interface(entry: Mapping[str, Any]) -> Interface:
    return Interface(
        id=int(entry["id"]),
        name=str(entry.get("name", "")),
        type=int(entry.get("type", 0)),
        mtu=int(entry.get("mtu", 0)),
        hw_addr=parse_hw_addr(entry.get("hw_addr")),
        hw_broadcast_addr=parse_hw_addr(entry.get("hw_broadcast_addr")),
        flags=_parse_flags(entry.get("flags")),
    )


def _parse_address(entry: Mapping[str, Any]) -> Address:
    return Address(
        local_address=_parse_ip(entry["local"]),
        broadcast_address=_parse_ip(entry.get("broadcast")),
        iface_id=int(entry["iface_id"]),
        prefix_len=int(entry.get("prefix_len", 0)),
    )


def _parse_route(entry: Mapping[str, Any]) -> Route:
    return Route(
        dst=_parse_ip(entry.get("dst")),
        dst_prefix_len=int(entry.get("dst_prefix_len", 0)),
        gateway=_parse_ip(entry.get("gateway")),
        iface_id_out=int(entry.get("iface_id_out", 0)),
        iface_id_in=int(entry.get("iface_id_in", 0)),
        src=_parse_ip(entry.get("src")),
        src_prefix_len=int(entry.get("src_prefix_len", 0)),
        metric=int(entry.get("metric", 0)),
        table=int(entry.get("table", 0)),
        protocol=int(entry.get("protocol", 0)),
    )


def parse_state(payload: Any) -> EventBatch:
    """Convert a decoded state document into a snapshot batch."""

    if not isinstance(payload, dict):
        raise ValueError("state file must contain a JSON object")

    sections = {}
    for key in ("interfaces", "addresses", "routes"):
        entries = payload.get(key, [])
        if not isinstance(entries, list):
            raise ValueError(f"'{key}' must be a list")
        sections[key] = entries

    try:
        return EventBatch(
            links=[LinkEvent(_parse_interface(e)) for e in sections["interfaces"]],
            addresses=[AddressEvent(_parse_address(e)) for e in sections["addresses"]],
            routes=[RouteEvent(_parse_route(e)) for e in sections["routes"]],
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"malformed state entry: {exc!r}") from exc


def load_state(path: Path) -> EventBatch:
    return parse_state(json.loads(path.read_text()))


def dump_state(
    interfaces: Iterable[Interface],
    addresses: Iterable[Address],
    routes: Iterable[Route],
) -> Dict[str, List[Dict[str, Any]]]:
    """Build a state document; the inverse of :func:`parse_state`."""

    return {
        "interfaces": [
            {
                "id": iface.id,
                "name": iface.name,
                "type": iface.type,
                "mtu": iface.mtu,
                "hw_addr": format_hw_addr(iface.hw_addr),
                "hw_broadcast_addr": format_hw_addr(iface.hw_broadcast_addr),
                "flags": _format_flags(iface.flags),
            }
            for iface in sorted(interfaces, key=lambda i: i.id)
        ],
        "addresses": [
            {
                "iface_id": addr.iface_id,
                "local": _format_ip(addr.local_address),
                "broadcast": _format_ip(addr.broadcast_address),
                "prefix_len": addr.prefix_len,
            }
            for addr in sorted(addresses, key=lambda a: (a.iface_id, str(a.local_address)))
        ],
        "routes": [
            {
                "dst": _format_ip(route.dst),
                "dst_prefix_len": route.dst_prefix_len,
                "gateway": _format_ip(route.gateway),
                "iface_id_out": route.iface_id_out,
                "iface_id_in": route.iface_id_in,
                "src": _format_ip(route.src),
                "src_prefix_len": route.src_prefix_len,
                "metric": route.metric,
                "table": route.table,
                "protocol": route.protocol,
            }
            for route in sorted(routes, key=str)
        ],
    }
