"""Read the kernel's network state over rtnetlink with pyroute2.

Conversion functions take pyroute2 messages (anything exposing
``msg[field]`` and ``msg.get_attr(name)``) and return :mod:`netmgr.types`
values.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
from typing import Optional

from pyroute2 import IPRoute

from netmgr.types import Address, Interface, InterfaceFlags, IPAddress, Route
from netmgr_events.events import (
    Action,
    AddressEvent,
    EventBatch,
    LinkEvent,
    RouteEvent,
)

from .state_file import parse_hw_addr

LOG = logging.getLogger(__name__)

# From <linux/if.h>
IFF_UP = 0x1
IFF_LOOPBACK = 0x8
IFF_POINTOPOINT = 0x10
IFF_RUNNING = 0x40

_FLAG_MAP = (
    (IFF_UP, InterfaceFlags.UP),
    (IFF_RUNNING, InterfaceFlags.RUNNING),
    (IFF_LOOPBACK, InterfaceFlags.LOOPBACK),
    (IFF_POINTOPOINT, InterfaceFlags.POINT_TO_POINT),
)

_DEL_EVENTS = ("RTM_DELLINK", "RTM_DELADDR", "RTM_DELROUTE")


def _attr_ip(msg, name: str) -> Optional[IPAddress]:
    value = msg.get_attr(name)
    if not value:
        return None
    return ipaddress.ip_address(value)


def _unspecified(family: int) -> IPAddress:
    if family == socket.AF_INET6:
        return ipaddress.IPv6Address(0)
    return ipaddress.IPv4Address(0)


def convert_flags(ifi_flags: int) -> InterfaceFlags:
    flags = InterfaceFlags.NONE
    for kernel_flag, flag in _FLAG_MAP:
        if ifi_flags & kernel_flag:
            flags |= flag
    return flags


def link_from_msg(msg) -> Interface:
    return Interface(
        id=int(msg["index"]),
        name=msg.get_attr("IFLA_IFNAME") or "",
        type=int(msg["ifi_type"]),
        mtu=int(msg.get_attr("IFLA_MTU") or 0),
        hw_addr=parse_hw_addr(msg.get_attr("IFLA_ADDRESS")),
        hw_broadcast_addr=parse_hw_addr(msg.get_attr("IFLA_BROADCAST")),
        flags=convert_flags(int(msg["flags"])),
    )


def address_from_msg(msg) -> Address:
    # On point-to-point links IFA_LOCAL is ours and IFA_ADDRESS the peer.
    local = _attr_ip(msg, "IFA_LOCAL")
    address = _attr_ip(msg, "IFA_ADDRESS")
    broadcast = _attr_ip(msg, "IFA_BROADCAST")

    if local is None:
        local = address
    elif broadcast is None and address is not None and address != local:
        broadcast = address

    return Address(
        local_address=local,
        broadcast_address=broadcast,
        iface_id=int(msg["index"]),
        prefix_len=int(msg["prefixlen"]),
    )


def route_from_msg(msg) -> Route:
    family = int(msg["family"])
    dst = _attr_ip(msg, "RTA_DST")
    if dst is None:
        dst = _unspecified(family)

    # RTA_TABLE carries ids above 255; the header field is truncated.
    table = msg.get_attr("RTA_TABLE")
    if table is None:
        table = msg["table"]

    return Route(
        dst=dst,
        dst_prefix_len=int(msg["dst_len"]),
        gateway=_attr_ip(msg, "RTA_GATEWAY"),
        iface_id_out=int(msg.get_attr("RTA_OIF") or 0),
        iface_id_in=int(msg.get_attr("RTA_IIF") or 0),
        src=_attr_ip(msg, "RTA_SRC"),
        src_prefix_len=int(msg["src_len"]),
        metric=int(msg.get_attr("RTA_PRIORITY") or 0),
        table=int(table),
        protocol=int(msg["proto"]),
    )


def _action(msg) -> Action:
    return Action.REMOVE if msg.get("event") in _DEL_EVENTS else Action.ADD


def batch_from_messages(links, addresses, routes) -> EventBatch:
    batch = EventBatch()
    for msg in links:
        batch.links.append(LinkEvent(link_from_msg(msg), _action(msg)))
    for msg in addresses:
        if int(msg["family"]) not in (socket.AF_INET, socket.AF_INET6):
            LOG.debug("Skipping address of unsupported family %s", msg["family"])
            continue
        batch.addresses.append(AddressEvent(address_from_msg(msg), _action(msg)))
    for msg in routes:
        if int(msg["family"]) not in (socket.AF_INET, socket.AF_INET6):
            continue
        batch.routes.append(RouteEvent(route_from_msg(msg), _action(msg)))
    return batch


def dump_state(ipr: Optional[IPRoute] = None) -> EventBatch:
    """Dump links, addresses and routes from the kernel as a snapshot batch."""

    if ipr is None:
        with IPRoute() as owned:
            return dump_state(owned)

    links = list(ipr.get_links())
    addresses = list(ipr.get_addr())
    routes = list(ipr.get_routes(family=socket.AF_INET))
    routes.extend(ipr.get_routes(family=socket.AF_INET6))
    LOG.debug(
        "Dumped %d link(s), %d address(es), %d route(s) from the kernel",
        len(links),
        len(addresses),
        len(routes),
    )
    return batch_from_messages(links, addresses, routes)
