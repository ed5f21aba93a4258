"""Value types describing interfaces, addresses and routes.

These mirror what the kernel reports for links, interface addresses and
routing table entries.  They are immutable so the same instance can sit in a
per-interface index and in the global active index at the same time without
aliasing surprises.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Optional, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

# Older Linux kernels reported the IPv6 default route as 2000::/3.
LEGACY_IPV6_DEFAULT = ipaddress.ip_address("2000::")


class InterfaceFlags(IntFlag):
    """Interface state flags tracked by the manager."""

    NONE = 0
    UP = 0x01
    RUNNING = 0x02
    LOOPBACK = 0x04
    POINT_TO_POINT = 0x08

    ACTIVE = UP | RUNNING


@dataclass(frozen=True)
class Interface:
    """Information about an interface and its configuration on the system.

    Attributes
    ----------
    id:
        Process-local identifier, stable for the lifetime of the interface.
    name:
        Interface name (``eth0``, ``wlan0``, ...).
    type:
        Device type as reported by the OS (``ARPHRD_*`` on Linux).
    mtu:
        Maximum transmission unit.
    hw_addr:
        Hardware address bytes, empty when the link has none.
    flags:
        :class:`InterfaceFlags` bitset.
    """

    id: int
    name: str = ""
    type: int = 0
    mtu: int = 0
    hw_addr: bytes = b""
    hw_broadcast_addr: bytes = b""
    flags: InterfaceFlags = InterfaceFlags.NONE

    @property
    def is_up(self) -> bool:
        return InterfaceFlags.UP in self.flags

    @property
    def is_running(self) -> bool:
        return InterfaceFlags.RUNNING in self.flags

    @property
    def is_active(self) -> bool:
        """An interface is active when it is both up and running."""

        return (self.flags & InterfaceFlags.ACTIVE) == InterfaceFlags.ACTIVE

    @property
    def is_loopback(self) -> bool:
        return InterfaceFlags.LOOPBACK in self.flags

    @property
    def is_ptp(self) -> bool:
        return InterfaceFlags.POINT_TO_POINT in self.flags


@dataclass(frozen=True)
class Address:
    """An IP address assigned to an interface.

    ``broadcast_address`` holds the peer address on point-to-point links.
    ``prefix_len`` does not take part in equality or hashing: two entries
    that only differ in prefix length are the same set member.
    """

    local_address: Optional[IPAddress]
    broadcast_address: Optional[IPAddress] = None
    iface_id: int = 0
    prefix_len: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Route:
    """A routing table entry.

    Interface ids of ``0`` mean "not set".  Equality covers every field.
    """

    dst: Optional[IPAddress] = None
    dst_prefix_len: int = 0
    gateway: Optional[IPAddress] = None
    iface_id_out: int = 0
    iface_id_in: int = 0
    src: Optional[IPAddress] = None
    src_prefix_len: int = 0
    metric: int = 0
    table: int = 0
    protocol: int = 0

    @property
    def is_host_route(self) -> bool:
        """Full-length destination prefix: /32 for IPv4, /128 for IPv6."""

        full_len = 128 if self.dst is not None and self.dst.version == 6 else 32
        return self.dst_prefix_len == full_len

    @property
    def is_default_route(self) -> bool:
        """Zero-length prefix, or the legacy IPv6 ``2000::/3`` encoding."""

        return self.dst_prefix_len == 0 or (
            self.dst_prefix_len == 3 and self.dst == LEGACY_IPV6_DEFAULT
        )

    def __str__(self) -> str:
        return (
            f"{self.dst}/{self.dst_prefix_len} "
            f"[iface {self.iface_id_out} gw {self.gateway}]"
        )
