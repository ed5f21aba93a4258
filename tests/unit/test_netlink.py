import socket
from ipaddress import ip_address
from threading import Event

from netmgr import Address, InterfaceFlags, NetManager, Route
from netmgr_agent import netlink
from netmgr_agent.watchers.netlink import NetlinkStateWatcher
from netmgr_events import Action, EventTranslator


class FakeMessage:
    def __init__(self, fields, attrs, event=None):
        self._fields = dict(fields)
        if event is not None:
            self._fields["event"] = event
        self._attrs = attrs

    def __getitem__(self, key):
        return self._fields[key]

    def get(self, key, default=None):
        return self._fields.get(key, default)

    def get_attr(self, name):
        return self._attrs.get(name)


def build_link(index=2, flags=0x1043, event=None):
    return FakeMessage(
        {"index": index, "ifi_type": 1, "flags": flags},
        {
            "IFLA_IFNAME": "eth0",
            "IFLA_MTU": 1500,
            "IFLA_ADDRESS": "52:54:00:12:34:56",
            "IFLA_BROADCAST": "ff:ff:ff:ff:ff:ff",
        },
        event,
    )


def build_route_msg(table=254, dst="10.1.0.0", family=socket.AF_INET):
    attrs = {"RTA_TABLE": table, "RTA_OIF": 2, "RTA_PRIORITY": 100}
    if dst is not None:
        attrs["RTA_DST"] = dst
    return FakeMessage(
        {"family": family, "dst_len": 16 if dst else 0, "src_len": 0, "proto": 3,
         "table": min(table, 255)},
        attrs,
    )


def test_convert_flags():
    flags = netlink.convert_flags(0x1043)

    assert flags == InterfaceFlags.UP | InterfaceFlags.RUNNING
    assert netlink.convert_flags(0x8 | 0x1) == InterfaceFlags.UP | InterfaceFlags.LOOPBACK
    assert netlink.convert_flags(0x10) == InterfaceFlags.POINT_TO_POINT


def test_link_from_msg():
    iface = netlink.link_from_msg(build_link())

    assert iface.id == 2
    assert iface.name == "eth0"
    assert iface.mtu == 1500
    assert iface.hw_addr == bytes.fromhex("525400123456")
    assert iface.hw_broadcast_addr == b"\xff" * 6
    assert iface.is_active


def test_address_from_msg_point_to_point_peer():
    msg = FakeMessage(
        {"family": socket.AF_INET, "index": 3, "prefixlen": 32},
        {"IFA_LOCAL": "10.8.0.1", "IFA_ADDRESS": "10.8.0.2"},
    )

    address = netlink.address_from_msg(msg)

    assert address == Address(ip_address("10.8.0.1"), ip_address("10.8.0.2"), 3)
    assert address.prefix_len == 32


def test_address_from_msg_ipv6_without_local():
    msg = FakeMessage(
        {"family": socket.AF_INET6, "index": 2, "prefixlen": 64},
        {"IFA_ADDRESS": "2001:db8::5"},
    )

    address = netlink.address_from_msg(msg)

    assert address.local_address == ip_address("2001:db8::5")
    assert address.broadcast_address is None


def test_route_from_msg():
    route = netlink.route_from_msg(build_route_msg(table=1000))

    assert route == Route(
        dst=ip_address("10.1.0.0"),
        dst_prefix_len=16,
        iface_id_out=2,
        metric=100,
        table=1000,
        protocol=3,
    )


def test_route_from_msg_default_route():
    route = netlink.route_from_msg(build_route_msg(dst=None, family=socket.AF_INET6))

    assert route.dst == ip_address("::")
    assert route.is_default_route


def test_batch_from_messages_actions_and_families():
    unsupported = FakeMessage({"family": socket.AF_PACKET, "index": 2, "prefixlen": 0}, {})

    batch = netlink.batch_from_messages(
        [build_link(event="RTM_DELLINK")],
        [unsupported],
        [build_route_msg()],
    )

    assert batch.links[0].action is Action.REMOVE
    assert batch.addresses == []
    assert batch.routes[0].action is Action.ADD


def test_netlink_watcher_applies_snapshot():
    manager = NetManager()
    dump = lambda: netlink.batch_from_messages(  # noqa: E731
        [build_link()], [], [build_route_msg(), build_route_msg(table=255, dst="10.0.0.1")]
    )
    watcher = NetlinkStateWatcher(
        EventTranslator(manager), interval=1.0, stop_event=Event(), dump=dump
    )

    watcher.poll()

    assert manager.is_interface_active(2)
    assert [route.table for route in manager.routes] == [254]
