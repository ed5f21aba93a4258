from ipaddress import ip_address

import pytest

from netmgr import Address, Interface, InterfaceFlags, NetManager, Route
from netmgr_events import (
    AddressMonitor,
    InterfaceMonitor,
    LoggingMonitor,
    MonitorDispatcher,
    RouteMonitor,
)


class RecordingMonitor(RouteMonitor, AddressMonitor, InterfaceMonitor):
    def __init__(self):
        self.routes = []
        self.addresses = []
        self.interfaces = []

    def routes_changed(self, added, removed):
        self.routes.append((set(added), set(removed)))

    def addresses_changed(self, added, removed):
        self.addresses.append((set(added), set(removed)))

    def interfaces_changed(self, activated, deactivated, removed):
        self.interfaces.append((set(activated), set(deactivated), set(removed)))


def build_stack():
    dispatcher = MonitorDispatcher()
    manager = NetManager(dispatcher)
    return dispatcher, manager


def build_route(out: int) -> Route:
    return Route(dst=ip_address("10.%d.0.0" % out), dst_prefix_len=16, iface_id_out=out)


def test_live_monitor_receives_changes():
    dispatcher, manager = build_stack()
    monitor = RecordingMonitor()
    dispatcher.subscribe_routes(monitor, full_update=False)
    dispatcher.subscribe_interfaces(monitor, full_update=False)

    manager.update_interfaces({1: Interface(1, flags=InterfaceFlags.ACTIVE)}, ())
    manager.modify_routes([build_route(1)], ())

    assert monitor.interfaces == [({1}, set(), set())]
    assert monitor.routes == [({build_route(1)}, set())]
    assert monitor.addresses == []


def test_scheduled_monitor_gets_snapshot_then_live_updates():
    dispatcher, manager = build_stack()
    manager.update_interfaces(
        {
            1: Interface(1, flags=InterfaceFlags.ACTIVE),
            2: Interface(2, flags=InterfaceFlags.UP),
        },
        (),
    )
    address = Address(ip_address("10.1.0.5"), iface_id=1, prefix_len=16)
    manager.modify_addresses([address], ())
    manager.modify_routes([build_route(1), build_route(2)], ())

    monitor = RecordingMonitor()
    dispatcher.subscribe_interfaces(monitor)
    dispatcher.subscribe_addresses(monitor)
    dispatcher.subscribe_routes(monitor)
    assert dispatcher.has_scheduled()

    manager.remove_interface(2)
    assert monitor.interfaces == []

    dispatcher.run_scheduled_updates(manager)

    assert not dispatcher.has_scheduled()
    assert monitor.interfaces == [({1}, set(), set())]
    assert monitor.addresses == [({address}, set())]
    assert monitor.routes == [({build_route(1)}, set())]

    manager.remove_interface(1)

    assert monitor.routes[-1] == (set(), {build_route(1)})
    assert monitor.addresses[-1] == (set(), {address})
    assert monitor.interfaces[-1] == (set(), set(), {1})


def test_unsubscribe_during_callback_is_honoured():
    dispatcher, manager = build_stack()
    second = RecordingMonitor()

    class Unsubscriber(RecordingMonitor):
        def interfaces_changed(self, activated, deactivated, removed):
            super().interfaces_changed(activated, deactivated, removed)
            dispatcher.unsubscribe_interfaces(second)

    first = Unsubscriber()
    dispatcher.subscribe_interfaces(first, full_update=False)
    dispatcher.subscribe_interfaces(second, full_update=False)

    manager.update_interfaces({1: Interface(1)}, ())

    assert first.interfaces == [(set(), {1}, set())]
    assert second.interfaces == []


def test_empty_notifications_are_skipped():
    dispatcher = MonitorDispatcher()
    monitor = RecordingMonitor()
    dispatcher.subscribe_routes(monitor, full_update=False)

    dispatcher.on_routes_changed(frozenset(), frozenset())

    assert monitor.routes == []


def test_subscribe_rejects_wrong_monitor_type():
    dispatcher = MonitorDispatcher()

    with pytest.raises(TypeError):
        dispatcher.subscribe_routes(object())

    class OnlyRoutes(RouteMonitor):
        def routes_changed(self, added, removed):
            pass

    with pytest.raises(TypeError):
        dispatcher.subscribe_addresses(OnlyRoutes())


def test_logging_monitor_logs_changes(caplog):
    dispatcher, manager = build_stack()
    monitor = LoggingMonitor()
    dispatcher.subscribe_interfaces(monitor, full_update=False)
    dispatcher.subscribe_routes(monitor, full_update=False)

    with caplog.at_level("INFO", logger="netmgr_events.monitors"):
        manager.update_interfaces({3: Interface(3, flags=InterfaceFlags.ACTIVE)}, ())
        manager.modify_routes([build_route(3)], ())

    assert "Interface 3 activated" in caplog.text
    assert "Route added: 10.3.0.0/16 [iface 3 gw None]" in caplog.text
