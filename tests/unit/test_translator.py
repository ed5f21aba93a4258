from ipaddress import ip_address

from netmgr import Address, Interface, InterfaceFlags, NetManager, Route
from netmgr_events import (
    Action,
    AddressEvent,
    EventBatch,
    EventTranslator,
    LinkEvent,
    RouteEvent,
)

ETH0 = Interface(2, name="eth0", flags=InterfaceFlags.ACTIVE)


def build_translator(**kwargs) -> EventTranslator:
    return EventTranslator(NetManager(), **kwargs)


def build_route(dst: str, prefix_len: int = 24, table: int = 254) -> Route:
    return Route(
        dst=ip_address(dst), dst_prefix_len=prefix_len, iface_id_out=2, table=table
    )


def test_apply_batch_links_then_entries():
    translator = build_translator()
    address = Address(ip_address("10.0.0.5"), iface_id=2, prefix_len=24)
    route = build_route("10.0.0.0")

    translator.apply_batch(
        EventBatch(
            links=[LinkEvent(ETH0)],
            addresses=[AddressEvent(address)],
            routes=[RouteEvent(route)],
        )
    )

    manager = translator.manager
    assert manager.is_interface_active(2)
    assert manager.addresses == {address}
    assert manager.routes == {route}


def test_local_table_routes_are_ignored():
    translator = build_translator()
    translator.apply_batch(EventBatch(links=[LinkEvent(ETH0)]))

    translator.apply_batch(
        EventBatch(
            routes=[
                RouteEvent(build_route("10.0.0.5", 32, table=255)),
                RouteEvent(build_route("10.0.0.0")),
            ]
        )
    )

    assert translator.manager.routes == {build_route("10.0.0.0")}
    assert translator.manager.host_routes == {}


def test_custom_ignored_tables():
    translator = build_translator(ignored_tables=())
    translator.apply_batch(EventBatch(links=[LinkEvent(ETH0)]))

    translator.apply_batch(
        EventBatch(routes=[RouteEvent(build_route("10.0.0.5", 32, table=255))])
    )

    assert translator.manager.routes == {build_route("10.0.0.5", 32, table=255)}


def test_last_action_wins():
    translator = build_translator()
    added_then_removed = build_route("10.1.0.0")
    removed_then_added = build_route("10.2.0.0")

    translator.apply_batch(
        EventBatch(
            links=[
                LinkEvent(Interface(3)),
                LinkEvent(Interface(3), Action.REMOVE),
                LinkEvent(ETH0),
            ],
            routes=[
                RouteEvent(added_then_removed),
                RouteEvent(removed_then_added, Action.REMOVE),
                RouteEvent(added_then_removed, Action.REMOVE),
                RouteEvent(removed_then_added),
            ],
        )
    )

    manager = translator.manager
    assert set(manager.interfaces()) == {2}
    assert manager.routes == {removed_then_added}


def test_link_remove_event():
    translator = build_translator()
    translator.apply_batch(EventBatch(links=[LinkEvent(ETH0)]))
    translator.apply_batch(EventBatch(routes=[RouteEvent(build_route("10.0.0.0"))]))

    translator.apply_batch(EventBatch(links=[LinkEvent(ETH0, Action.REMOVE)]))

    assert translator.manager.interfaces() == {}
    assert translator.manager.routes == frozenset()


def test_apply_snapshot_replaces_state():
    translator = build_translator()
    stale = build_route("10.9.0.0")
    translator.apply_snapshot(
        EventBatch(
            links=[LinkEvent(ETH0), LinkEvent(Interface(4, flags=InterfaceFlags.ACTIVE))],
            routes=[RouteEvent(stale)],
        )
    )

    fresh = build_route("10.1.0.0")
    translator.apply_snapshot(
        EventBatch(
            links=[LinkEvent(ETH0)],
            addresses=[
                AddressEvent(Address(ip_address("10.1.0.5"), iface_id=2, prefix_len=24)),
                AddressEvent(Address(ip_address("10.1.0.5"), iface_id=2, prefix_len=16)),
            ],
            routes=[RouteEvent(fresh), RouteEvent(build_route("10.1.0.255", 32, table=255))],
        )
    )

    manager = translator.manager
    assert set(manager.interfaces()) == {2}
    assert manager.routes == {fresh}
    (address,) = manager.addresses
    assert address.prefix_len == 16
