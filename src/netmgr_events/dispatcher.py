"""Fan-out of manager notifications to registered monitors."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, AbstractSet, Dict, Set

from netmgr.notifier import ChangeNotifier
from netmgr.types import Address, Route

from .monitors import AddressMonitor, InterfaceMonitor, RouteMonitor

if TYPE_CHECKING:
    from netmgr.manager import NetManager

LOG = logging.getLogger(__name__)


@dataclass
class MonitorGroup:
    """Monitors of each kind, kept in subscription order."""

    route: Dict[RouteMonitor, None] = field(default_factory=dict)
    address: Dict[AddressMonitor, None] = field(default_factory=dict)
    iface: Dict[InterfaceMonitor, None] = field(default_factory=dict)


class MonitorDispatcher(ChangeNotifier):
    """Dispatch route/address/interface changes to subscribed monitors.

    A monitor subscribed with ``full_update=True`` is first *scheduled*: it
    receives no live notifications until :meth:`run_scheduled_updates`
    hands it a snapshot of the current state, after which it becomes
    active.
    """

    def __init__(self) -> None:
        self._active = MonitorGroup()
        self._scheduled = MonitorGroup()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe_routes(self, monitor: RouteMonitor, full_update: bool = True) -> None:
        if not isinstance(monitor, RouteMonitor):
            raise TypeError(f"Unsupported route monitor: {type(monitor)!r}")
        group = self._scheduled if full_update else self._active
        group.route[monitor] = None

    def unsubscribe_routes(self, monitor: RouteMonitor) -> None:
        self._active.route.pop(monitor, None)
        self._scheduled.route.pop(monitor, None)

    def subscribe_addresses(
        self, monitor: AddressMonitor, full_update: bool = True
    ) -> None:
        if not isinstance(monitor, AddressMonitor):
            raise TypeError(f"Unsupported address monitor: {type(monitor)!r}")
        group = self._scheduled if full_update else self._active
        group.address[monitor] = None

    def unsubscribe_addresses(self, monitor: AddressMonitor) -> None:
        self._active.address.pop(monitor, None)
        self._scheduled.address.pop(monitor, None)

    def subscribe_interfaces(
        self, monitor: InterfaceMonitor, full_update: bool = True
    ) -> None:
        if not isinstance(monitor, InterfaceMonitor):
            raise TypeError(f"Unsupported interface monitor: {type(monitor)!r}")
        group = self._scheduled if full_update else self._active
        group.iface[monitor] = None

    def unsubscribe_interfaces(self, monitor: InterfaceMonitor) -> None:
        self._active.iface.pop(monitor, None)
        self._scheduled.iface.pop(monitor, None)

    def has_scheduled(self) -> bool:
        return bool(self._scheduled.route or self._scheduled.address or self._scheduled.iface)

    def run_scheduled_updates(self, manager: "NetManager") -> None:
        """Send the current state to scheduled monitors and activate them."""

        if self._scheduled.iface:
            activated: Set[int] = set()
            inactive: Set[int] = set()
            for iface_id, iface in manager.interfaces().items():
                (activated if iface.is_active else inactive).add(iface_id)

            for monitor in list(self._scheduled.iface):
                if monitor in self._scheduled.iface:
                    monitor.interfaces_changed(
                        frozenset(activated), frozenset(inactive), frozenset()
                    )
            self._promote(self._scheduled.iface, self._active.iface)

        if self._scheduled.address:
            addresses = manager.addresses
            for monitor in list(self._scheduled.address):
                if monitor in self._scheduled.address:
                    monitor.addresses_changed(addresses, frozenset())
            self._promote(self._scheduled.address, self._active.address)

        if self._scheduled.route:
            routes = manager.routes
            for monitor in list(self._scheduled.route):
                if monitor in self._scheduled.route:
                    monitor.routes_changed(routes, frozenset())
            self._promote(self._scheduled.route, self._active.route)

    @staticmethod
    def _promote(scheduled: Dict, active: Dict) -> None:
        LOG.debug("Activating %d scheduled monitor(s)", len(scheduled))
        active.update(scheduled)
        scheduled.clear()

    # ------------------------------------------------------------------
    # ChangeNotifier
    # ------------------------------------------------------------------
    def on_routes_changed(
        self, added: AbstractSet[Route], removed: AbstractSet[Route]
    ) -> None:
        if not added and not removed:
            return
        # A callback may unsubscribe other monitors; re-check membership.
        for monitor in list(self._active.route):
            if monitor in self._active.route:
                monitor.routes_changed(added, removed)

    def on_addresses_changed(
        self, added: AbstractSet[Address], removed: AbstractSet[Address]
    ) -> None:
        if not added and not removed:
            return
        for monitor in list(self._active.address):
            if monitor in self._active.address:
                monitor.addresses_changed(added, removed)

    def on_interfaces_changed(
        self,
        activated: AbstractSet[int],
        deactivated: AbstractSet[int],
        removed: AbstractSet[int],
    ) -> None:
        if not activated and not deactivated and not removed:
            return
        for monitor in list(self._active.iface):
            if monitor in self._active.iface:
                monitor.interfaces_changed(activated, deactivated, removed)
