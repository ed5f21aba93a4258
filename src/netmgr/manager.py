"""Network state manager.

:class:`NetManager` keeps an in-memory view of the host's interfaces,
addresses and routes and reconciles it against updates reported by the OS.
An entry is *active* when every interface it depends on exists and is up
and running; observers only ever hear about changes in the active state.

The manager follows a single-writer model: all mutating calls must be
serialised by the caller.  Nothing in here blocks or performs I/O.
"""

from __future__ import annotations

import logging
from typing import (
    AbstractSet,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    Mapping,
    Optional,
    Set,
    Tuple,
)

from .indices import ActiveIndices
from .notifier import ChangeNotifier, NullNotifier
from .registry import InterfaceRegistry
from .types import Address, Interface, IPAddress, Route

LOG = logging.getLogger(__name__)


class NetManager:
    """Reconciliation engine over the interface registry and active indices."""

    def __init__(self, notifier: Optional[ChangeNotifier] = None) -> None:
        self._notifier = notifier or NullNotifier()
        self._registry = InterfaceRegistry()
        self._active = ActiveIndices()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def interfaces(self) -> Dict[int, Interface]:
        return self._registry.snapshot()

    def get_interface(self, iface_id: int) -> Optional[Interface]:
        return self._registry.get(iface_id)

    def get_interface_by_name(self, name: str) -> Optional[Interface]:
        return self._registry.find_by_name(name)

    def is_interface_active(self, iface_id: int) -> bool:
        iface = self._registry.get(iface_id)
        return iface is not None and iface.is_active

    def interface_routes(self, iface_id: int) -> FrozenSet[Route]:
        """All routes referencing ``iface_id``, active or not."""

        return frozenset(self._registry.routes_of(iface_id))

    def interface_addresses(self, iface_id: int) -> FrozenSet[Address]:
        """All addresses assigned to ``iface_id``, active or not."""

        return frozenset(self._registry.addresses_of(iface_id))

    @property
    def routes(self) -> FrozenSet[Route]:
        return frozenset(self._active.routes)

    @property
    def addresses(self) -> FrozenSet[Address]:
        return frozenset(self._active.addresses)

    @property
    def host_routes(self) -> Dict[IPAddress, FrozenSet[Route]]:
        return {dst: frozenset(r) for dst, r in self._active.host_routes.items()}

    @property
    def default_routes(self) -> Dict[int, FrozenSet[Route]]:
        return {
            iface_id: frozenset(r)
            for iface_id, r in self._active.default_routes.items()
        }

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------
    def set_routes(self, routes: Iterable[Route]) -> Tuple[Set[Route], Set[Route]]:
        """Replace the whole route table with ``routes``.

        Returns and notifies ``(added, removed)``: routes that are active now
        but were not before, and routes that were active but no longer are.
        """

        prev_active = set(self._active.routes)

        LOG.debug("Clearing active routes, helper route sets and interface routes")
        self._active.clear_routes()
        self._registry.clear_routes()

        added: Set[Route] = set()
        for route in set(routes):
            # Activate first; only active routes are matched against the
            # previous state.
            if not self._activate_route(route):
                continue
            if route in prev_active:
                prev_active.discard(route)
            else:
                added.add(route)

        self._notify_routes(added, prev_active)
        return added, prev_active

    def modify_routes(
        self, add: Iterable[Route], remove: Iterable[Route]
    ) -> Tuple[Set[Route], Set[Route]]:
        """Incrementally add and remove routes.

        A route present in both ``add`` and ``remove`` is only removed.
        """

        remove = set(remove)
        added: Set[Route] = set()

        for route in add:
            if route in self._active.routes or route in remove:
                continue
            if self._activate_route(route):
                added.add(route)

        removed = self._deactivate_routes(remove, also_detach=True) if remove else set()

        self._notify_routes(added, removed)
        return added, removed

    def _activate_route(self, route: Route) -> bool:
        active = True

        # The route is attached to every existing interface it names, active
        # or not.
        for direction, iface_id in (("IN", route.iface_id_in), ("OUT", route.iface_id_out)):
            if iface_id == 0:
                continue

            iface = self._registry.get(iface_id)
            if iface is None:
                LOG.warning(
                    "Route %s references missing %s interface %s; treating as inactive",
                    route,
                    direction,
                    iface_id,
                )
                active = False
                continue

            self._registry.attach_route(iface_id, route)
            if not iface.is_active:
                active = False

            LOG.debug(
                "Added route %s to its %s interface %s; iface active: %s; route active: %s",
                route,
                direction,
                iface_id,
                iface.is_active,
                active,
            )

        if active:
            self._active.add_route(route)
        return active

    def _deactivate_routes(
        self, routes: Iterable[Route], also_detach: bool
    ) -> Set[Route]:
        """Deactivate ``routes``, returning the ones that were active."""

        was_active: Set[Route] = set()
        for route in routes:
            if also_detach:
                self._detach_route(route)
            if self._active.remove_route(route):
                was_active.add(route)
        return was_active

    def _detach_route(self, route: Route) -> None:
        for direction, iface_id in (("OUT", route.iface_id_out), ("IN", route.iface_id_in)):
            if iface_id != 0 and self._registry.detach_route(iface_id, route):
                LOG.debug(
                    "Removed route %s from its %s interface %s", route, direction, iface_id
                )

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------
    def set_addresses(
        self, addresses: Iterable[Address]
    ) -> Tuple[Set[Address], Set[Address]]:
        """Replace every known address with ``addresses``."""

        prev_active = set(self._active.addresses)

        self._active.clear_addresses()
        self._registry.clear_addresses()

        added: Set[Address] = set()
        for address in _latest(addresses):
            if not self._activate_address(address):
                continue
            if address in prev_active:
                prev_active.discard(address)
            else:
                added.add(address)

        self._notify_addresses(added, prev_active)
        return added, prev_active

    def modify_addresses(
        self, add: Iterable[Address], remove: Iterable[Address]
    ) -> Tuple[Set[Address], Set[Address]]:
        remove = set(remove)
        added: Set[Address] = set()

        for address in add:
            if address in self._active.addresses or address in remove:
                continue
            if self._activate_address(address):
                added.add(address)

        removed = (
            self._deactivate_addresses(remove, also_detach=True) if remove else set()
        )

        self._notify_addresses(added, removed)
        return added, removed

    def _activate_address(self, address: Address) -> bool:
        iface = self._registry.get(address.iface_id) if address.iface_id != 0 else None
        if iface is None:
            LOG.warning(
                "Received an address %s for interface %s but this interface is missing; ignoring",
                address.local_address,
                address.iface_id,
            )
            return False

        self._registry.attach_address(address.iface_id, address)

        if iface.is_active:
            self._active.add_address(address)
            return True
        return False

    def _deactivate_addresses(
        self, addresses: Iterable[Address], also_detach: bool
    ) -> Set[Address]:
        was_active: Set[Address] = set()
        for address in addresses:
            if address.iface_id == 0 or address.iface_id not in self._registry:
                LOG.warning(
                    "Removing an address %s from interface %s but this interface is missing; ignoring",
                    address.local_address,
                    address.iface_id,
                )
                continue

            if also_detach:
                self._registry.detach_address(address.iface_id, address)
            if self._active.remove_address(address):
                was_active.add(address)
        return was_active

    # ------------------------------------------------------------------
    # Interfaces
    # ------------------------------------------------------------------
    def remove_interface(self, iface_id: int) -> bool:
        """Remove an interface together with its routes and addresses.

        Routes are torn down and notified before addresses are touched.
        Returns False when the interface is unknown.
        """

        if iface_id == 0 or iface_id not in self._registry:
            LOG.warning("Could not remove non-existing interface with ID %s", iface_id)
            return False

        # Copies: detaching mutates the interface's own tables.
        routes = self._registry.routes_of(iface_id)
        if routes:
            self._notify_routes(set(), self._deactivate_routes(routes, also_detach=True))

        addresses = self._registry.addresses_of(iface_id)
        if addresses:
            self._notify_addresses(
                set(), self._deactivate_addresses(addresses, also_detach=True)
            )

        self._registry.remove(iface_id)
        self._notify_interfaces(set(), set(), {iface_id})
        return True

    def update_interfaces(
        self, update_data: Mapping[int, Interface], remove_ifaces: Iterable[int]
    ) -> Set[int]:
        """Apply incremental link changes; see :meth:`bulk_update`."""

        return self.bulk_update(update_data, remove_ifaces)

    def set_interfaces(
        self,
        ifaces: Mapping[int, Interface],
        addresses: Iterable[Address],
        routes: Iterable[Route],
    ) -> Set[int]:
        """Replace the whole state: interfaces, addresses and routes."""

        remove_ifaces = {iface_id for iface_id in self._registry if iface_id not in ifaces}
        return self.bulk_update(ifaces, remove_ifaces, addresses, routes)

    def bulk_update(
        self,
        update_data: Mapping[int, Interface],
        remove_ifaces: Iterable[int],
        desired_addresses: Optional[Iterable[Address]] = None,
        desired_routes: Optional[Iterable[Route]] = None,
    ) -> Set[int]:
        """Create, update and remove interfaces in one batch.

        Runs four phases, each notifying before the next starts: route
        teardown, address teardown, interface mutation and, when desired
        sets are given, reactivation of the desired addresses and routes.
        Removal wins over an update for the same id, and an update whose
        data carries another id is ignored.  When a desired set is given,
        every entry not in it is removed.

        Returns the ids of the interfaces that were actually removed.
        """

        update_data = dict(update_data)
        remove_ifaces = set(remove_ifaces)
        keep_addresses = _latest(desired_addresses) if desired_addresses is not None else None
        keep_routes = set(desired_routes) if desired_routes is not None else None

        for iface_id, data in list(update_data.items()):
            if data.id != iface_id:
                LOG.warning(
                    "Ignoring update for interface %s carrying data of interface %s",
                    iface_id,
                    data.id,
                )
                del update_data[iface_id]

        for iface_id in list(remove_ifaces):
            if iface_id not in self._registry:
                LOG.warning(
                    "Could not remove an interface with ID %s - it does not exist", iface_id
                )
                remove_ifaces.discard(iface_id)
                continue
            update_data.pop(iface_id, None)

        self._teardown_routes(update_data, remove_ifaces, keep_routes)
        self._teardown_addresses(update_data, remove_ifaces, keep_addresses)

        for iface_id in remove_ifaces:
            removed = self._registry.remove(iface_id)
            assert removed is not None

        activated: Set[int] = set()
        deactivated: Set[int] = set()
        for iface_id, data in update_data.items():
            assert iface_id not in remove_ifaces

            existed, was_active = self._registry.upsert(iface_id, data)
            if existed and data.is_active == was_active:
                continue
            if data.is_active:
                activated.add(iface_id)
            else:
                deactivated.add(iface_id)

        self._notify_interfaces(activated, deactivated, remove_ifaces)

        # Everything that had to go is gone; only additions are left.
        if keep_addresses is not None:
            self.modify_addresses(keep_addresses, ())
        if keep_routes is not None:
            self.modify_routes(keep_routes, ())

        return remove_ifaces

    def _going_inactive(self, update_data: Mapping[int, Interface]) -> Iterator[int]:
        for iface_id, data in update_data.items():
            iface = self._registry.get(iface_id)
            if not data.is_active and iface is not None and iface.is_active:
                yield iface_id

    def _teardown_routes(
        self,
        update_data: Mapping[int, Interface],
        remove_ifaces: AbstractSet[int],
        keep: Optional[AbstractSet[Route]],
    ) -> None:
        removed: Set[Route] = set()

        for iface_id in remove_ifaces:
            removed |= self._deactivate_routes(
                self._registry.routes_of(iface_id), also_detach=True
            )

        for iface_id in self._going_inactive(update_data):
            # Deactivated, not removed: the interface keeps its routes.
            removed |= self._deactivate_routes(
                self._registry.routes_of(iface_id), also_detach=False
            )

        if keep is not None:
            for iface_id in self._registry:
                for route in self._registry.routes_of(iface_id):
                    if route in keep:
                        continue
                    self._detach_route(route)
                    if self._active.remove_route(route):
                        removed.add(route)

        self._notify_routes(set(), removed)

    def _teardown_addresses(
        self,
        update_data: Mapping[int, Interface],
        remove_ifaces: AbstractSet[int],
        keep: Optional[AbstractSet[Address]],
    ) -> None:
        removed: Set[Address] = set()

        for iface_id in remove_ifaces:
            removed |= self._deactivate_addresses(
                self._registry.addresses_of(iface_id), also_detach=True
            )

        for iface_id in self._going_inactive(update_data):
            removed |= self._deactivate_addresses(
                self._registry.addresses_of(iface_id), also_detach=False
            )

        if keep is not None:
            for iface_id in self._registry:
                for address in self._registry.addresses_of(iface_id):
                    if address in keep:
                        continue
                    if self._active.remove_address(address):
                        removed.add(address)
                    self._registry.detach_address(iface_id, address)

        self._notify_addresses(set(), removed)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def _notify_routes(self, added: Set[Route], removed: Set[Route]) -> None:
        if not added and not removed:
            return
        self._notifier.on_routes_changed(frozenset(added), frozenset(removed))

    def _notify_addresses(self, added: Set[Address], removed: Set[Address]) -> None:
        if not added and not removed:
            return
        self._notifier.on_addresses_changed(frozenset(added), frozenset(removed))

    def _notify_interfaces(
        self, activated: Set[int], deactivated: Set[int], removed: Set[int]
    ) -> None:
        if not activated and not deactivated and not removed:
            return
        self._notifier.on_interfaces_changed(
            frozenset(activated), frozenset(deactivated), frozenset(removed)
        )


def _latest(addresses: Iterable[Address]) -> Set[Address]:
    """Deduplicate ``addresses``; the last prefix length given for an entry wins."""

    unique: Set[Address] = set()
    for address in addresses:
        unique.discard(address)
        unique.add(address)
    return unique
