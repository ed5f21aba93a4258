"""Translate OS event batches into manager calls."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Dict, Iterable, Set

from netmgr.manager import NetManager
from netmgr.types import Address, Interface, Route

from .events import Action, EventBatch, RouteEvent

LOG = logging.getLogger(__name__)

# Linux keeps local/broadcast routes in table 255; they never describe
# reachability we care about.
RT_TABLE_LOCAL = 255


class EventTranslator:
    """Feed :class:`EventBatch` objects into a :class:`NetManager`.

    The manager is single-writer; every call made through the translator is
    serialised with an internal lock so several sources may share it.
    """

    def __init__(
        self,
        manager: NetManager,
        ignored_tables: Iterable[int] = (RT_TABLE_LOCAL,),
    ) -> None:
        self._manager = manager
        self._ignored_tables = frozenset(ignored_tables)
        self._lock = Lock()

    @property
    def manager(self) -> NetManager:
        return self._manager

    @property
    def lock(self) -> Lock:
        return self._lock

    def apply_batch(self, batch: EventBatch) -> None:
        """Apply an incremental update.

        Links are processed first so addresses and routes can resolve the
        interfaces they reference.
        """

        with self._lock:
            if batch.links:
                self._apply_links(batch)
            if batch.addresses:
                self._apply_addresses(batch)
            if batch.routes:
                self._apply_routes(batch)

    def apply_snapshot(self, batch: EventBatch) -> None:
        """Treat ``batch`` as the complete state of the host."""

        ifaces: Dict[int, Interface] = {}
        for event in batch.links:
            if event.action is Action.ADD:
                ifaces[event.interface.id] = event.interface
            else:
                ifaces.pop(event.interface.id, None)

        addresses: Set[Address] = set()
        for event in batch.addresses:
            # Replace so the latest prefix length wins.
            addresses.discard(event.address)
            if event.action is Action.ADD:
                addresses.add(event.address)

        routes: Set[Route] = set()
        for event in self._filter_routes(batch.routes):
            if event.action is Action.ADD:
                routes.add(event.route)
            else:
                routes.discard(event.route)

        LOG.debug(
            "Applying snapshot: %d interface(s), %d address(es), %d route(s)",
            len(ifaces),
            len(addresses),
            len(routes),
        )
        with self._lock:
            self._manager.set_interfaces(ifaces, addresses, routes)

    def _apply_links(self, batch: EventBatch) -> None:
        update_data: Dict[int, Interface] = {}
        remove_ifaces: Set[int] = set()

        for event in batch.links:
            iface_id = event.interface.id
            if event.action is Action.REMOVE:
                remove_ifaces.add(iface_id)
                update_data.pop(iface_id, None)
            else:
                remove_ifaces.discard(iface_id)
                update_data[iface_id] = event.interface

        LOG.debug(
            "Received %d link update(s): %d changed, %d removed",
            len(batch.links),
            len(update_data),
            len(remove_ifaces),
        )
        self._manager.update_interfaces(update_data, remove_ifaces)

    def _apply_addresses(self, batch: EventBatch) -> None:
        add: Set[Address] = set()
        remove: Set[Address] = set()

        for event in batch.addresses:
            address = event.address
            if event.action is Action.ADD:
                add.discard(address)
                add.add(address)
                remove.discard(address)
            else:
                remove.add(address)
                add.discard(address)

        LOG.debug("Received %d address update(s)", len(batch.addresses))
        self._manager.modify_addresses(add, remove)

    def _apply_routes(self, batch: EventBatch) -> None:
        add: Set[Route] = set()
        remove: Set[Route] = set()

        for event in self._filter_routes(batch.routes):
            if event.action is Action.ADD:
                add.add(event.route)
                remove.discard(event.route)
            else:
                remove.add(event.route)
                add.discard(event.route)

        LOG.debug("Received %d route update(s)", len(batch.routes))
        if add or remove:
            self._manager.modify_routes(add, remove)

    def _filter_routes(self, events: Iterable[RouteEvent]) -> Iterable[RouteEvent]:
        for event in events:
            if event.route.table in self._ignored_tables:
                LOG.debug(
                    "Ignoring route %s from routing table %s",
                    event.route,
                    event.route.table,
                )
                continue
            yield event
