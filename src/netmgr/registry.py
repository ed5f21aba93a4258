"""Interface registry.

Owns every known interface plus, per interface id, the addresses and routes
that reference it, whether or not those entries are currently active.
Activation bookkeeping is left to :class:`netmgr.manager.NetManager`.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, Optional, Set, Tuple

from .types import Address, Interface, Route

LOG = logging.getLogger(__name__)


class InterfaceRegistry:
    """Interfaces keyed by id with per-interface route/address tables."""

    def __init__(self) -> None:
        self._ifaces: Dict[int, Interface] = {}
        self._routes: Dict[int, Set[Route]] = {}
        self._addresses: Dict[int, Set[Address]] = {}

    # ------------------------------------------------------------------
    # Interface lifecycle
    # ------------------------------------------------------------------
    def get(self, iface_id: int) -> Optional[Interface]:
        return self._ifaces.get(iface_id)

    def find_by_name(self, name: str) -> Optional[Interface]:
        return next((i for i in self._ifaces.values() if i.name == name), None)

    def upsert(self, iface_id: int, data: Interface) -> Tuple[bool, bool]:
        """Create or replace the data of ``iface_id``.

        Existing route/address tables are preserved.  Returns
        ``(existed, was_active)``.
        """

        assert data.id == iface_id, "interface data must carry its own id"

        previous = self._ifaces.get(iface_id)
        self._ifaces[iface_id] = data
        if previous is None:
            self._routes[iface_id] = set()
            self._addresses[iface_id] = set()
            LOG.debug("Created interface %s (%s)", iface_id, data.name)
            return False, False

        return True, previous.is_active

    def remove(self, iface_id: int) -> Optional[Interface]:
        iface = self._ifaces.pop(iface_id, None)
        if iface is not None:
            self._routes.pop(iface_id, None)
            self._addresses.pop(iface_id, None)
            LOG.debug("Deleted interface %s (%s)", iface_id, iface.name)
        return iface

    def __contains__(self, iface_id: object) -> bool:
        return iface_id in self._ifaces

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._ifaces))

    def __len__(self) -> int:
        return len(self._ifaces)

    def snapshot(self) -> Dict[int, Interface]:
        return dict(self._ifaces)

    # ------------------------------------------------------------------
    # Per-interface routes
    # ------------------------------------------------------------------
    def routes_of(self, iface_id: int) -> Set[Route]:
        """Return a copy of the routes referencing ``iface_id``."""

        return set(self._routes.get(iface_id, ()))

    def attach_route(self, iface_id: int, route: Route) -> None:
        self._routes[iface_id].add(route)

    def detach_route(self, iface_id: int, route: Route) -> bool:
        routes = self._routes.get(iface_id)
        if routes is None or route not in routes:
            return False
        routes.discard(route)
        return True

    def clear_routes(self) -> None:
        for routes in self._routes.values():
            routes.clear()

    # ------------------------------------------------------------------
    # Per-interface addresses
    # ------------------------------------------------------------------
    def addresses_of(self, iface_id: int) -> Set[Address]:
        """Return a copy of the addresses assigned to ``iface_id``."""

        return set(self._addresses.get(iface_id, ()))

    def attach_address(self, iface_id: int, address: Address) -> None:
        addresses = self._addresses[iface_id]
        # Replace so the stored entry carries the latest prefix length.
        addresses.discard(address)
        addresses.add(address)

    def detach_address(self, iface_id: int, address: Address) -> bool:
        addresses = self._addresses.get(iface_id)
        if addresses is None or address not in addresses:
            return False
        addresses.discard(address)
        return True

    def clear_addresses(self) -> None:
        for addresses in self._addresses.values():
            addresses.clear()
