"""Global indices of active routes and addresses."""

from __future__ import annotations

import logging
from typing import Dict, Set

from .types import Address, IPAddress, Route

LOG = logging.getLogger(__name__)


class ActiveIndices:
    """Active route/address sets plus the two route helper maps.

    ``host_routes`` maps a destination to the active host routes towards it
    and ``default_routes`` maps an outgoing interface id to the active
    default routes over it.  Both are derived from ``routes`` and always
    updated in the same call; a key disappears with its last route.
    """

    def __init__(self) -> None:
        self.routes: Set[Route] = set()
        self.host_routes: Dict[IPAddress, Set[Route]] = {}
        self.default_routes: Dict[int, Set[Route]] = {}
        self.addresses: Set[Address] = set()

    def add_route(self, route: Route) -> None:
        self.routes.add(route)
        LOG.debug("Added route %s to active routes", route)

        if route.is_host_route:
            self.host_routes.setdefault(route.dst, set()).add(route)
            LOG.debug("Added route %s to host routes", route)

        if route.iface_id_out != 0 and route.is_default_route:
            self.default_routes.setdefault(route.iface_id_out, set()).add(route)
            LOG.debug("Added route %s to default routes", route)

    def remove_route(self, route: Route) -> bool:
        """Drop ``route`` from every route index; False if it was not active."""

        if route not in self.routes:
            return False

        self.routes.discard(route)
        LOG.debug("Removed route %s from active routes", route)

        if route.is_host_route:
            _discard_from_bucket(self.host_routes, route.dst, route)

        if route.iface_id_out != 0 and route.is_default_route:
            _discard_from_bucket(self.default_routes, route.iface_id_out, route)

        return True

    def clear_routes(self) -> None:
        self.routes.clear()
        self.host_routes.clear()
        self.default_routes.clear()

    def add_address(self, address: Address) -> None:
        self.addresses.discard(address)
        self.addresses.add(address)

    def remove_address(self, address: Address) -> bool:
        if address not in self.addresses:
            return False
        self.addresses.discard(address)
        return True

    def clear_addresses(self) -> None:
        self.addresses.clear()


def _discard_from_bucket(index: Dict, key, route: Route) -> None:
    bucket = index.get(key)
    if bucket is None or route not in bucket:
        return
    bucket.discard(route)
    if not bucket:
        del index[key]
    LOG.debug("Removed route %s from helper index", route)
