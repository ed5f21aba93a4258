"""Abstract observers managed by :class:`MonitorDispatcher`."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import AbstractSet

from netmgr.types import Address, Route

LOG = logging.getLogger(__name__)


class RouteMonitor(ABC):
    @abstractmethod
    def routes_changed(
        self, added: AbstractSet[Route], removed: AbstractSet[Route]
    ) -> None:
        """Called with routes that became active and routes that stopped being active."""


class AddressMonitor(ABC):
    @abstractmethod
    def addresses_changed(
        self, added: AbstractSet[Address], removed: AbstractSet[Address]
    ) -> None:
        """Called with addresses that became active and those that stopped being active."""


class InterfaceMonitor(ABC):
    """Observer of interface lifecycle changes.

    An interface that goes from active to inactive and then disappears is
    reported twice: once in ``deactivated`` and once in ``removed``.
    """

    @abstractmethod
    def interfaces_changed(
        self,
        activated: AbstractSet[int],
        deactivated: AbstractSet[int],
        removed: AbstractSet[int],
    ) -> None:
        """Called with ids of interfaces activated, deactivated and removed."""


class LoggingMonitor(RouteMonitor, AddressMonitor, InterfaceMonitor):
    """Log every change; used by the agent when ``log_changes`` is set."""

    def __init__(self, logger: logging.Logger = LOG) -> None:
        self._log = logger

    def routes_changed(self, added, removed) -> None:
        for route in sorted(added, key=str):
            self._log.info("Route added: %s", route)
        for route in sorted(removed, key=str):
            self._log.info("Route removed: %s", route)

    def addresses_changed(self, added, removed) -> None:
        for address in sorted(added, key=_address_key):
            self._log.info(
                "Interface %s has a new address: %s/%s (bcast: %s)",
                address.iface_id,
                address.local_address,
                address.prefix_len,
                address.broadcast_address,
            )
        for address in sorted(removed, key=_address_key):
            self._log.info(
                "Interface %s lost address: %s/%s",
                address.iface_id,
                address.local_address,
                address.prefix_len,
            )

    def interfaces_changed(self, activated, deactivated, removed) -> None:
        for iface_id in sorted(activated):
            self._log.info("Interface %s activated", iface_id)
        for iface_id in sorted(deactivated):
            self._log.info("Interface %s deactivated", iface_id)
        for iface_id in sorted(removed):
            self._log.info("Interface %s removed", iface_id)


def _address_key(address: Address):
    return address.iface_id, str(address.local_address)
