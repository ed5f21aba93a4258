"""Abstract change notification sink used by the manager."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AbstractSet

from .types import Address, Route


class ChangeNotifier(ABC):
    """Receives the diffs computed by :class:`netmgr.manager.NetManager`.

    Methods are never called with all of their sets empty.
    """

    @abstractmethod
    def on_routes_changed(
        self, added: AbstractSet[Route], removed: AbstractSet[Route]
    ) -> None:
        """Routes in ``added`` became active, routes in ``removed`` stopped being active."""

    @abstractmethod
    def on_addresses_changed(
        self, added: AbstractSet[Address], removed: AbstractSet[Address]
    ) -> None:
        """Addresses in ``added`` became active, ``removed`` are no longer active."""

    @abstractmethod
    def on_interfaces_changed(
        self,
        activated: AbstractSet[int],
        deactivated: AbstractSet[int],
        removed: AbstractSet[int],
    ) -> None:
        """Interface ids that became active, became inactive, or disappeared."""


class NullNotifier(ChangeNotifier):
    """Notifier that drops everything; used when nobody is listening."""

    def on_routes_changed(self, added, removed) -> None:
        pass

    def on_addresses_changed(self, added, removed) -> None:
        pass

    def on_interfaces_changed(self, activated, deactivated, removed) -> None:
        pass
