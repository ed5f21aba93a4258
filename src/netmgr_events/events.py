"""Event primitives published by OS state sources."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from netmgr.types import Address, Interface, Route


class Action(Enum):
    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True)
class LinkEvent:
    """An interface appeared/changed (``ADD``) or disappeared (``REMOVE``)."""

    interface: Interface
    action: Action = Action.ADD


@dataclass(frozen=True)
class AddressEvent:
    address: Address
    action: Action = Action.ADD


@dataclass(frozen=True)
class RouteEvent:
    route: Route
    action: Action = Action.ADD


@dataclass
class EventBatch:
    """Everything reported by a single OS notification or dump.

    Events within each list are applied in order, so a later event for the
    same entity overrides an earlier one.
    """

    links: List[LinkEvent] = field(default_factory=list)
    addresses: List[AddressEvent] = field(default_factory=list)
    routes: List[RouteEvent] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.links or self.addresses or self.routes)
