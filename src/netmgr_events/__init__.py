"""Event plumbing around the network state manager.

OS state sources publish :class:`EventBatch` objects which the
:class:`EventTranslator` turns into manager calls; the manager's
notifications are fanned out to subscribed monitors by
:class:`MonitorDispatcher`.
"""

from .dispatcher import MonitorDispatcher  # noqa: F401
from .events import Action, AddressEvent, EventBatch, LinkEvent, RouteEvent  # noqa: F401
from .monitors import (  # noqa: F401
    AddressMonitor,
    InterfaceMonitor,
    LoggingMonitor,
    RouteMonitor,
)
from .translator import EventTranslator  # noqa: F401

__all__ = [
    "Action",
    "AddressEvent",
    "AddressMonitor",
    "EventBatch",
    "EventTranslator",
    "InterfaceMonitor",
    "LinkEvent",
    "LoggingMonitor",
    "MonitorDispatcher",
    "RouteEvent",
    "RouteMonitor",
]
