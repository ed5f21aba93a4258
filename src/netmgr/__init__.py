"""In-memory network state manager.

This package keeps a consistent view of a host's interfaces, their IP
addresses and the kernel routing table, and reconciles that view against
changes reported by the OS.  The pieces are:

* :mod:`netmgr.types` - immutable interface/address/route values;
* :mod:`netmgr.registry` - every known interface plus the routes and
  addresses referencing it, active or not;
* :mod:`netmgr.indices` - the global active route/address sets and the
  host-route / default-route helper maps;
* :mod:`netmgr.manager` - the reconciliation engine computing minimal
  added/removed diffs and handing them to a
  :class:`~netmgr.notifier.ChangeNotifier`.

The package is pure Python and performs no I/O; OS event sources live in
``netmgr_agent`` and fan-out to observers in ``netmgr_events``.
"""

from .manager import NetManager  # noqa: F401
from .notifier import ChangeNotifier  # noqa: F401
from .types import Address, Interface, InterfaceFlags, Route  # noqa: F401

__all__ = [
    "Address",
    "ChangeNotifier",
    "Interface",
    "InterfaceFlags",
    "NetManager",
    "Route",
]
