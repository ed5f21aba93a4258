"""Watcher implementations used by the netmgr agent."""

from .file import FileStateWatcher  # noqa: F401
from .netlink import NetlinkStateWatcher, create_netlink_watcher  # noqa: F401

__all__ = ["FileStateWatcher", "NetlinkStateWatcher", "create_netlink_watcher"]
