"""Kernel poller that reconciles the manager against rtnetlink dumps."""

from __future__ import annotations

import logging
from threading import Event, Thread
from typing import Callable, Mapping

from netmgr_events.events import EventBatch
from netmgr_events.translator import EventTranslator

from .. import netlink

LOG = logging.getLogger(__name__)


class NetlinkStateWatcher(Thread):
    """Dump links, addresses and routes every ``interval`` seconds."""

    def __init__(
        self,
        translator: EventTranslator,
        *,
        interval: float,
        stop_event: Event,
        dump: Callable[[], EventBatch] = netlink.dump_state,
    ) -> None:
        super().__init__(daemon=True)
        self._translator = translator
        self._interval = interval
        self._stop = stop_event
        self._dump = dump

    def run(self) -> None:
        LOG.info("Starting netlink state watcher (interval=%ss)", self._interval)
        while not self._stop.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("Failed to refresh kernel network state")
            self._stop.wait(self._interval)
        LOG.info("Stopping netlink state watcher")

    def poll(self) -> None:
        batch = self._dump()
        LOG.debug(
            "Netlink poll found %d link(s), %d address(es), %d route(s)",
            len(batch.links),
            len(batch.addresses),
            len(batch.routes),
        )
        self._translator.apply_snapshot(batch)


def create_netlink_watcher(
    translator: EventTranslator,
    options: Mapping[str, object],
    stop_event: Event,
    default_interval: float,
) -> NetlinkStateWatcher:
    interval = float(options.get("interval", default_interval))
    if interval <= 0:
        raise ValueError("netlink watcher requires a positive 'interval'")
    return NetlinkStateWatcher(
        translator,
        interval=interval,
        stop_event=stop_event,
    )
