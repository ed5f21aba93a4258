"""Entry point for the standalone netmgr agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event, Thread

from netmgr import NetManager
from netmgr_events import EventTranslator, LoggingMonitor, MonitorDispatcher

from .config import WatcherConfig, load_config
from .watchers import FileStateWatcher, create_netlink_watcher

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def build_watcher(
    watcher_cfg: WatcherConfig, translator: EventTranslator, stop_event: Event
) -> Thread:
    if watcher_cfg.type == "file":
        return FileStateWatcher(
            translator=translator,
            path=watcher_cfg.path,
            interval=watcher_cfg.interval,
            stop_event=stop_event,
        )
    if watcher_cfg.type == "netlink":
        return create_netlink_watcher(
            translator, watcher_cfg.options, stop_event, watcher_cfg.interval
        )
    raise ValueError(f"unsupported watcher type '{watcher_cfg.type}'")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the netmgr agent")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("/etc/netmgr/agent.yaml"),
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    config = load_config(args.config)

    dispatcher = MonitorDispatcher()
    manager = NetManager(dispatcher)
    translator = EventTranslator(
        manager, ignored_tables=config.manager.ignored_tables
    )

    if config.manager.log_changes:
        monitor = LoggingMonitor()
        dispatcher.subscribe_interfaces(monitor, full_update=True)
        dispatcher.subscribe_addresses(monitor, full_update=True)
        dispatcher.subscribe_routes(monitor, full_update=True)

    stop_event = Event()

    watchers = []
    for watcher_cfg in config.watchers:
        watcher = build_watcher(watcher_cfg, translator, stop_event)
        # Perform an initial poll so monitors see a populated state
        try:
            watcher.poll()
        except Exception:  # pragma: no cover - logged inside watcher
            LOG.exception("initial poll failed for %s watcher", watcher_cfg.type)
        watchers.append(watcher)

    with translator.lock:
        dispatcher.run_scheduled_updates(manager)

    for watcher in watchers:
        watcher.start()

    if not watchers:
        LOG.warning("no watchers configured; agent will idle")

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()

    for watcher in watchers:
        watcher.join()

    LOG.info("netmgr agent stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
