"""File-based network state watcher."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Event, Thread
from typing import Any, Optional

from netmgr_events.translator import EventTranslator

from ..state_file import parse_state

LOG = logging.getLogger(__name__)


class FileStateWatcher(Thread):
    """Poll a JSON state file and apply it as a full snapshot."""

    def __init__(
        self,
        translator: EventTranslator,
        path: Path,
        interval: float,
        stop_event: Event,
    ) -> None:
        super().__init__(daemon=True)
        self._translator = translator
        self._path = Path(path)
        self._interval = interval
        self._stop_event = stop_event
        self._last_payload: Optional[Any] = None

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("file watcher encountered an error")
            self._stop_event.wait(self._interval)

    def poll(self) -> bool:
        """Apply the state file if it changed; return True when applied."""

        if not self._path.exists():
            LOG.debug("state file %s does not exist yet", self._path)
            return False

        try:
            payload = json.loads(self._path.read_text())
        except json.JSONDecodeError as exc:
            LOG.warning("failed to parse state file %s: %s", self._path, exc)
            return False

        if payload == self._last_payload:
            LOG.debug("state file %s unchanged", self._path)
            return False

        try:
            batch = parse_state(payload)
        except ValueError as exc:
            LOG.warning("invalid state file %s: %s", self._path, exc)
            return False

        LOG.debug("state file %s changed; applying snapshot", self._path)
        self._translator.apply_snapshot(batch)
        self._last_payload = payload
        return True
