"""YAML configuration loader for the netmgr agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Sequence

import yaml

from netmgr_events.translator import RT_TABLE_LOCAL


@dataclass
class ManagerConfig:
    ignored_tables: Sequence[int] = (RT_TABLE_LOCAL,)
    log_changes: bool = True


@dataclass
class WatcherConfig:
    type: str
    path: Path
    interval: float = 5.0
    options: dict = field(default_factory=dict)


@dataclass
class AgentConfig:
    manager: ManagerConfig = field(default_factory=ManagerConfig)
    watchers: Sequence[WatcherConfig] = field(default_factory=list)


def _parse_manager(section: dict) -> ManagerConfig:
    if not isinstance(section, dict):
        raise ValueError("'manager' section must be a mapping")

    tables_raw = section.get("ignored_tables", [RT_TABLE_LOCAL])
    if not isinstance(tables_raw, list):
        raise ValueError("'ignored_tables' must be a list of table ids")

    return ManagerConfig(
        ignored_tables=tuple(int(t) for t in tables_raw),
        log_changes=bool(section.get("log_changes", True)),
    )


def _parse_watchers(entries: Iterable[dict]) -> List[WatcherConfig]:
    watchers: List[WatcherConfig] = []
    for entry in entries:
        options = entry.get("options", {})
        if not isinstance(options, dict):
            raise ValueError("watcher 'options' must be a mapping if provided")
        watchers.append(
            WatcherConfig(
                type=str(entry["type"]),
                path=Path(entry.get("path", ".")),
                interval=float(entry.get("interval", entry.get("poll_interval", 5.0))),
                options=options,
            )
        )
    return watchers


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(path.read_text())
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    manager = _parse_manager(data.get("manager") or {})

    watchers_section = data.get("watchers", [])
    if not isinstance(watchers_section, list):
        raise ValueError("'watchers' section must be a list")
    watchers = _parse_watchers(watchers_section)

    return AgentConfig(manager=manager, watchers=watchers)
