from pathlib import Path

import pytest

from netmgr_agent.config import load_config


def test_load_config(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text(
        """
manager:
  ignored_tables: [255, 253]
  log_changes: false
watchers:
  - type: file
    path: /var/lib/netmgr/state.json
    interval: 2
  - type: netlink
    poll_interval: 10
    options:
      interval: 3
"""
    )

    cfg = load_config(config_path)

    assert cfg.manager.ignored_tables == (255, 253)
    assert cfg.manager.log_changes is False
    assert len(cfg.watchers) == 2
    watcher = cfg.watchers[0]
    assert watcher.type == "file"
    assert watcher.path == Path("/var/lib/netmgr/state.json")
    assert watcher.interval == pytest.approx(2.0)
    assert watcher.options == {}

    netlink_watcher = cfg.watchers[1]
    assert netlink_watcher.type == "netlink"
    assert netlink_watcher.interval == pytest.approx(10.0)
    assert netlink_watcher.options["interval"] == 3


def test_manager_section_is_optional(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text("watchers: []\n")

    cfg = load_config(config_path)

    assert cfg.manager.ignored_tables == (255,)
    assert cfg.manager.log_changes is True
    assert cfg.watchers == []


@pytest.mark.parametrize(
    "document",
    [
        "- just\n- a list\n",
        "manager: [1, 2]\n",
        "manager:\n  ignored_tables: 255\n",
        "watchers: {type: file}\n",
        "watchers:\n  - type: file\n    options: [1]\n",
    ],
)
def test_load_config_rejects_malformed_documents(tmp_path: Path, document):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text(document)

    with pytest.raises(ValueError):
        load_config(config_path)
