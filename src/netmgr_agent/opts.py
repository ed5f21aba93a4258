"""oslo.config options for embedding the agent into an oslo-based service.

The standalone agent reads YAML (see :mod:`netmgr_agent.config`); services
that already use oslo.config can register these options instead and build
the same :class:`~netmgr_agent.config.AgentConfig` from them.
"""

from pathlib import Path

from oslo_config import cfg, types

from netmgr_events.translator import RT_TABLE_LOCAL

from .config import AgentConfig, ManagerConfig, WatcherConfig

GROUP = 'netmgr'

netmgr_opts = [
    cfg.ListOpt('ignored_tables',
                item_type=types.Integer(),
                default=[RT_TABLE_LOCAL],
                help='Routing table ids whose routes are never tracked.'),
    cfg.BoolOpt('log_changes',
                default=True,
                help='Log every route, address and interface change.'),
    cfg.StrOpt('state_file',
               default=None,
               help='JSON snapshot file to poll. '
                    'If not set, the file watcher is disabled.'),
    cfg.BoolOpt('netlink',
                default=False,
                help='Poll the kernel state over netlink.'),
    cfg.FloatOpt('poll_interval',
                 default=5.0,
                 min=0.1,
                 help='Seconds between two polls of each watcher.'),
]


def register_opts(conf=cfg.CONF):
    """Register netmgr options in the ``[netmgr]`` group of ``conf``."""
    conf.register_opts(netmgr_opts, group=GROUP)


def config_from_conf(conf=cfg.CONF):
    """Build an :class:`AgentConfig` from registered oslo.config options."""
    group = conf[GROUP]
    watchers = []
    if group.state_file:
        watchers.append(WatcherConfig(type='file',
                                      path=Path(group.state_file),
                                      interval=group.poll_interval))
    if group.netlink:
        watchers.append(WatcherConfig(type='netlink',
                                      path=Path('.'),
                                      interval=group.poll_interval))
    return AgentConfig(
        manager=ManagerConfig(ignored_tables=tuple(group.ignored_tables),
                              log_changes=group.log_changes),
        watchers=watchers,
    )
