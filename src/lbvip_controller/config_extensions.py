"""oslo.config options for running the VIP controller inside an oslo service.

The standalone agent reads YAML (see :mod:`lbvip_agent.config`); services
built on oslo register these options instead and derive the same
:class:`~lbvip_agent.config.ControllerConfig` from them.
"""

from oslo_config import cfg

from lbvip.model import DEFAULT_SERVICE_TYPES

VIP_GROUP = "vip"

vip_opts = [
    cfg.StrOpt('provider_id',
               help='Identifier of this VIP provider, e.g. "bigip" or '
                    '"fortigate". Written to the vip-active-provider '
                    'annotation of every claimed Service.'),
    cfg.BoolOpt('require_opt_in',
                default=False,
                help='Only manage Services carrying the req-vip annotation.'),
    cfg.ListOpt('service_types',
                default=list(DEFAULT_SERVICE_TYPES),
                help='Service types that receive a VIP.'),
    cfg.IntOpt('workers',
               default=1,
               min=1,
               help='Number of reconcile worker threads.'),
    cfg.FloatOpt('resync_interval',
                 default=30.0,
                 help='Seconds between full resyncs of all Services.'),
    cfg.FloatOpt('backoff_base',
                 default=0.5,
                 help='Initial retry delay in seconds after a failed pass.'),
    cfg.FloatOpt('backoff_max',
                 default=30.0,
                 help='Upper bound for the retry delay in seconds.'),
]


def register_vip_opts(conf=None):
    """Register the VIP options in the ``[vip]`` group of ``conf``."""
    conf = conf if conf is not None else cfg.CONF
    conf.register_opts(vip_opts, group=VIP_GROUP)
    return conf


def controller_config_from_conf(conf=None):
    """Build a ControllerConfig from registered and parsed options."""
    from lbvip_agent.config import ControllerConfig

    conf = conf if conf is not None else cfg.CONF
    group = conf[VIP_GROUP]
    if not group.provider_id:
        raise ValueError("[vip] provider_id must be set")

    return ControllerConfig(
        provider_id=group.provider_id,
        require_opt_in=group.require_opt_in,
        service_types=tuple(group.service_types),
        workers=group.workers,
        resync_interval=group.resync_interval,
        backoff_base=group.backoff_base,
        backoff_max=group.backoff_max,
    )
