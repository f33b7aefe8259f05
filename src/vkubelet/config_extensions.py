"""oslo.config options for hosting a virtual-kubelet provider.

The host process registers these on its ``ConfigOpts`` instance and turns
the parsed values into an :class:`~vkubelet.registry.InitConfig`.
"""

from pathlib import Path

from oslo_config import cfg

from tinc_provider.config import (
    DEFAULT_ARTIFACT_ROOT,
    DEFAULT_DOCKER_BINARY,
    DEFAULT_IMAGE,
    DEFAULT_PORT,
)

from .registry import InitConfig

PROVIDER_GROUP = "provider"

provider_opts = [
    cfg.StrOpt('name',
               default='tinc',
               help='Name of the registered provider backing this node.'),
    cfg.StrOpt('config_path',
               default=None,
               help='JSON or YAML file mapping node names to provider '
                    'settings. If not set, built-in defaults are used.'),
    cfg.StrOpt('node_name',
               default='vk-tinc',
               help='Name of the virtual node.'),
    cfg.StrOpt('internal_ip',
               default='',
               help='InternalIP reported in the node addresses.'),
    cfg.PortOpt('daemon_port',
                default=DEFAULT_PORT,
                help='Port reported as the kubelet daemon endpoint and used '
                     'for the mesh host bindings.'),
    cfg.StrOpt('artifact_root',
               default=str(DEFAULT_ARTIFACT_ROOT),
               help='Directory under which generated mesh configuration '
                    'files are written, one subdirectory per mesh node.'),
    cfg.StrOpt('image',
               default=DEFAULT_IMAGE,
               help='Container image running the mesh daemon.'),
    cfg.StrOpt('docker_binary',
               default=DEFAULT_DOCKER_BINARY,
               help='Path of the container runtime CLI.'),
    cfg.FloatOpt('runtime_timeout',
                 default=None,
                 min=0,
                 help='Seconds to wait for each container runtime call. '
                      'If not set, calls wait indefinitely.'),
]


def register_provider_opts(conf):
    """Register the provider options under the ``provider`` group."""
    conf.register_opts(provider_opts, group=PROVIDER_GROUP)


def init_config_from_conf(conf):
    """Build an :class:`InitConfig` from registered and parsed options."""
    group = getattr(conf, PROVIDER_GROUP)
    return InitConfig(
        node_name=group.node_name,
        config_path=Path(group.config_path) if group.config_path else None,
        internal_ip=group.internal_ip,
        daemon_port=group.daemon_port,
        artifact_root=Path(group.artifact_root),
        image=group.image,
        docker_binary=group.docker_binary,
        runtime_timeout=group.runtime_timeout,
    )


def provider_name_from_conf(conf):
    """Return the registry name of the configured provider."""
    return getattr(conf, PROVIDER_GROUP)['name']
