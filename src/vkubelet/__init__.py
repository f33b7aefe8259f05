"""Minimal virtual-kubelet style integration helpers.

virtual-kubelet discovers providers by name and drives them through a fixed
lifecycle contract.  This package carries a lightweight subset of that
surface (the :class:`~vkubelet.providers.Provider` interface, the workload
and node descriptors, and a name-keyed registry) so providers can be
exercised end-to-end in tests and lab setups without the real framework.
"""

from .providers import Provider  # noqa: F401
from .registry import InitConfig, ProviderRegistry  # noqa: F401

__all__ = [
    "InitConfig",
    "Provider",
    "ProviderRegistry",
]
