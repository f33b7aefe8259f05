"""tinc backed virtual-kubelet provider.

The provider presents a single virtual node whose network identity is a tinc
mesh participant running in a container.  The package is split along the
pipeline the provider drives:

* :mod:`~tinc_provider.resolver` resolves and validates the node settings
  once at construction;
* :mod:`~tinc_provider.mesh` renders the tinc configuration bundle for the
  mesh role requested by a workload;
* :mod:`~tinc_provider.runtime` removes and (re)starts the mesh container
  through the docker CLI; and
* :mod:`~tinc_provider.store` keeps the authoritative in-memory record of
  workloads.

:class:`tinc_provider.provider.TincProvider` ties these together behind the
:class:`vkubelet.providers.Provider` contract.
"""

from .provider import TincProvider  # noqa: F401

__all__ = ["TincProvider"]
