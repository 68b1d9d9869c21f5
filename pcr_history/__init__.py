"""Top-level package for the PCR snapshot history service.

Subpackages cover configuration, core primitives, the market clock, durable
snapshot storage and the interval analytics built on top of it. Acquisition of
raw option data lives outside this package; producers hand finished PCR values
to :class:`pcr_history.storage.SnapshotStore`.
"""

__version__ = "0.1.0"

__all__: list[str] = ["__version__"]
