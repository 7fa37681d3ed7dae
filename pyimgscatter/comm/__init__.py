"""Process-group backends for the scatter/gather round.

- `LocalProcessGroup`: a fixed group of ``multiprocessing`` processes on one host.
- `MPICommunicator`: ``mpi4py`` ``COMM_WORLD`` (install the ``mpi`` extra and
  launch with ``mpiexec``).
"""

from __future__ import annotations

from .base import Communicator
from .local import LocalCommunicator, LocalProcessGroup

__all__ = [
    "Communicator",
    "LocalCommunicator",
    "LocalProcessGroup",
    "MPICommunicator",
]


def __getattr__(name: str):  # pragma: no cover - thin delegation
    if name == "MPICommunicator":
        from .mpi import MPICommunicator

        return MPICommunicator
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
