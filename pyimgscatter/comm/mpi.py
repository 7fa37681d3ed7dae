"""``mpi4py`` backend.

Launch every rank with the same command line, e.g.::

    mpiexec -n 4 pyimgscatter --backend mpi --input in.png --output out.jpg --filter invert
"""

from __future__ import annotations

import logging
from typing import Any, NoReturn, Optional, Sequence

from numpy.typing import NDArray

from pyimgscatter.utils.optional_deps import require

logger = logging.getLogger(__name__)


def _load_mpi():
    return require("mpi4py.MPI", extra="mpi", purpose="the MPI process-group backend")


class MPICommunicator:
    """`Communicator` over an ``mpi4py`` intracommunicator (``COMM_WORLD`` by default)."""

    def __init__(self, comm: Any = None) -> None:
        self._mpi = _load_mpi()
        self._comm = comm if comm is not None else self._mpi.COMM_WORLD
        self.rank = int(self._comm.Get_rank())
        self.size = int(self._comm.Get_size())

    def bcast(self, obj: Any, root: int = 0) -> Any:
        return self._comm.bcast(obj, root=root)

    def scatterv(
        self,
        sendbuf: Optional[NDArray],
        counts: Sequence[int],
        displs: Sequence[int],
        recvbuf: NDArray,
        root: int = 0,
    ) -> None:
        byte = self._mpi.UNSIGNED_CHAR
        if self.rank == root:
            spec = [sendbuf, [int(c) for c in counts], [int(d) for d in displs], byte]
        else:
            spec = None
        self._comm.Scatterv(spec, [recvbuf, byte], root=root)

    def gatherv(
        self,
        sendbuf: NDArray,
        recvbuf: Optional[NDArray],
        counts: Sequence[int],
        displs: Sequence[int],
        root: int = 0,
    ) -> None:
        byte = self._mpi.UNSIGNED_CHAR
        if self.rank == root:
            spec = [recvbuf, [int(c) for c in counts], [int(d) for d in displs], byte]
        else:
            spec = None
        self._comm.Gatherv([sendbuf, byte], spec, root=root)

    def abort(self, errorcode: int = 1, reason: Optional[BaseException] = None) -> NoReturn:
        if reason is not None:
            logger.critical("aborting MPI job: %s", reason)
        self._comm.Abort(int(errorcode))
        raise SystemExit(int(errorcode))  # pragma: no cover - Abort does not return
