from __future__ import annotations

from typing import Any, NoReturn, Optional, Protocol, Sequence

from numpy.typing import NDArray


class Communicator(Protocol):
    """The collective operations a scatter/gather round needs.

    Buffers are flat ``uint8`` numpy arrays. Every rank of the group must
    enter each collective call in the same order; ``counts`` / ``displs`` are
    per-rank byte counts and offsets into the root's buffer and are only read
    on the root.
    """

    rank: int
    size: int

    def bcast(self, obj: Any, root: int = 0) -> Any: ...

    def scatterv(
        self,
        sendbuf: Optional[NDArray],
        counts: Sequence[int],
        displs: Sequence[int],
        recvbuf: NDArray,
        root: int = 0,
    ) -> None: ...

    def gatherv(
        self,
        sendbuf: NDArray,
        recvbuf: Optional[NDArray],
        counts: Sequence[int],
        displs: Sequence[int],
        root: int = 0,
    ) -> None: ...

    def abort(self, errorcode: int = 1, reason: Optional[BaseException] = None) -> NoReturn: ...
