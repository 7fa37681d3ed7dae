"""Single-host process group built on ``multiprocessing``.

Rank 0 runs in the calling process; ranks ``1..N-1`` run in child processes.
Each rank owns an inbox queue. Only the root ever sends to workers and only
workers ever send to the root, so each inbox sees messages from the root in
program order. Payloads are pickled copies: no rank can alias another rank's
memory.

Receives block without a deadline, but every rank also watches a shared abort
event so that one failing rank brings the whole group down instead of leaving
the survivors blocked in a collective.
"""

from __future__ import annotations

import logging
import multiprocessing
import queue
from typing import Any, Callable, NoReturn, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from pyimgscatter.errors import GroupAborted, ProtocolError
from pyimgscatter.utils.param_check import check_int

logger = logging.getLogger(__name__)

_POLL_SECONDS = 0.05
_JOIN_TIMEOUT_SECONDS = 10.0
_ABORT_JOIN_TIMEOUT_SECONDS = 1.0


def _flat_u8(buf: Any, *, name: str) -> NDArray:
    if not isinstance(buf, np.ndarray) or buf.dtype != np.uint8 or buf.ndim != 1:
        raise TypeError(f"{name} must be a flat uint8 numpy array")
    return buf


class LocalCommunicator:
    """`Communicator` for one rank of a `LocalProcessGroup`."""

    def __init__(self, rank: int, size: int, inboxes: Sequence[Any], abort_event: Any) -> None:
        self.size = check_int(size, 1, param_name="size")
        self.rank = check_int(rank, 0, self.size - 1, param_name="rank")
        if len(inboxes) != self.size:
            raise ValueError(f"expected {self.size} inboxes, got {len(inboxes)}")
        self._inboxes = list(inboxes)
        self._abort_event = abort_event

    # ------------------------------------------------------------------
    def _check_root(self, root: int) -> int:
        return check_int(root, 0, self.size - 1, param_name="root")

    def _check_tables(self, counts: Sequence[int], displs: Sequence[int], total: int) -> None:
        if len(counts) != self.size or len(displs) != self.size:
            raise ProtocolError(
                f"count/displacement tables must have {self.size} entries, "
                f"got {len(counts)} / {len(displs)}"
            )
        for r, (c, d) in enumerate(zip(counts, displs)):
            if int(c) < 0 or int(d) < 0 or int(d) + int(c) > total:
                raise ProtocolError(
                    f"rank {r}: bytes [{int(d)}, {int(d) + int(c)}) fall outside a {total}-byte buffer"
                )

    def _send(self, dest: int, kind: str, payload: Any) -> None:
        self._inboxes[dest].put((kind, self.rank, payload))

    def _recv(self, kind: str) -> tuple[int, Any]:
        inbox = self._inboxes[self.rank]
        while True:
            if self._abort_event.is_set():
                raise GroupAborted(1)
            try:
                got_kind, source, payload = inbox.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                continue
            if got_kind != kind:
                raise ProtocolError(
                    f"rank {self.rank} expected a {kind!r} message but received "
                    f"{got_kind!r} from rank {source}"
                )
            return int(source), payload

    # ------------------------------------------------------------------
    def bcast(self, obj: Any, root: int = 0) -> Any:
        root = self._check_root(root)
        if self.rank == root:
            for dest in range(self.size):
                if dest != root:
                    self._send(dest, "bcast", obj)
            return obj
        _source, payload = self._recv("bcast")
        return payload

    def scatterv(
        self,
        sendbuf: Optional[NDArray],
        counts: Sequence[int],
        displs: Sequence[int],
        recvbuf: NDArray,
        root: int = 0,
    ) -> None:
        root = self._check_root(root)
        recv = _flat_u8(recvbuf, name="recvbuf")

        if self.rank != root:
            _source, payload = self._recv("scatterv")
            if len(payload) != recv.nbytes:
                raise ProtocolError(
                    f"rank {self.rank} expected {recv.nbytes} scattered bytes, got {len(payload)}"
                )
            recv[...] = np.frombuffer(payload, dtype=np.uint8)
            return

        send = _flat_u8(sendbuf, name="sendbuf")
        self._check_tables(counts, displs, send.size)
        for dest in range(self.size):
            lo = int(displs[dest])
            hi = lo + int(counts[dest])
            if dest == root:
                if hi - lo != recv.nbytes:
                    raise ProtocolError(
                        f"root expected {recv.nbytes} scattered bytes, table says {hi - lo}"
                    )
                recv[...] = send[lo:hi]
            else:
                self._send(dest, "scatterv", send[lo:hi].tobytes())

    def gatherv(
        self,
        sendbuf: NDArray,
        recvbuf: Optional[NDArray],
        counts: Sequence[int],
        displs: Sequence[int],
        root: int = 0,
    ) -> None:
        root = self._check_root(root)
        send = _flat_u8(sendbuf, name="sendbuf")

        if self.rank != root:
            self._send(root, "gatherv", send.tobytes())
            return

        recv = _flat_u8(recvbuf, name="recvbuf")
        self._check_tables(counts, displs, recv.size)

        def _place(source: int, data: NDArray) -> None:
            lo = int(displs[source])
            expected = int(counts[source])
            if data.size != expected:
                raise ProtocolError(
                    f"rank {source} sent {data.size} bytes, root expected {expected}"
                )
            recv[lo : lo + expected] = data

        _place(root, send)
        seen = {root}
        for _ in range(self.size - 1):
            source, payload = self._recv("gatherv")
            if source in seen:
                raise ProtocolError(f"rank {source} contributed to gatherv twice")
            seen.add(source)
            _place(source, np.frombuffer(payload, dtype=np.uint8))

    def abort(self, errorcode: int = 1, reason: Optional[BaseException] = None) -> NoReturn:
        self._abort_event.set()
        raise GroupAborted(errorcode, reason) from reason


def _release_queues(inboxes: Sequence[Any]) -> None:
    # Undelivered messages must not keep a dying process alive.
    for inbox in inboxes:
        inbox.cancel_join_thread()


def _worker_main(
    rank: int,
    size: int,
    inboxes: Sequence[Any],
    abort_event: Any,
    target: Callable[..., Any],
    args: tuple,
    kwargs: dict,
) -> None:
    comm = LocalCommunicator(rank, size, inboxes, abort_event)
    try:
        target(comm, *args, **kwargs)
    except GroupAborted as exc:
        _release_queues(inboxes)
        raise SystemExit(exc.errorcode)
    except Exception:
        logger.exception("rank %d failed; aborting the process group", rank)
        abort_event.set()
        _release_queues(inboxes)
        raise SystemExit(1)


class LocalProcessGroup:
    """A fixed-size group of cooperating processes on the local host.

    Examples
    --------
    >>> group = LocalProcessGroup(4)
    >>> result = group.run(run_round, config)  # doctest: +SKIP

    ``target(comm, *args, **kwargs)`` runs once per rank; the return value of
    rank 0 is returned. `target` must be importable (picklable) when the
    ``spawn`` start method is used.
    """

    def __init__(self, size: int, *, start_method: Optional[str] = None) -> None:
        self.size = check_int(size, 1, param_name="size")
        self.start_method = start_method

    def run(self, target: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        ctx = multiprocessing.get_context(self.start_method)
        inboxes = [ctx.Queue() for _ in range(self.size)]
        abort_event = ctx.Event()

        workers = [
            ctx.Process(
                target=_worker_main,
                name=f"pyimgscatter-rank{rank}",
                args=(rank, self.size, inboxes, abort_event, target, args, kwargs),
                daemon=True,
            )
            for rank in range(1, self.size)
        ]
        for proc in workers:
            proc.start()
        logger.debug("started %d worker processes", len(workers))

        comm = LocalCommunicator(0, self.size, inboxes, abort_event)
        try:
            result = target(comm, *args, **kwargs)
        except BaseException:
            abort_event.set()
            raise
        finally:
            self._shutdown(workers, inboxes, abort_event)

        failed = [proc for proc in workers if proc.exitcode != 0]
        if failed:
            raise GroupAborted(int(failed[0].exitcode or 1))
        return result

    @staticmethod
    def _shutdown(workers: Sequence[Any], inboxes: Sequence[Any], abort_event: Any) -> None:
        aborted = abort_event.is_set()
        if aborted:
            _release_queues(inboxes)

        timeout = _ABORT_JOIN_TIMEOUT_SECONDS if aborted else _JOIN_TIMEOUT_SECONDS
        for proc in workers:
            proc.join(timeout)
        for proc in workers:
            if proc.is_alive():
                logger.warning("terminating %s", proc.name)
                proc.terminate()
                proc.join()
        for inbox in inboxes:
            inbox.close()
