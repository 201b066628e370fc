"""Bounded in-memory byte channel between a producer thread and a reader."""
from __future__ import annotations

import logging
from collections import deque
from threading import Condition
from typing import Deque, Optional

from imageserver.constants import DEFAULT_CHUNK_SIZE, DEFAULT_MAX_PENDING_CHUNKS

logger = logging.getLogger(__name__)


class ConduitClosedError(BrokenPipeError):
    """Raised to a writer once the reading side has gone away."""


class ByteConduit:
    """
    Blocking, bounded pipe of byte chunks.

    The writing side looks like a binary file (``write``/``flush``) so a codec
    can write into it directly. Small writes are coalesced into chunks of
    ``chunk_size`` bytes; at most ``max_pending_chunks`` chunks wait for the
    reader, after which ``write`` blocks. ``read`` blocks until a chunk is
    available or the writer has closed.

    ``cancel`` is the reader's way out: queued chunks are dropped and a writer
    blocked in ``write`` wakes up with ``ConduitClosedError``.
    """

    def __init__(
        self,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_pending_chunks: int = DEFAULT_MAX_PENDING_CHUNKS,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        if max_pending_chunks < 1:
            raise ValueError("max_pending_chunks must be positive")
        self._chunk_size = chunk_size
        self._max_pending_chunks = max_pending_chunks
        self._chunks: Deque[bytes] = deque()
        self._condition = Condition()
        # Only touched by the writing thread.
        self._buffer = bytearray()
        self._finished = False
        self._cancelled = False
        self._error: Optional[BaseException] = None
        self.bytes_written = 0

    # ------------------------------------------------------------------
    # Writer side
    # ------------------------------------------------------------------
    def writable(self) -> bool:
        return True

    def write(self, data: bytes) -> int:
        with self._condition:
            self._ensure_open()
        self._buffer.extend(data)
        while len(self._buffer) >= self._chunk_size:
            chunk = bytes(self._buffer[: self._chunk_size])
            del self._buffer[: self._chunk_size]
            self._put(chunk)
        return len(data)

    def flush(self) -> None:
        # Partial chunks stay buffered until ``close``.
        pass

    def close(self, error: Optional[BaseException] = None) -> None:
        """Finish the writing side, optionally handing ``error`` to the reader.

        Buffered bytes are delivered only on a clean close. Calling ``close``
        again has no effect.
        """
        with self._condition:
            if self._finished:
                return
        if error is None and self._buffer:
            try:
                self._put(bytes(self._buffer))
            except ConduitClosedError:
                pass
        self._buffer.clear()
        with self._condition:
            self._finished = True
            self._error = error
            self._condition.notify_all()

    def _put(self, chunk: bytes) -> None:
        with self._condition:
            while len(self._chunks) >= self._max_pending_chunks and not self._cancelled:
                self._condition.wait()
            self._ensure_open()
            self._chunks.append(chunk)
            self.bytes_written += len(chunk)
            self._condition.notify_all()

    def _ensure_open(self) -> None:
        if self._cancelled:
            raise ConduitClosedError("Reader closed the conduit")
        if self._finished:
            raise ValueError("write to a closed conduit")

    # ------------------------------------------------------------------
    # Reader side
    # ------------------------------------------------------------------
    def read(self) -> bytes:
        """Return the next chunk, or ``b""`` at end of stream.

        Raises the error the writer closed with, once all chunks written
        before it have been read.
        """
        with self._condition:
            while not self._chunks and not self._finished and not self._cancelled:
                self._condition.wait()
            if self._chunks:
                chunk = self._chunks.popleft()
                self._condition.notify_all()
                return chunk
            if self._error is not None and not self._cancelled:
                raise self._error
            return b""

    def cancel(self) -> None:
        """Stop reading: drop queued chunks and release a blocked writer."""
        with self._condition:
            if self._cancelled:
                return
            self._cancelled = True
            dropped = len(self._chunks)
            self._chunks.clear()
            self._condition.notify_all()
        if dropped:
            logger.debug("Conduit cancelled with %s chunks unread", dropped)
