"""
StreamPageImage Query - Streams the PNG rendition of a page's image.

A producer running on a worker thread opens the document, locates the page
image, rotates it into display orientation and encodes it as PNG into a
bounded conduit. The caller consumes the conduit through a
``PageImageStream`` while the image is still being encoded. Producers are
admitted only while one of a fixed number of slots is free.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from imageserver.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_PENDING_CHUNKS,
    DEFAULT_MAX_PRODUCERS,
)
from imageserver.domain.exceptions import ImageServiceError, ServiceBusyError
from imageserver.domain.services.orientation_corrector import OrientationCorrector
from imageserver.domain.value_objects.page_index import PageIndex
from imageserver.infrastructure.pdf.page_locator import PageLocator
from imageserver.infrastructure.pdf.png_encoder import PngEncoder
from imageserver.infrastructure.streaming.conduit import ByteConduit, ConduitClosedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamPageImageQuery:
    """Query to stream the image embedded in one page of a document."""

    document_path: Path
    page_index: PageIndex

    def log_context(self) -> Dict[str, Any]:
        return {
            "document_path": str(self.document_path),
            "page_index": int(self.page_index),
        }


class PageImageStream:
    """
    Reading end of one request's pipeline.

    ``first_chunk`` waits until the producer has either produced its first
    chunk or failed, which lets the caller choose the response status only
    once the outcome is known. Iterating yields the encoded bytes; ``close``
    releases the producer if the reader stops early.
    """

    def __init__(self, conduit: ByteConduit, producer: Future, query: StreamPageImageQuery):
        self._conduit = conduit
        self._query = query
        self.producer = producer
        self._first: Optional[bytes] = None

    def first_chunk(self) -> bytes:
        """
        Block until the first encoded bytes are ready.

        Raises:
            ImageServiceError: If production failed before any bytes were
                delivered.
        """
        if self._first is None:
            self._first = self._conduit.read()
        return self._first

    def __iter__(self) -> Iterator[bytes]:
        try:
            chunk = self.first_chunk()
            while chunk:
                yield chunk
                chunk = self._conduit.read()
        except ImageServiceError as exc:
            logger.warning(
                "Response body truncated: %s",
                exc,
                extra=self._query.log_context(),
            )
        finally:
            self.close()

    def close(self) -> None:
        # A producer still queued on the executor never starts.
        self.producer.cancel()
        self._conduit.cancel()


class StreamPageImageHandler:
    """Handles StreamPageImage queries."""

    def __init__(
        self,
        locator: PageLocator,
        corrector: OrientationCorrector,
        encoder: PngEncoder,
        executor: Executor,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_pending_chunks: int = DEFAULT_MAX_PENDING_CHUNKS,
        max_producers: int = DEFAULT_MAX_PRODUCERS,
    ):
        """
        Initialize handler with its pipeline stages.

        Args:
            locator: Opens documents and finds the page image
            corrector: Rotates the image into display orientation
            encoder: Writes the PNG encoding
            executor: Runs one producer per query; needs at least
                max_producers workers
            chunk_size: Bytes per conduit chunk
            max_pending_chunks: Chunks buffered before the producer blocks
            max_producers: Producers allowed in flight at once
        """
        self._locator = locator
        self._corrector = corrector
        self._encoder = encoder
        self._executor = executor
        self._chunk_size = chunk_size
        self._max_pending_chunks = max_pending_chunks
        self._max_producers = max_producers
        self._slots = threading.BoundedSemaphore(max_producers)

    def handle(self, query: StreamPageImageQuery) -> PageImageStream:
        """
        Start producing the page image and return its stream.

        Production errors surface from the returned stream, not from this call.

        Raises:
            ServiceBusyError: If max_producers producers are already in flight.
                Readers only ever wait on producers that have started, so a
                full house is refused rather than queued.
        """
        if not self._slots.acquire(blocking=False):
            raise ServiceBusyError(self._max_producers)
        conduit = ByteConduit(
            chunk_size=self._chunk_size,
            max_pending_chunks=self._max_pending_chunks,
        )
        try:
            producer = self._executor.submit(self._produce, query, conduit)
        except BaseException:
            self._slots.release()
            raise
        # A producer that starts hands its slot back itself before it completes.
        producer.add_done_callback(self._release_if_cancelled)
        return PageImageStream(conduit, producer, query)

    def _release_if_cancelled(self, producer: Future) -> None:
        if producer.cancelled():
            self._slots.release()

    def _produce(self, query: StreamPageImageQuery, conduit: ByteConduit) -> None:
        context = query.log_context()
        error: Optional[BaseException] = None
        try:
            with self._locator.open(query.document_path) as document:
                located = self._locator.locate(document, query.page_index)
            context.update(
                page_count=located.page_count,
                rotation=int(located.rotation),
                resource=located.resource_name,
            )
            image = self._corrector.correct(located.image, located.rotation)
            self._encoder.encode_to(image, conduit)
        except ConduitClosedError:
            logger.info(
                "Client went away after %s bytes; stopped producing",
                conduit.bytes_written,
                extra=context,
            )
        except ImageServiceError as exc:
            logger.error("Cannot produce page image: %s", exc, extra=context)
            error = exc
        except Exception as exc:
            logger.exception("Unexpected failure producing page image", extra=context)
            error = ImageServiceError(f"Unexpected failure: {exc}", exc)
        else:
            logger.debug("Produced page image", extra=context)
        finally:
            # Freed before the reader sees the end, so a follow-up request finds the slot.
            self._slots.release()
            conduit.close(error)
