"""Page image endpoint for v1 API."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from imageserver.api.v1.dependencies import get_path_resolver, get_stream_page_image_handler
from imageserver.application.queries.stream_page_image import (
    PageImageStream,
    StreamPageImageHandler,
    StreamPageImageQuery,
)
from imageserver.constants import BUSY_STATUS_CODE, FAILURE_STATUS_CODE, PNG_MEDIA_TYPE
from imageserver.domain.exceptions import ImageServiceError, ServiceBusyError
from imageserver.domain.services.path_resolver import PathResolver
from imageserver.domain.value_objects.page_index import parse_page_number

logger = logging.getLogger(__name__)

router = APIRouter(tags=["images"])


class PageImageResponse(StreamingResponse):
    """Streams a page image and releases its producer however the response ends."""

    def __init__(self, stream: PageImageStream):
        super().__init__(stream, media_type=PNG_MEDIA_TYPE)
        self._stream = stream

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            # Covers client disconnects, where the body iterator is abandoned.
            self._stream.close()


@router.get("/{document_path:path}")
def get_page_image(
    document_path: str,
    page: Optional[str] = Query(default=None),
    resolver: PathResolver = Depends(get_path_resolver),
    handler: StreamPageImageHandler = Depends(get_stream_page_image_handler),
) -> Response:
    reference = "/" + document_path
    page_index = parse_page_number(page)
    logger.debug("Page number (zero-origin): %s", int(page_index))

    context = {"reference": reference, "page_index": int(page_index)}
    try:
        path = resolver.resolve(reference)
        stream = handler.handle(StreamPageImageQuery(document_path=path, page_index=page_index))
    except ServiceBusyError as exc:
        logger.warning("Refusing request: %s", exc, extra=context)
        return Response(status_code=BUSY_STATUS_CODE)
    except ImageServiceError as exc:
        logger.warning("Cannot serve request: %s", exc, extra=context)
        return Response(status_code=FAILURE_STATUS_CODE)

    try:
        # Status is committed only once the first chunk exists or production failed.
        stream.first_chunk()
    except ImageServiceError as exc:
        # The producer has already logged the failure with its document context.
        stream.close()
        logger.debug("Page image failed before any bytes: %s", exc, extra=context)
        return Response(status_code=FAILURE_STATUS_CODE)

    return PageImageResponse(stream)
