"""PNG encoding helpers used by the infrastructure layer."""
from __future__ import annotations

import logging
from typing import BinaryIO

from PIL import Image

from imageserver.domain.entities.image_buffer import ImageBuffer
from imageserver.domain.exceptions import EncodeError

logger = logging.getLogger(__name__)


class PngEncoder:
    """Writes image buffers to a binary sink as PNG.

    Pillow emits the encoded stream block by block through ``sink.write``,
    so a sink backed by a bounded channel receives the image while it is
    still being compressed.
    """

    def __init__(self, *, compress_level: int = 6) -> None:
        if not 0 <= compress_level <= 9:
            raise ValueError("compress_level must be between 0 and 9")
        self._compress_level = compress_level

    def encode_to(self, image: ImageBuffer, sink: BinaryIO) -> None:
        """Encode ``image`` into ``sink``.

        Errors raised by the sink itself while it is a closed pipe are passed
        through unchanged so the caller can tell a departed reader apart from a
        codec failure.
        """

        logger.debug("Begin generating PNG image (%sx%s)", image.width, image.height)
        try:
            picture = Image.fromarray(image.pixels)
            picture.save(sink, format="PNG", compress_level=self._compress_level)
        except BrokenPipeError:
            raise
        except (OSError, ValueError, TypeError) as exc:
            raise EncodeError(f"PNG encoding failed for {image.width}x{image.height} image", exc) from exc
        logger.debug("Completed generating PNG image")
