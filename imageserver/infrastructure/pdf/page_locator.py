"""PDF page image lookup for the infrastructure layer."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import fitz  # type: ignore
import numpy as np

from imageserver.domain.entities.image_buffer import ImageBuffer
from imageserver.domain.exceptions import NotFoundError, ParseError, RangeError
from imageserver.domain.value_objects.page_index import PageIndex
from imageserver.domain.value_objects.rotation import RotationAngle

logger = logging.getLogger(__name__)

# Column positions in the tuples returned by ``Page.get_images(full=True)``.
_XREF = 0
_SMASK = 1
_NAME = 7
_REFERENCER = 9


@dataclass(frozen=True)
class LocatedImage:
    """The image found on a page, with the metadata needed to display it."""

    image: ImageBuffer
    rotation: RotationAngle
    page_count: int
    resource_name: str
    xref: int


class PageLocator:
    """Finds the embedded raster image on a PDF page."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @contextmanager
    def open(self, pdf_path: Path | str) -> Iterator[fitz.Document]:
        """Open ``pdf_path`` as a PDF and close it when the block exits."""

        try:
            document = fitz.open(Path(pdf_path), filetype="pdf")
        except (RuntimeError, OSError) as exc:
            raise ParseError(f"Cannot parse PDF document {pdf_path}", exc) from exc

        logger.debug("Loaded PDF document from %s", pdf_path)
        try:
            yield document
        finally:
            document.close()

    def locate(self, document: fitz.Document, page_index: PageIndex) -> LocatedImage:
        """Return the first image on the page at ``page_index``.

        First embedded image wins: the page's image resources are taken in
        the order of its ``/XObject`` resource dictionary and the first one is
        returned, whatever its size or position on the page. Images nested
        inside form XObjects are not considered.
        """

        page_count = document.page_count
        logger.debug("Document has %s pages", page_count)
        index = int(page_index)
        if not 0 <= index < page_count:
            raise RangeError(index, page_count)

        try:
            page = document.load_page(index)
            images = page.get_images(full=True)
        except RuntimeError as exc:
            raise ParseError(f"Cannot read page {index + 1}", exc) from exc

        for entry in images:
            if entry[_REFERENCER]:
                continue

            xref, smask, name = entry[_XREF], entry[_SMASK], entry[_NAME]
            logger.debug("Found image resource %s (xref %s)", name, xref)
            logger.debug("Page media-box: %s", page.mediabox)
            logger.debug("Page crop-box: %s", page.cropbox)
            logger.debug("Page art-box: %s", page.artbox)

            rotation = RotationAngle.normalize(page.rotation)
            logger.debug("Page to be rotated %s degrees", int(rotation))

            image = self._decode(document, xref, smask)
            logger.debug("Image dimensions: [%s,%s]", image.width, image.height)
            return LocatedImage(
                image=image,
                rotation=rotation,
                page_count=page_count,
                resource_name=name,
                xref=xref,
            )

        raise NotFoundError(f"Could not find image on page {index + 1}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _decode(document: fitz.Document, xref: int, smask: int) -> ImageBuffer:
        try:
            pixmap = fitz.Pixmap(document, xref)
            if pixmap.colorspace is None:
                raise ParseError(f"Image xref {xref} has no colorspace")
            if pixmap.alpha:
                pixmap = fitz.Pixmap(pixmap, 0)
            if pixmap.colorspace.n != 3:
                pixmap = fitz.Pixmap(fitz.csRGB, pixmap)
            rgb = np.frombuffer(pixmap.samples, dtype=np.uint8).reshape(
                pixmap.height, pixmap.width, 3
            )
            alpha = PageLocator._soft_mask(document, smask, pixmap.width, pixmap.height)
        except (RuntimeError, ValueError) as exc:
            raise ParseError(f"Cannot decode image xref {xref}", exc) from exc

        return ImageBuffer(np.dstack((rgb, alpha)))

    @staticmethod
    def _soft_mask(document: fitz.Document, smask: int, width: int, height: int) -> np.ndarray:
        opaque = np.full((height, width), 255, dtype=np.uint8)
        if not smask:
            return opaque

        mask = fitz.Pixmap(document, smask)
        if mask.n - mask.alpha != 1 or (mask.width, mask.height) != (width, height):
            logger.debug(
                "Ignoring soft mask xref %s (%sx%s, %s components)",
                smask,
                mask.width,
                mask.height,
                mask.n,
            )
            return opaque
        if mask.alpha:
            mask = fitz.Pixmap(mask, 0)
        return np.frombuffer(mask.samples, dtype=np.uint8).reshape(height, width)
