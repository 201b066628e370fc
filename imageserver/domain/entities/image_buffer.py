"""
ImageBuffer entity

Decoded raster pixels handed from one pipeline stage to the next.
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

RGBA = "RGBA"


@dataclass(frozen=True, eq=False)
class ImageBuffer:
    """
    32-bit RGBA pixels with straight (non-premultiplied) alpha.

    ``pixels`` has shape ``(height, width, 4)`` and dtype ``uint8``. A buffer
    belongs to the stage that produced it and is passed on without copying.
    """
    pixels: np.ndarray

    def __post_init__(self) -> None:
        pixels = self.pixels
        if not isinstance(pixels, np.ndarray):
            raise TypeError("pixels must be a numpy array")
        if pixels.dtype != np.uint8:
            raise ValueError(f"pixels must be uint8, got {pixels.dtype}")
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"pixels must have shape (height, width, 4), got {pixels.shape}")
        if pixels.shape[0] < 1 or pixels.shape[1] < 1:
            raise ValueError("image must be at least 1x1")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def pixel_format(self) -> str:
        return RGBA
