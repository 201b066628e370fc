"""
OrientationCorrector domain service

Turns raw image pixels into display orientation according to the page's
clockwise rotation.

Each quadrant rotation is expressed the way a 2D graphics transform would
draw it: translate so the rotated content's bounding box lands at (0, 0),
then rotate by the quadrant multiple of 90 degrees:

- 90:  translate by (height, 0),     then rotate 90 clockwise
- 180: translate by (width, height), then rotate 180
- 270: translate by (0, width),      then rotate 270 clockwise

For 90 and 270 the destination swaps width and height.
"""
from __future__ import annotations

import logging

import cv2
import numpy as np

from imageserver.domain.entities.image_buffer import ImageBuffer
from imageserver.domain.value_objects.rotation import RotationAngle

logger = logging.getLogger(__name__)

# Rotation part of the transform per quadrant, y axis pointing down.
_QUADRANT_ROTATIONS = {
    0: ((1, 0), (0, 1)),
    1: ((0, -1), (1, 0)),
    2: ((-1, 0), (0, -1)),
    3: ((0, 1), (-1, 0)),
}


def quadrant_translation(width: int, height: int, angle: RotationAngle) -> tuple[int, int]:
    """Offset that brings the rotated bounding box back to the origin."""
    if angle is RotationAngle.CLOCKWISE_90:
        return height, 0
    if angle is RotationAngle.HALF_TURN:
        return width, height
    if angle is RotationAngle.CLOCKWISE_270:
        return 0, width
    return 0, 0


def quadrant_transform(width: int, height: int, angle: RotationAngle) -> np.ndarray:
    """
    Forward 2x3 affine matrix in pixel-edge coordinates.

    Maps the source rectangle ``[0, width] x [0, height]`` onto the
    destination rectangle with its corner at the origin.
    """
    (a, b), (c, d) = _QUADRANT_ROTATIONS[angle.quadrants]
    tx, ty = quadrant_translation(width, height, angle)
    return np.array([[a, b, tx], [c, d, ty]], dtype=np.float64)


def _to_pixel_centres(matrix: np.ndarray) -> np.ndarray:
    # Pixel (i, j) covers [i, i+1) and is sampled at i + 0.5; shift so that
    # integer indices map onto integer indices.
    centred = matrix.copy()
    half = np.array([0.5, 0.5])
    centred[:, 2] = matrix[:, :2] @ half + matrix[:, 2] - half
    return centred


class OrientationCorrector:
    """Rotates image buffers into display orientation."""

    def correct(self, image: ImageBuffer, angle: RotationAngle) -> ImageBuffer:
        """
        Return ``image`` rotated clockwise by ``angle``.

        A zero angle returns the same buffer object. Any other angle allocates a
        new buffer of the same pixel format.
        """
        angle = RotationAngle(angle)
        if angle is RotationAngle.NONE:
            return image

        if angle.swaps_dimensions:
            width, height = image.height, image.width
        else:
            width, height = image.width, image.height

        logger.debug(
            "Rotating image by %s degrees (quadrant %s): %sx%s -> %sx%s",
            int(angle),
            angle.quadrants,
            image.width,
            image.height,
            width,
            height,
        )

        matrix = _to_pixel_centres(quadrant_transform(image.width, image.height, angle))
        pixels = cv2.warpAffine(
            image.pixels,
            matrix,
            (width, height),
            flags=cv2.INTER_NEAREST,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=(0, 0, 0, 0),
        )
        return ImageBuffer(np.ascontiguousarray(pixels))
