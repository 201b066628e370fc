"""Domain entities package"""

from .image_buffer import ImageBuffer

__all__ = ["ImageBuffer"]
