"""PDF infrastructure utilities."""

from .page_locator import LocatedImage, PageLocator
from .png_encoder import PngEncoder

__all__ = ["LocatedImage", "PageLocator", "PngEncoder"]
