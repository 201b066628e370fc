"""Serve the embedded raster image of a PDF page as PNG."""

__version__ = "0.1.0"
