"""API v1 routers package."""

from . import images

__all__ = [
    "images",
]
