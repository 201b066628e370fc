"""
Domain services for request handling that doesn't belong to a specific entity.

- Resolving request paths inside the served root
- Rotating decoded images into display orientation
"""
from .orientation_corrector import OrientationCorrector, quadrant_transform
from .path_resolver import PathResolver

__all__ = ["OrientationCorrector", "PathResolver", "quadrant_transform"]
