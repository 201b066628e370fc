"""
Domain Value Objects

Immutable value objects that encapsulate request and page metadata.
"""
from .page_index import PageIndex, parse_page_number
from .rotation import RotationAngle

__all__ = [
    'PageIndex',
    'RotationAngle',
    'parse_page_number',
]
