"""
PageIndex value object

Zero-based page index derived from the one-based ``page`` request
parameter.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from imageserver.constants import DEFAULT_PAGE_NUMBER

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageIndex:
    """
    Zero-based page index.

    The value is not range-checked here: only an open document knows its
    page count, so bounds are enforced by the page locator before the page
    is dereferenced.
    """
    value: int
    raw: Optional[str] = None

    def __int__(self) -> int:
        return self.value


def parse_page_number(raw: Optional[str]) -> PageIndex:
    """
    Lenient page number policy.

    An absent, empty or non-numeric page number falls back to page 1 instead
    of failing the request. Numeric values are converted as given, so
    ``"0"`` becomes index -1 and is rejected later as out of range.
    """
    if raw is None:
        return PageIndex(DEFAULT_PAGE_NUMBER - 1)

    text = raw.strip()
    if not text:
        logger.warning("Empty page number, using page %s", DEFAULT_PAGE_NUMBER)
        return PageIndex(DEFAULT_PAGE_NUMBER - 1, raw=raw)

    try:
        number = int(text)
    except ValueError:
        logger.warning("Cannot parse page number %r, using page %s", raw, DEFAULT_PAGE_NUMBER)
        return PageIndex(DEFAULT_PAGE_NUMBER - 1, raw=raw)

    return PageIndex(number - 1, raw=raw)
