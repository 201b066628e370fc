"""
PathResolver domain service

Turns the path of an incoming request into a readable file confined to the
served root directory.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from imageserver.domain.exceptions import NotFoundError, SecurityError

logger = logging.getLogger(__name__)


class PathResolver:
    """
    Resolves request references against a fixed root directory.

    The root must already be canonical (see ``imageserver.config.resolve_root``).
    Resolution only reads filesystem metadata.
    """

    def __init__(self, root: Path):
        self._root = Path(root)

    def resolve(self, reference: str) -> Path:
        """
        Resolve ``reference`` to a canonical file path beneath the root.

        A single leading ``/`` is stripped, so ``/docs/a.pdf`` and
        ``docs/a.pdf`` name the same file.

        Raises:
            SecurityError: If the canonical path lies outside the root.
            NotFoundError: If the path is not an existing, readable regular file.
        """
        relative = reference[1:] if reference.startswith("/") else reference
        logger.debug("Received request for path %s", reference)

        try:
            resolved = (self._root / relative).resolve()
        except (OSError, RuntimeError, ValueError) as exc:
            raise NotFoundError(f"Cannot resolve path {reference!r}", exc) from exc
        logger.debug("Resolved %s to %s", reference, resolved)

        if resolved != self._root and self._root not in resolved.parents:
            raise SecurityError(reference, str(resolved))

        try:
            is_file = resolved.is_file()
        except OSError as exc:
            raise NotFoundError(f"Cannot stat {resolved}", exc) from exc
        if not is_file or not os.access(resolved, os.R_OK):
            raise NotFoundError(f"File is not a file (or is not readable): {resolved}")

        return resolved
