"""Pytest configuration for imageserver tests.

Ensures the project root is on sys.path so ``imageserver.*`` resolves during
test collection, and provides a served root with a PDF builder.
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Dict, List

import pytest

# Add repository root to sys.path for module resolution.
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from imageserver.tests.pdf_fixtures import write_pdf  # noqa: E402


@pytest.fixture
def root_dir(tmp_path: Path) -> Path:
    root = tmp_path / "root"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def pdf_factory(root_dir: Path) -> Callable[..., Path]:
    def build(name: str, pages: List[Dict]) -> Path:
        path = root_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        return write_pdf(path, pages)

    return build
