"""Shared test fixtures for extfilter_exporter tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture()
def write_stats(tmp_path: Path) -> Callable[[str], Path]:
    """Return a helper that writes *content* to a stats file and returns its path."""
    path = tmp_path / "extfilter.stats"

    def _write(content: str) -> Path:
        path.write_text(content, encoding="utf-8")
        return path

    return _write
