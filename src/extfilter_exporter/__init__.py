"""extfilter_exporter: Prometheus exporter for extfilter statistics."""

from __future__ import annotations

__version__ = "0.1.0"
