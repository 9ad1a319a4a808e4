"""Stats file parser: ``key=value`` lines to ``(key, float)`` pairs."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from extfilter_exporter.base import MalformedLineError, StatsFileError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

logger = logging.getLogger(__name__)


_VALUE_RE = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?(?:inf|infinity|nan)",
    re.IGNORECASE,
)


def parse_line(line: str) -> tuple[str, float]:
    """Split *line* on the first ``=`` and parse the value as a float.

    The value must be a plain base-10 literal (optionally signed, with an
    exponent) or ``inf``/``nan``; no surrounding whitespace, digit-group
    underscores or non-ASCII digits.

    Raises :class:`MalformedLineError` when there is no separator, the key
    is empty, or the value is not a number.
    """
    key, sep, raw_value = line.partition("=")
    if not sep:
        raise MalformedLineError(f"Missing '=' separator in {line!r}")
    if not key.strip():
        raise MalformedLineError(f"Empty metric key in {line!r}")
    if _VALUE_RE.fullmatch(raw_value) is None:
        raise MalformedLineError(f"Invalid value {raw_value!r} for metric {key}")
    return key, float(raw_value)


def iter_stats(path: Path) -> Iterator[tuple[str, float]]:
    """Lazily yield ``(key, value)`` for every non-blank line of *path*.

    Malformed lines are logged and skipped. The file is opened when
    iteration starts and closed when the generator finishes or is closed.

    Raises :class:`StatsFileError` if the file cannot be opened or read.
    """
    try:
        f = path.open(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise StatsFileError(f"Cannot open stats file {path}: {exc}") from exc

    with f:
        try:
            for lineno, raw in enumerate(f, start=1):
                line = raw.strip()
                if not line:
                    continue
                try:
                    pair = parse_line(line)
                except MalformedLineError as exc:
                    logger.warning("Skipping %s:%d: %s", path, lineno, exc)
                    continue
                yield pair
        except OSError as exc:
            raise StatsFileError(f"Error reading stats file {path}: {exc}") from exc
