"""prometheus_client collector that re-reads the stats file on every scrape."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prometheus_client.core import CounterMetricFamily

from extfilter_exporter.base import MetricDescriptor, Sample, StatsFileError
from extfilter_exporter.mapping import DESCRIPTORS, map_stat
from extfilter_exporter.stats import iter_stats

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


logger = logging.getLogger(__name__)


def _family(descriptor: MetricDescriptor) -> CounterMetricFamily:
    return CounterMetricFamily(
        descriptor.name, descriptor.documentation, labels=list(descriptor.labels)
    )


class ExtfilterCollector:
    """Custom collector for a ``CollectorRegistry``.

    Holds no per-scrape state, so one instance can serve concurrent
    scrapes. ``collect`` never raises: a missing or unreadable stats file
    is logged and yields only the samples read before the failure.
    """

    def __init__(
        self,
        stats_path: Path,
        descriptors: tuple[MetricDescriptor, ...] = DESCRIPTORS,
    ) -> None:
        self._stats_path = stats_path
        self._descriptors = descriptors

    @property
    def stats_path(self) -> Path:
        return self._stats_path

    @property
    def descriptors(self) -> tuple[MetricDescriptor, ...]:
        return self._descriptors

    def describe(self) -> Iterator[CounterMetricFamily]:
        for descriptor in self._descriptors:
            yield _family(descriptor)

    def collect(self) -> Iterator[CounterMetricFamily]:
        samples = self.read_samples()

        families: dict[str, CounterMetricFamily] = {}
        seen: set[tuple[str, tuple[str, ...]]] = set()
        for sample in samples:
            series = (sample.descriptor.name, sample.label_values)
            if series in seen:
                # Keys differing only in the worker id map to the same labels.
                logger.warning(
                    "Duplicate series %s%s in %s, keeping the first value",
                    sample.descriptor.name,
                    list(sample.label_values),
                    self._stats_path,
                )
                continue
            seen.add(series)
            family = families.get(sample.descriptor.name)
            if family is None:
                family = families[sample.descriptor.name] = _family(sample.descriptor)
            family.add_metric(list(sample.label_values), sample.value)

        yield from families.values()

    def read_samples(self) -> list[Sample]:
        """Run one parse+map pass over the current stats file."""
        samples: list[Sample] = []
        pairs = 0
        try:
            for key, value in iter_stats(self._stats_path):
                pairs += 1
                sample = map_stat(key, value)
                if sample is not None:
                    samples.append(sample)
        except StatsFileError as exc:
            logger.error("Error reading stats file: %s", exc)

        logger.debug(
            "Read %d stats from %s, emitted %d samples",
            pairs,
            self._stats_path,
            len(samples),
        )
        return samples
