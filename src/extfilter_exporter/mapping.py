"""Metric catalogue and key-to-sample mapping.

A stats key is a dotted path whose segments are positional::

    worker.<id>.<core>.<name>
    allports.<name>
    allworkers.<name>

The first segment selects a category handler; each handler looks the
remaining segments up in a rule table. Adding a metric means adding a
table entry.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from extfilter_exporter.base import MetricDescriptor, Sample

logger = logging.getLogger(__name__)

METRICS_PREFIX = "extfilter_"


def _desc(name: str, documentation: str, *labels: str) -> MetricDescriptor:
    return MetricDescriptor(METRICS_PREFIX + name, documentation, labels)


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------

WORKER_PACKETS = _desc(
    "worker_packets_total", "Total packets processed by the worker", "core"
)
WORKER_IP_PACKETS = _desc(
    "ip_packets_total", "Total IP packets processed by the worker", "core", "ip_version"
)
WORKER_BYTES = _desc("bytes_total", "Total bytes processed by the worker", "core")
WORKER_MATCHES = _desc("matches_total", "Total matches by the worker", "core", "type")
WORKER_FRAGMENTS = _desc(
    "fragments_total", "Total fragments received by the worker", "core", "ip_version"
)
# prometheus_client appends _total to every counter sample, so this one is
# scraped as extfilter_short_packets_total.
WORKER_SHORT_PACKETS = _desc(
    "short_packets", "Total short packets processed by the worker", "core", "ip_version"
)
RECEIVED_PACKETS = _desc("packets_received_total", "Total packets received on all ports")
MISSED_PACKETS = _desc("packets_missed_total", "Total packets missed on all ports")
INPUT_ERRORS = _desc("input_errors_total", "Total input errors encountered on all ports")
RX_NO_BUFFER = _desc("rx_no_buffer_total", "Total RX buffer errors encountered on all ports")

DESCRIPTORS: tuple[MetricDescriptor, ...] = (
    WORKER_PACKETS,
    WORKER_IP_PACKETS,
    WORKER_BYTES,
    WORKER_MATCHES,
    WORKER_FRAGMENTS,
    WORKER_SHORT_PACKETS,
    RECEIVED_PACKETS,
    MISSED_PACKETS,
    INPUT_ERRORS,
    RX_NO_BUFFER,
)


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class WorkerRule:
    """Descriptor plus the label values that follow the core label."""

    descriptor: MetricDescriptor
    extra_labels: tuple[str, ...] = ()


_MATCH_TYPES = ("ip_port", "ssl_sni", "ssl_ip", "http_bl_ipv4", "http_bl_ipv6")

# A ``None`` rule is a known field that is deliberately not exported.
WORKER_RULES: dict[str, WorkerRule | None] = {
    "total_packets": WorkerRule(WORKER_PACKETS),
    "ip_packets": None,
    "ipv4_packets": WorkerRule(WORKER_IP_PACKETS, ("4",)),
    "ipv6_packets": WorkerRule(WORKER_IP_PACKETS, ("6",)),
    "total_bytes": WorkerRule(WORKER_BYTES),
    **{f"matched_{t}": WorkerRule(WORKER_MATCHES, (t,)) for t in _MATCH_TYPES},
    "ipv4_fragments": WorkerRule(WORKER_FRAGMENTS, ("4",)),
    "ipv6_fragments": WorkerRule(WORKER_FRAGMENTS, ("6",)),
    # extfilter only reports IPv4 short packets.
    "ipv4_short_packets": WorkerRule(WORKER_SHORT_PACKETS, ("4",)),
}

ALLPORTS_RULES: dict[str, MetricDescriptor] = {
    "received_packets": RECEIVED_PACKETS,
    "missed_packets": MISSED_PACKETS,
    "ierrors": INPUT_ERRORS,
    "rx_nombuf": RX_NO_BUFFER,
}


# ---------------------------------------------------------------------------
# Category handlers
# ---------------------------------------------------------------------------


def _map_worker(parts: list[str], value: float) -> Sample | None:
    if len(parts) < 4:
        logger.warning("Malformed worker metric key: %s", ".".join(parts))
        return None

    core, name = parts[2], parts[3]
    if name not in WORKER_RULES:
        logger.warning("Unknown worker metric name: %s", name)
        return None

    rule = WORKER_RULES[name]
    if rule is None:
        return None
    return Sample(rule.descriptor, value, (core, *rule.extra_labels))


def _map_allports(parts: list[str], value: float) -> Sample | None:
    if len(parts) < 2:
        logger.warning("Malformed allports metric key: %s", ".".join(parts))
        return None

    descriptor = ALLPORTS_RULES.get(parts[1])
    if descriptor is None:
        logger.warning("Unknown allports metric name: %s", parts[1])
        return None
    return Sample(descriptor, value)


def _ignore(parts: list[str], value: float) -> Sample | None:
    return None


CATEGORY_HANDLERS: dict[str, Callable[[list[str], float], Sample | None]] = {
    "worker": _map_worker,
    "allports": _map_allports,
    "allworkers": _ignore,
}


def map_stat(key: str, value: float) -> Sample | None:
    """Translate one stats pair into a :class:`Sample`, or ``None``.

    Unknown keys are logged at WARNING level. Known-but-unexported keys
    (``worker.*.*.ip_packets`` and ``allworkers.*``) are dropped silently.
    Never raises.
    """
    parts = key.split(".")
    handler = CATEGORY_HANDLERS.get(parts[0])
    if handler is None:
        logger.warning("Unknown metric type: %s", parts[0])
        return None
    return handler(parts, value)
