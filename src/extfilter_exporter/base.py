"""Core data types and exception hierarchy."""

from __future__ import annotations

from dataclasses import dataclass

# --- Exceptions ---


class ExporterError(Exception):
    """Base exception for all extfilter_exporter errors."""


class StatsFileError(ExporterError):
    """The stats file could not be opened or read."""


class MalformedLineError(ExporterError):
    """A stats line is not a ``key=<number>`` pair."""


class ConfigError(ExporterError):
    """Configuration loading or validation failure."""


# --- Data Types (frozen, slotted) ---


@dataclass(frozen=True, slots=True)
class MetricDescriptor:
    """Exposed name, help text and label schema of one metric."""

    name: str
    documentation: str
    labels: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Sample:
    """One counter value derived from a single stats line."""

    descriptor: MetricDescriptor
    value: float
    label_values: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if len(self.label_values) != len(self.descriptor.labels):
            msg = (
                f"{self.descriptor.name} expects labels {self.descriptor.labels}, "
                f"got values {self.label_values}"
            )
            raise ValueError(msg)
