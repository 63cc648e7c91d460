"""
Per-CPU time-accounting counters.

    import cpustat

    cpustat.count()        # number of CPUs
    cpustat.get()          # sum over all CPUs
    cpustat.get(0)         # CPU 0 only
    cpustat.stat.IDLE      # slot id of the idle counter (built on first access,
                           # so not part of `from cpustat import *`)

Values are clock ticks (USER_HZ), not wall-clock time.
"""

from typing import Optional, Tuple

from cpustat.aggregator import (
    ALL_UNITS,
    Snapshot,
    SnapshotAggregator,
    build_aggregator,
)
from cpustat.errors import ConfigError, CpuStatError, HostReadError, OutOfRangeUnit
from cpustat.loggers.error_log import setup_error_logger
from cpustat.settings import CpuStatSettings

__all__ = [
    "ALL_UNITS",
    "ConfigError",
    "CpuStatError",
    "CpuStatSettings",
    "HostReadError",
    "OutOfRangeUnit",
    "Snapshot",
    "SnapshotAggregator",
    "build_aggregator",
    "count",
    "default_aggregator",
    "fields",
    "get",
    "reset_default",
]

_DEFAULT: Optional[SnapshotAggregator] = None


def default_aggregator() -> SnapshotAggregator:
    """Process-wide aggregator, built from the environment on first use."""
    global _DEFAULT
    if _DEFAULT is None:
        settings = CpuStatSettings.from_env()
        setup_error_logger(settings)
        _DEFAULT = build_aggregator(settings)
    return _DEFAULT


def reset_default(aggregator: Optional[SnapshotAggregator] = None) -> None:
    """Replace (or drop, with None) the process-wide aggregator."""
    global _DEFAULT
    _DEFAULT = aggregator


def get(cpu: Optional[int] = None) -> Snapshot:
    """
    CPU time counters for one CPU, or summed over all CPUs.

    `cpu` omitted or -1 aggregates. Raises OutOfRangeUnit otherwise when
    the index is not a known CPU.
    """
    return default_aggregator().query(cpu)


def count() -> int:
    return default_aggregator().total_unit_count()


def fields() -> Tuple[str, ...]:
    return default_aggregator().registry.field_names()


def __getattr__(name):
    if name == "stat":
        return default_aggregator().registry.namespace()
    raise AttributeError(f"module 'cpustat' has no attribute '{name}'")
