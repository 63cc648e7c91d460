"""
Snapshot aggregator.

Turns a unit selector into a ``field_name -> ticks`` snapshot, either for
one CPU or summed across every CPU the host knows about.

Consistency
-----------
No lock is taken while reading counter blocks. The host updates each
counter word atomically and counters never decrease, so an aggregate
snapshot may mix values read a few instants apart for different slots
or units. Nothing finer is promised by the counters themselves.
"""

from typing import Dict, List, Optional

from cpustat.errors import OutOfRangeUnit
from cpustat.hosts.base_host import BaseHost
from cpustat.hosts.factory import make_host
from cpustat.loggers.error_log import get_error_logger
from cpustat.registry import CounterRegistry, build, field_name_of
from cpustat.settings import CpuStatSettings

ALL_UNITS = -1

Snapshot = Dict[str, int]


class SnapshotAggregator:
    """
    Read-only view over a host's per-unit counter blocks.

    Parameters
    ----------
    host : BaseHost
        Owner of the counter storage.
    registry : CounterRegistry
        Counters to report. Iterated as-is, whatever it contains.
    """

    def __init__(self, host: BaseHost, registry: CounterRegistry) -> None:
        self.host = host
        self.registry = registry
        self.logger = get_error_logger("SnapshotAggregator")
        # Units are not hot-added within one process
        self._unit_count = host.unit_count()

    def total_unit_count(self) -> int:
        return self._unit_count

    def _validate(self, cpu: int) -> None:
        if isinstance(cpu, bool) or not isinstance(cpu, int):
            raise TypeError(f"CPU number must be an integer, got {type(cpu).__name__}")
        if cpu < ALL_UNITS or cpu >= self._unit_count:
            self.logger.debug(f"[cpustat] Rejected CPU number {cpu}")
            raise OutOfRangeUnit(cpu, self._unit_count - 1)

    def query(self, cpu: Optional[int] = None) -> Snapshot:
        """
        Take one snapshot.

        Parameters
        ----------
        cpu : Optional[int]
            0-based CPU index, or None / -1 for the sum over all CPUs.

        Returns
        -------
        Dict[str, int]
            One entry per registry counter, keyed by field name.

        Raises
        ------
        OutOfRangeUnit
            If `cpu` is below -1 or not below `total_unit_count()`.
        """
        if cpu is None:
            cpu = ALL_UNITS
        self._validate(cpu)

        if cpu != ALL_UNITS:
            block = self.host.read_unit(cpu, self.registry)
            return {field_name_of(d): block[d.slot_id] for d in self.registry}

        totals: List[int] = [0] * self.registry.block_size
        for block in self.host.read_all(self.registry):
            for d in self.registry:
                totals[d.slot_id] += block[d.slot_id]
        return {field_name_of(d): totals[d.slot_id] for d in self.registry}

    def query_each(self) -> List[Snapshot]:
        """Per-unit snapshots for every unit, from a single host read."""
        return [
            {field_name_of(d): block[d.slot_id] for d in self.registry}
            for block in self.host.read_all(self.registry)
        ]

    def total_of(self, per_unit: List[Snapshot]) -> Snapshot:
        """Sum already-taken per-unit snapshots, without reading the host again."""
        return {
            field: sum(snapshot[field] for snapshot in per_unit)
            for field in self.registry.field_names()
        }


def resolve_core_sched(settings: CpuStatSettings, host: BaseHost) -> bool:
    if settings.core_sched is not None:
        return settings.core_sched
    return host.core_sched_supported()


def build_aggregator(
    settings: Optional[CpuStatSettings] = None, host: Optional[BaseHost] = None
) -> SnapshotAggregator:
    """
    Build an aggregator from settings.

    The counter set is resolved once here: a forced `core_sched` setting
    wins, otherwise the host is asked.
    """
    settings = settings or CpuStatSettings.from_env()
    host = host or make_host(settings)
    registry = build(core_sched=resolve_core_sched(settings, host))
    return SnapshotAggregator(host, registry)
