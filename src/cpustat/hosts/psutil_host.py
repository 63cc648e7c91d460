import os
from typing import List

import psutil

from cpustat.hosts.base_host import BaseHost
from cpustat.loggers.error_log import get_error_logger
from cpustat.registry import CounterRegistry
from cpustat.schema.counter import U64_MASK

DEFAULT_CLK_TCK = 100


def clock_ticks_per_second() -> int:
    try:
        ticks = os.sysconf("SC_CLK_TCK")
    except (AttributeError, ValueError, OSError):
        return DEFAULT_CLK_TCK
    return ticks if ticks > 0 else DEFAULT_CLK_TCK


class PsutilHost(BaseHost):
    """
    Portable counter source using ``psutil.cpu_times(percpu=True)``.

    psutil reports seconds; values are converted back to clock ticks.
    Fields psutil does not report on the current platform read as 0.

    psutil lists online CPUs only and carries no CPU index, so rows are
    mapped to units by position. With a CPU offline, later units report
    the next online CPU's counters and the last units read as 0. A
    warning is logged once when the row count and unit count differ;
    prefer ``ProcStatHost`` where ``/proc/stat`` exists.
    """

    def __init__(self) -> None:
        super().__init__(host_name="PsutilHost")
        self.logger = get_error_logger(self.host_name)
        self.clk_tck = clock_ticks_per_second()
        self._unit_count = psutil.cpu_count(logical=True) or len(self._cpu_times())
        self._warned_mismatch = False

    def _cpu_times(self):
        return psutil.cpu_times(percpu=True)

    def _per_cpu(self):
        per_cpu = self._cpu_times()
        if len(per_cpu) != self._unit_count and not self._warned_mismatch:
            self._warned_mismatch = True
            self.logger.warning(
                f"[cpustat] psutil reported {len(per_cpu)} CPUs but {self._unit_count} "
                f"are known; per-CPU rows may be shifted past an offline CPU"
            )
        return per_cpu

    def _to_block(self, times, registry: CounterRegistry) -> List[int]:
        block = [0] * registry.block_size
        if times is None:
            return block
        for field in times._fields:
            slot = registry.slot_of(field.upper())
            if slot is not None:
                ticks = int(round(getattr(times, field) * self.clk_tck))
                block[slot] = max(ticks, 0) & U64_MASK
        return block

    def unit_count(self) -> int:
        return self._unit_count

    def read_unit(self, unit: int, registry: CounterRegistry) -> List[int]:
        per_cpu = self._per_cpu()
        times = per_cpu[unit] if unit < len(per_cpu) else None
        return self._to_block(times, registry)

    def read_all(self, registry: CounterRegistry) -> List[List[int]]:
        per_cpu = self._per_cpu()
        return [
            self._to_block(per_cpu[u] if u < len(per_cpu) else None, registry)
            for u in range(self._unit_count)
        ]
