"""
Linux procfs host.

Reads per-CPU counter blocks from ``/proc/stat``. Each ``cpuN`` line
carries the counters in a fixed column order, in USER_HZ ticks:

    cpu0 user nice system idle iowait irq softirq steal guest guest_nice

Columns are matched to registry slots by name, so a registry without a
given counter simply ignores its column. ``/proc/stat`` has no force-idle
column; that slot reads 0 here.
"""

import gzip
import platform
from pathlib import Path
from typing import Dict, List, Optional

import psutil

from cpustat.errors import HostReadError
from cpustat.hosts.base_host import BaseHost
from cpustat.loggers.error_log import get_error_logger
from cpustat.registry import CounterRegistry
from cpustat.schema.counter import U64_MASK

PROC_STAT_COLUMNS = (
    "USER",
    "NICE",
    "SYSTEM",
    "IDLE",
    "IOWAIT",
    "IRQ",
    "SOFTIRQ",
    "STEAL",
    "GUEST",
    "GUEST_NICE",
)

KERNEL_CONFIG_PATHS = ("/proc/config.gz", "/boot/config-{release}")


def parse_cpu_list(text: str) -> List[int]:
    """
    Parse a kernel cpu list such as ``0-3,5,8-9`` into sorted indices.

    Raises ValueError on malformed input.
    """
    cpus = set()
    for part in text.strip().split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            lo, hi = part.split("-", 1)
            lo_i, hi_i = int(lo), int(hi)
            if hi_i < lo_i:
                raise ValueError(f"Descending cpu range '{part}'")
            cpus.update(range(lo_i, hi_i + 1))
        else:
            cpus.add(int(part))
    return sorted(cpus)


def parse_proc_stat(text: str) -> Dict[int, List[int]]:
    """
    Extract per-CPU rows from ``/proc/stat`` content.

    Returns ``{cpu_index: [raw column values]}``. The aggregate ``cpu``
    line and non-cpu lines are skipped.
    """
    rows: Dict[int, List[int]] = {}
    for line in text.splitlines():
        if not line.startswith("cpu"):
            continue
        fields = line.split()
        label = fields[0]
        if label == "cpu":
            continue
        index = label[3:]
        if not index.isdigit():
            raise ValueError(f"Unexpected cpu label '{label}'")
        rows[int(index)] = [int(v) for v in fields[1:]]
    return rows


def kernel_has_core_sched(release: Optional[str] = None) -> bool:
    """
    Check the running kernel's build config for ``CONFIG_SCHED_CORE=y``.

    Returns False when no build config is readable.
    """
    logger = get_error_logger("ProcStatHost")
    release = release or platform.release()
    for template in KERNEL_CONFIG_PATHS:
        path = Path(template.format(release=release))
        try:
            if path.suffix == ".gz":
                with gzip.open(path, "rt", encoding="utf-8", errors="replace") as f:
                    text = f.read()
            else:
                text = path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            continue
        return any(
            line.strip() == "CONFIG_SCHED_CORE=y" for line in text.splitlines()
        )
    logger.debug("[cpustat] No kernel build config found, assuming no core scheduling")
    return False


class ProcStatHost(BaseHost):
    """
    Counter source backed by ``/proc/stat``.

    The unit count mirrors the kernel's ``nr_cpu_ids``: highest possible
    CPU index + 1, read once at construction. Possible-but-offline CPUs
    have no line in ``/proc/stat`` and read as all zeros.
    """

    def __init__(
        self,
        proc_stat_path: str = "/proc/stat",
        cpu_possible_path: str = "/sys/devices/system/cpu/possible",
    ) -> None:
        super().__init__(host_name="ProcStatHost")
        self.logger = get_error_logger(self.host_name)
        self.proc_stat_path = Path(proc_stat_path)
        self.cpu_possible_path = Path(cpu_possible_path)
        self._core_sched: Optional[bool] = None
        self._unit_count = self._init_unit_count()

    def _init_unit_count(self) -> int:
        try:
            possible = parse_cpu_list(self.cpu_possible_path.read_text())
            if possible:
                return possible[-1] + 1
        except (OSError, ValueError) as e:
            self.logger.debug(
                f"[cpustat] Cannot read possible CPUs from {self.cpu_possible_path}: {e}"
            )

        count = psutil.cpu_count(logical=True)
        if count:
            return count

        rows = self._read_rows()
        return max(rows) + 1 if rows else 0

    def _read_rows(self) -> Dict[int, List[int]]:
        try:
            text = self.proc_stat_path.read_text()
        except OSError as e:
            self.logger.error(f"[cpustat] Failed to read {self.proc_stat_path}: {e}")
            raise HostReadError(f"Cannot read {self.proc_stat_path}: {e}") from e
        try:
            return parse_proc_stat(text)
        except ValueError as e:
            self.logger.error(f"[cpustat] Malformed {self.proc_stat_path}: {e}")
            raise HostReadError(f"Malformed {self.proc_stat_path}: {e}") from e

    @staticmethod
    def _to_block(row: Optional[List[int]], registry: CounterRegistry) -> List[int]:
        block = [0] * registry.block_size
        if row is None:
            return block
        for name, value in zip(PROC_STAT_COLUMNS, row):
            slot = registry.slot_of(name)
            if slot is not None:
                block[slot] = value & U64_MASK
        return block

    def unit_count(self) -> int:
        return self._unit_count

    def read_unit(self, unit: int, registry: CounterRegistry) -> List[int]:
        return self._to_block(self._read_rows().get(unit), registry)

    def read_all(self, registry: CounterRegistry) -> List[List[int]]:
        # One read of /proc/stat for all units
        rows = self._read_rows()
        return [self._to_block(rows.get(u), registry) for u in range(self._unit_count)]

    def core_sched_supported(self) -> bool:
        if self._core_sched is None:
            self._core_sched = kernel_has_core_sched()
        return self._core_sched
