from typing import List, Optional, Sequence

from cpustat.registry import CONDITIONAL_COUNTERS, BASE_COUNTERS, CounterRegistry
from cpustat.schema.counter import U64_MASK
from cpustat.hosts.base_host import BaseHost

# Slots in a full kernel counter block, conditional counters included.
NR_STATS = 1 + max(
    [slot for _, slot in BASE_COUNTERS] + [slot for _, slot, _ in CONDITIONAL_COUNTERS]
)


class MemoryHost(BaseHost):
    """
    Counter blocks held in process memory.

    Used when the embedding application maintains its own accounting, and
    as a deterministic host for tests. ``set_counter`` / ``add_counter``
    stand in for the kernel's accounting updates.
    """

    def __init__(
        self,
        units: int = 1,
        block_size: int = NR_STATS,
        core_sched: bool = False,
        blocks: Optional[Sequence[Sequence[int]]] = None,
    ) -> None:
        super().__init__(host_name="MemoryHost")
        if units < 0:
            raise ValueError(f"units must be >= 0, got {units}")
        self._block_size = block_size
        self._core_sched = core_sched
        self._blocks: List[List[int]] = [[0] * block_size for _ in range(units)]
        if blocks is not None:
            if len(blocks) != units:
                raise ValueError(
                    f"Expected {units} counter blocks, got {len(blocks)}."
                )
            for u, block in enumerate(blocks):
                for slot, value in enumerate(block):
                    self.set_counter(u, slot, value)

    def unit_count(self) -> int:
        return len(self._blocks)

    def core_sched_supported(self) -> bool:
        return self._core_sched

    def set_counter(self, unit: int, slot: int, value: int) -> None:
        if value < 0:
            raise ValueError(f"Counter values are unsigned, got {value}")
        self._blocks[unit][slot] = value & U64_MASK

    def add_counter(self, unit: int, slot: int, delta: int = 1) -> None:
        block = self._blocks[unit]
        block[slot] = (block[slot] + delta) & U64_MASK

    def read_unit(self, unit: int, registry: CounterRegistry) -> List[int]:
        block = self._blocks[unit]
        out = [0] * registry.block_size
        n = min(len(block), registry.block_size)
        out[:n] = block[:n]
        return out
