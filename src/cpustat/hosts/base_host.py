from abc import ABC, abstractmethod
from typing import List

from cpustat.registry import CounterRegistry


class BaseHost(ABC):
    """
    Abstract base class for counter sources.

    A host owns the per-unit counter blocks. cpustat only ever reads them;
    the host may update them concurrently, one word at a time.
    """

    def __init__(self, host_name: str) -> None:
        self.host_name = host_name

    @abstractmethod
    def unit_count(self) -> int:
        """Number of processing units known to the host."""
        raise NotImplementedError("Must be implemented by subclasses.")

    @abstractmethod
    def read_unit(self, unit: int, registry: CounterRegistry) -> List[int]:
        """
        Read one unit counter block.

        Returns a list of ``registry.block_size`` words indexed by slot id.
        Slots the host does not expose read as 0.
        """
        raise NotImplementedError("Must be implemented by subclasses.")

    def read_all(self, registry: CounterRegistry) -> List[List[int]]:
        """Read every unit counter block, in unit order."""
        return [self.read_unit(u, registry) for u in range(self.unit_count())]

    def core_sched_supported(self) -> bool:
        return False
