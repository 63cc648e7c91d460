"""
Counter registry.

The registry is the single source of truth for which counters exist and
where each one lives inside a unit counter block. Both the field names
returned by snapshots and the numeric ``stat`` namespace are generated
from it, so the two can never drift apart.

Slot ids follow the kernel's ``enum cpu_usage_stat`` ordering. The
registry's iteration order is the public field order, which differs from
slot order (``idle`` is listed before ``irq`` even though its slot is
higher).
"""

from enum import IntEnum
from typing import Dict, Iterator, Optional, Tuple, Type

from cpustat.schema.counter import CounterDescriptor

# (name, slot_id), in public field order
BASE_COUNTERS: Tuple[Tuple[str, int], ...] = (
    ("USER", 0),
    ("NICE", 1),
    ("SYSTEM", 2),
    ("IDLE", 5),
    ("IOWAIT", 6),
    ("IRQ", 4),
    ("SOFTIRQ", 3),
    ("STEAL", 7),
    ("GUEST", 8),
    ("GUEST_NICE", 9),
)

# (name, slot_id, capability), appended after the base set when enabled
CONDITIONAL_COUNTERS: Tuple[Tuple[str, int, str], ...] = (
    ("FORCEIDLE", 10, "core_sched"),
)


class CounterRegistry:
    """
    Ordered, immutable set of counter descriptors.

    Built once and shared read-only by every query. Iterating the
    registry always starts from the first descriptor.
    """

    def __init__(self, descriptors):
        self._descriptors: Tuple[CounterDescriptor, ...] = tuple(descriptors)
        self._by_name: Dict[str, CounterDescriptor] = {}
        seen_fields = set()
        seen_slots = set()

        for d in self._descriptors:
            if not d.name:
                raise ValueError("Counter name must be non-empty.")
            if d.slot_id < 0:
                raise ValueError(f"Counter '{d.name}' has negative slot {d.slot_id}.")
            if d.field_name in seen_fields:
                raise ValueError(f"Duplicate counter field '{d.field_name}'.")
            if d.slot_id in seen_slots:
                raise ValueError(f"Duplicate counter slot {d.slot_id}.")
            seen_fields.add(d.field_name)
            seen_slots.add(d.slot_id)
            self._by_name[d.name] = d

        self._block_size = max(seen_slots) + 1 if seen_slots else 0
        self._namespace: Optional[Type[IntEnum]] = None

    def __iter__(self) -> Iterator[CounterDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __repr__(self) -> str:
        names = ", ".join(d.name for d in self._descriptors)
        return f"CounterRegistry({names})"

    def for_each(self) -> Iterator[CounterDescriptor]:
        return iter(self._descriptors)

    @property
    def block_size(self) -> int:
        """Number of words a unit counter block needs to hold every slot."""
        return self._block_size

    def get(self, name: str) -> Optional[CounterDescriptor]:
        return self._by_name.get(name)

    def slot_of(self, name: str) -> Optional[int]:
        """Slot id for a symbolic name, or None when the counter is not compiled in."""
        d = self._by_name.get(name)
        return d.slot_id if d is not None else None

    def field_names(self) -> Tuple[str, ...]:
        return tuple(field_name_of(d) for d in self._descriptors)

    def namespace(self) -> Type[IntEnum]:
        """
        Read-only ``name -> slot_id`` namespace generated from the registry.

        Returns an ``IntEnum`` named ``stat`` so members compare equal to
        their slot ids and cannot be reassigned.
        """
        if self._namespace is None:
            self._namespace = IntEnum(
                "stat", [(d.name, d.slot_id) for d in self._descriptors]
            )
        return self._namespace


def field_name_of(descriptor: CounterDescriptor) -> str:
    return descriptor.field_name


def build(core_sched: bool = False) -> CounterRegistry:
    """
    Build the registry of every counter compiled into the running host.

    Parameters
    ----------
    core_sched : bool
        Whether the host kernel is built with core scheduling. Enables
        the ``FORCEIDLE`` counter.

    Returns
    -------
    CounterRegistry
        Base counters first, capability-gated counters appended after
        them. Appending never changes an existing slot id.
    """
    capabilities = {"core_sched": bool(core_sched)}
    descriptors = [CounterDescriptor(name, slot) for name, slot in BASE_COUNTERS]
    for name, slot, capability in CONDITIONAL_COUNTERS:
        if capabilities.get(capability, False):
            descriptors.append(CounterDescriptor(name, slot))
    return CounterRegistry(descriptors)
