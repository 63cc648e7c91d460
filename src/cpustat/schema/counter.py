"""
Counter schema for cpustat.

This module defines the canonical data structures used to describe the
per-CPU time-accounting counters kept by the host kernel.

Design principles
-----------------
- One immutable descriptor per counter kind
- Slot ids are indices into a unit's counter block and never change
  once assigned
- Field names are derived, never stored twice
"""

from dataclasses import dataclass
from typing import Any, Dict

# Counter words are unsigned 64-bit on the host.
U64_MASK = (1 << 64) - 1


@dataclass(frozen=True)
class CounterDescriptor:
    """
    Describes one counter kind.

    Attributes
    ----------
    name : str
        Symbolic, upper-case name (e.g. ``USER``, ``GUEST_NICE``).
    slot_id : int
        Index of this counter inside a unit counter block.
    """

    name: str
    slot_id: int

    @property
    def field_name(self) -> str:
        """Externally visible field name (lower-cased symbolic name)."""
        return self.name.lower()

    def to_wire(self) -> Dict[str, Any]:
        """
        Convert the descriptor to a wire-friendly representation.

        Returns
        -------
        Dict[str, Any]
            ``{"name": ..., "slot": ..., "field": ...}``
        """
        return {
            "name": self.name,
            "slot": self.slot_id,
            "field": self.field_name,
        }
