"""
Snapshot renderer.

Presentation logic for cpustat snapshots:
- CLI Rich tables (one snapshot, or one row per CPU)
- JSON payloads for scripting

Share columns are computed within a single snapshot. Nothing here
compares two samples.
"""

from typing import Any, Dict, List, Optional, Sequence

import msgspec
from rich.table import Table

from cpustat.registry import CounterRegistry
from cpustat.utils.formatting import fmt_percent, fmt_ticks, share_percent


class SnapshotRenderer:
    """
    Renderer for counter snapshots.

    Parameters
    ----------
    registry : CounterRegistry
        Gives the column order. Snapshots are always keyed by its field
        names.
    """

    NAME = "CPU Stat"

    def __init__(self, registry: CounterRegistry):
        self.registry = registry
        self._encoder = msgspec.json.Encoder()

    def _total(self, snapshot: Dict[str, int]) -> int:
        return sum(snapshot.get(f, 0) for f in self.registry.field_names())

    def snapshot_table(self, snapshot: Dict[str, int], title: Optional[str] = None) -> Table:
        table = Table(title=title or self.NAME, show_header=True, header_style="bold blue")
        table.add_column("Field", style="bold green")
        table.add_column("Ticks", justify="right")
        table.add_column("Share", justify="right")

        total = self._total(snapshot)
        for field in self.registry.field_names():
            value = snapshot.get(field, 0)
            share = share_percent(value, total)
            table.add_row(
                field,
                fmt_ticks(value),
                fmt_percent(share) if share is not None else "N/A",
            )
        return table

    def units_table(self, per_unit: Sequence[Dict[str, int]], aggregate: Dict[str, int]) -> Table:
        """One row per CPU followed by the aggregate row."""
        table = Table(title=self.NAME, show_header=True, header_style="bold blue")
        table.add_column("CPU", style="bold green")
        for field in self.registry.field_names():
            table.add_column(field, justify="right")

        for unit, snapshot in enumerate(per_unit):
            table.add_row(
                str(unit),
                *[fmt_ticks(snapshot.get(f, 0)) for f in self.registry.field_names()],
            )
        table.add_section()
        table.add_row(
            "[bold]all[/bold]",
            *[fmt_ticks(aggregate.get(f, 0)) for f in self.registry.field_names()],
        )
        return table

    def fields_table(self) -> Table:
        table = Table(title="Counters", show_header=True, header_style="bold blue")
        table.add_column("Name", style="bold green")
        table.add_column("Slot", justify="right")
        table.add_column("Field")
        for d in self.registry:
            table.add_row(d.name, str(d.slot_id), d.field_name)
        return table

    def to_json(self, payload: Any) -> str:
        return self._encoder.encode(payload).decode("utf-8")

    def units_payload(
        self, per_unit: Sequence[Dict[str, int]], aggregate: Dict[str, int]
    ) -> Dict[str, Any]:
        return {"cpus": list(per_unit), "all": aggregate}

    def fields_payload(self) -> List[Dict[str, Any]]:
        return [d.to_wire() for d in self.registry]
