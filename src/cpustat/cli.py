import argparse
import sys
from typing import Optional, Sequence

from rich.console import Console

from cpustat.aggregator import SnapshotAggregator, build_aggregator
from cpustat.errors import CpuStatError, OutOfRangeUnit
from cpustat.loggers.error_log import setup_error_logger
from cpustat.renderers.snapshot_renderer import SnapshotRenderer
from cpustat.settings import HOST_CHOICES, CpuStatSettings, parse_core_sched

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_BAD_CPU = 2


def settings_from_args(args) -> CpuStatSettings:
    """Environment settings with CLI flags applied on top."""
    return CpuStatSettings.from_env().with_overrides(
        host=args.host,
        proc_stat_path=args.proc_stat,
        core_sched=parse_core_sched(args.core_sched),
    )


def run_get(agg: SnapshotAggregator, args, console: Console) -> int:
    renderer = SnapshotRenderer(agg.registry)
    snapshot = agg.query(args.cpu)
    if args.json:
        console.print_json(renderer.to_json(snapshot))
    else:
        title = "All CPUs" if args.cpu in (None, -1) else f"CPU {args.cpu}"
        console.print(renderer.snapshot_table(snapshot, title=title))
    return EXIT_OK


def run_count(agg: SnapshotAggregator, args, console: Console) -> int:
    console.print(agg.total_unit_count())
    return EXIT_OK


def run_fields(agg: SnapshotAggregator, args, console: Console) -> int:
    renderer = SnapshotRenderer(agg.registry)
    if args.json:
        console.print_json(renderer.to_json(renderer.fields_payload()))
    else:
        console.print(renderer.fields_table())
    return EXIT_OK


def run_all(agg: SnapshotAggregator, args, console: Console) -> int:
    renderer = SnapshotRenderer(agg.registry)
    per_unit = agg.query_each()
    aggregate = agg.total_of(per_unit)
    if args.json:
        console.print_json(renderer.to_json(renderer.units_payload(per_unit, aggregate)))
    else:
        console.print(renderer.units_table(per_unit, aggregate))
    return EXIT_OK


COMMANDS = {
    "get": run_get,
    "count": run_count,
    "fields": run_fields,
    "all": run_all,
}


def build_parser():
    parser = argparse.ArgumentParser("cpustat")
    parser.add_argument("--host", type=str, choices=HOST_CHOICES, default=None)
    parser.add_argument("--proc-stat", type=str, default=None)
    parser.add_argument("--core-sched", type=str, default=None)

    sub = parser.add_subparsers(dest="command", required=True)

    get_parser = sub.add_parser("get")
    get_parser.add_argument("--cpu", type=int, default=None)
    get_parser.add_argument("--json", action="store_true")

    sub.add_parser("count")

    fields_parser = sub.add_parser("fields")
    fields_parser.add_argument("--json", action="store_true")

    all_parser = sub.add_parser("all")
    all_parser.add_argument("--json", action="store_true")

    return parser


def main(
    argv: Optional[Sequence[str]] = None,
    console: Optional[Console] = None,
    aggregator: Optional[SnapshotAggregator] = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    console = console or Console()

    try:
        settings = settings_from_args(args)
        setup_error_logger(settings)
        agg = aggregator or build_aggregator(settings)
        return COMMANDS[args.command](agg, args, console)
    except OutOfRangeUnit as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_CPU
    except CpuStatError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
