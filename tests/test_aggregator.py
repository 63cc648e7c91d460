"""
Tests for SnapshotAggregator: single-CPU reads, aggregation, validation
of the CPU index, and aggregator construction from settings.
"""

import pytest

from cpustat.aggregator import SnapshotAggregator, build_aggregator
from cpustat.errors import CpuStatError, OutOfRangeUnit
from cpustat.hosts.memory_host import MemoryHost
from cpustat.registry import build
from cpustat.settings import CpuStatSettings

USER, NICE, SYSTEM, SOFTIRQ, IRQ, IDLE, IOWAIT, STEAL, GUEST, GUEST_NICE, FORCEIDLE = range(11)


def make_aggregator(units=2, core_sched=False):
    host = MemoryHost(units=units, core_sched=core_sched)
    return host, SnapshotAggregator(host, build(core_sched=core_sched))


class TestScenarios:

    def test_single_unit_all_zero(self):
        _, agg = make_aggregator(units=1)
        snapshot = agg.query()
        assert agg.total_unit_count() == 1
        assert snapshot == {
            "user": 0,
            "nice": 0,
            "system": 0,
            "idle": 0,
            "iowait": 0,
            "irq": 0,
            "softirq": 0,
            "steal": 0,
            "guest": 0,
            "guest_nice": 0,
        }

    def test_two_units_aggregate_and_per_unit(self):
        host, agg = make_aggregator(units=2)
        host.set_counter(0, USER, 100)
        host.set_counter(0, IDLE, 200)
        host.set_counter(1, USER, 50)
        host.set_counter(1, IDLE, 10)

        total = agg.query()
        assert total["user"] == 150
        assert total["idle"] == 210
        assert agg.query(0)["user"] == 100
        assert agg.query(1)["idle"] == 10

    def test_out_of_range_on_four_units(self):
        _, agg = make_aggregator(units=4)
        with pytest.raises(OutOfRangeUnit) as exc:
            agg.query(5)
        assert exc.value.cpu == 5
        assert exc.value.max_cpu == 3
        assert "5" in str(exc.value)
        assert "3" in str(exc.value)


class TestQuery:

    def test_minus_one_and_none_both_aggregate(self):
        host, agg = make_aggregator(units=3)
        for u in range(3):
            host.set_counter(u, SYSTEM, 7 * (u + 1))
        assert agg.query(-1) == agg.query(None) == agg.query()
        assert agg.query()["system"] == 42

    def test_every_valid_cpu_returns_full_snapshot(self):
        host, agg = make_aggregator(units=4)
        for u in range(4):
            host.set_counter(u, STEAL, u)
        for cpu in range(agg.total_unit_count()):
            snapshot = agg.query(cpu)
            assert len(snapshot) == len(agg.registry)
            assert set(snapshot) == set(agg.registry.field_names())
            assert all(v >= 0 for v in snapshot.values())

    def test_additivity_for_every_field(self):
        host, agg = make_aggregator(units=2)
        for slot in range(10):
            host.set_counter(0, slot, 1000 + slot)
            host.set_counter(1, slot, 3 * slot)
        total = agg.query()
        first, second = agg.query(0), agg.query(1)
        for field in agg.registry.field_names():
            assert total[field] == first[field] + second[field]

    def test_idempotent_without_activity(self):
        host, agg = make_aggregator(units=2)
        host.set_counter(1, IOWAIT, 9)
        assert agg.query() == agg.query()

    def test_reflects_new_activity(self):
        host, agg = make_aggregator(units=2)
        before = agg.query()
        host.add_counter(0, IRQ, 5)
        after = agg.query()
        assert after["irq"] == before["irq"] + 5

    def test_fields_map_to_kernel_slots(self):
        host, agg = make_aggregator(units=1)
        for slot in range(10):
            host.set_counter(0, slot, slot + 1)
        snapshot = agg.query(0)
        assert snapshot["softirq"] == SOFTIRQ + 1
        assert snapshot["irq"] == IRQ + 1
        assert snapshot["idle"] == IDLE + 1
        assert snapshot["guest_nice"] == GUEST_NICE + 1

    def test_large_values_are_summed_exactly(self):
        host, agg = make_aggregator(units=2)
        big = (1 << 63) + 11
        host.set_counter(0, USER, big)
        host.set_counter(1, USER, big)
        assert agg.query()["user"] == 2 * big

    def test_query_does_not_write_host_storage(self):
        host, agg = make_aggregator(units=2)
        host.set_counter(0, NICE, 3)
        agg.query()
        agg.query(0)
        assert host.read_unit(0, agg.registry)[NICE] == 3
        assert host.read_unit(1, agg.registry)[NICE] == 0

    def test_query_each_lists_every_unit(self):
        host, agg = make_aggregator(units=3)
        host.set_counter(2, GUEST, 8)
        per_unit = agg.query_each()
        assert len(per_unit) == 3
        assert per_unit[2]["guest"] == 8
        assert per_unit[0] == agg.query(0)


class TestValidation:

    @pytest.mark.parametrize("cpu", [2, 3, 100, -2, -50])
    def test_out_of_range(self, cpu):
        _, agg = make_aggregator(units=2)
        with pytest.raises(OutOfRangeUnit) as exc:
            agg.query(cpu)
        assert exc.value.cpu == cpu
        assert exc.value.max_cpu == 1
        assert str(exc.value) == f"invalid CPU number: {cpu} (max: 1)"

    def test_out_of_range_is_an_index_error(self):
        _, agg = make_aggregator(units=1)
        with pytest.raises(IndexError):
            agg.query(1)
        with pytest.raises(CpuStatError):
            agg.query(1)

    @pytest.mark.parametrize("cpu", ["0", 1.0, True])
    def test_rejects_non_integer(self, cpu):
        _, agg = make_aggregator(units=2)
        with pytest.raises(TypeError):
            agg.query(cpu)

    def test_zero_units_aggregates_to_zero(self):
        _, agg = make_aggregator(units=0)
        assert agg.total_unit_count() == 0
        assert set(agg.query().values()) == {0}

    def test_zero_units_rejects_any_index(self):
        _, agg = make_aggregator(units=0)
        with pytest.raises(OutOfRangeUnit) as exc:
            agg.query(0)
        assert exc.value.max_cpu == -1


class TestConditionalCounters:

    def test_forceidle_reported_when_compiled_in(self):
        host, agg = make_aggregator(units=2, core_sched=True)
        host.set_counter(0, FORCEIDLE, 4)
        host.set_counter(1, FORCEIDLE, 6)
        assert agg.query()["forceidle"] == 10
        assert len(agg.query(1)) == 11

    def test_forceidle_absent_without_core_sched(self):
        host, agg = make_aggregator(units=1)
        host.set_counter(0, FORCEIDLE, 4)
        assert "forceidle" not in agg.query()
        assert len(agg.query()) == 10


class TestBuildAggregator:

    def test_forced_core_sched_wins_over_host(self):
        host = MemoryHost(units=1, core_sched=False)
        agg = build_aggregator(CpuStatSettings(core_sched=True), host=host)
        assert "forceidle" in agg.query()

    def test_auto_core_sched_asks_host(self):
        agg = build_aggregator(CpuStatSettings(), host=MemoryHost(units=1, core_sched=True))
        assert agg.registry.slot_of("FORCEIDLE") == 10

        agg = build_aggregator(CpuStatSettings(), host=MemoryHost(units=1))
        assert agg.registry.slot_of("FORCEIDLE") is None

    def test_unit_count_fixed_at_construction(self):
        host = MemoryHost(units=2)
        agg = build_aggregator(CpuStatSettings(core_sched=False), host=host)
        assert agg.total_unit_count() == 2


class TestTotalOf:

    def test_total_of_matches_query(self):
        host, agg = make_aggregator(units=3)
        for u in range(3):
            host.set_counter(u, IDLE, 10 * (u + 1))
        per_unit = agg.query_each()
        assert agg.total_of(per_unit) == agg.query()

    def test_total_of_does_not_read_host(self):
        host, agg = make_aggregator(units=2)
        host.set_counter(0, USER, 5)
        per_unit = agg.query_each()
        host.set_counter(0, USER, 500)
        assert agg.total_of(per_unit)["user"] == 5

    def test_total_of_empty(self):
        _, agg = make_aggregator(units=0)
        assert set(agg.total_of([]).values()) == {0}
