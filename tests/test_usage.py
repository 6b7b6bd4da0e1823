"""Tests for usage accumulation and context occupancy."""

import pytest

from agentline_ui.models import Usage
from agentline_ui.usage import ContextOccupancy, UsageSnapshot, UsageTotals, apply_usage


class TestUsageTotals:
    def test_add_sums_every_field(self):
        totals = UsageTotals().add(Usage(100, 50, 10, 5, 0.01)).add(Usage(200, 100, 0, 1, 0.02))
        assert (totals.input, totals.output, totals.cache_read, totals.cache_write) == (300, 150, 10, 6)
        assert totals.cost == pytest.approx(0.03)

    def test_negative_deltas_never_decrease_totals(self):
        totals = UsageTotals(input=10, cost=1.0).add(Usage(input=-5, cost_total=-0.5))
        assert totals.input == 10
        assert totals.cost == 1.0


class TestContextOccupancy:
    def test_percent(self):
        assert ContextOccupancy(tokens=10_000, window=100_000).percent == pytest.approx(10.0)

    def test_unknown_window(self):
        assert ContextOccupancy(tokens=10_000, window=0).percent is None


class TestApplyUsage:
    def test_fresh_snapshot_has_no_stats(self):
        snapshot = UsageSnapshot.fresh(200_000)
        assert not snapshot.has_stats
        assert snapshot.context.window == 200_000

    def test_context_reflects_last_message_only(self):
        snapshot = UsageSnapshot.fresh(100_000)
        snapshot = apply_usage(snapshot, Usage(5000, 2000, 2500, 500, 0.01))
        snapshot = apply_usage(snapshot, Usage(1000, 500, 0, 0, 0.01))
        assert snapshot.has_stats
        assert snapshot.context.tokens == 1500
        assert snapshot.context.window == 100_000
        assert snapshot.totals.input == 6000

    def test_snapshot_is_not_mutated(self):
        snapshot = UsageSnapshot.fresh(1000)
        apply_usage(snapshot, Usage(input=10))
        assert snapshot.totals.input == 0
        assert not snapshot.has_stats

    def test_cost_only_delta_keeps_context(self):
        snapshot = apply_usage(UsageSnapshot.fresh(100_000), Usage(5000, 2000, 2500, 500))
        snapshot = apply_usage(snapshot, Usage(cost_total=0.25))
        assert snapshot.context.tokens == 10_000
        assert snapshot.totals.input == 5000
        assert snapshot.totals.cost == pytest.approx(0.25)

    def test_empty_delta_resets_context(self):
        snapshot = apply_usage(UsageSnapshot.fresh(100_000), Usage(5000))
        snapshot = apply_usage(snapshot, Usage())
        assert snapshot.context.tokens == 0
