"""Tests for the allocation engine."""

import pytest

from rebalancer.portfolio.engine import (
    AllocationEngine,
    AssetEntry,
    ComputedAssetEntry,
    buy_sell_amount,
    compute,
    current_allocation,
    sell_adjustment,
)


@pytest.fixture
def two_assets():
    """Portfolio overweight in A, underweight in B."""
    return [
        AssetEntry(asset="A", market_value=800, target_allocation=50),
        AssetEntry(asset="B", market_value=200, target_allocation=50),
    ]


@pytest.fixture
def three_assets():
    """Three-asset portfolio with two entries wanting to sell."""
    return [
        AssetEntry(asset="Stocks", market_value=6000, target_allocation=40),
        AssetEntry(asset="Bonds", market_value=3000, target_allocation=30),
        AssetEntry(asset="Gold", market_value=1000, target_allocation=30),
    ]


class TestCompute:
    """Tests for the compute transform."""

    def test_empty_input(self):
        """Empty portfolio produces an empty table."""
        assert compute([]) == []

    def test_single_asset_full_allocation(self):
        """One asset at 100% needs no trades."""
        rows = compute([AssetEntry(asset="A", market_value=1000, target_allocation=100)])

        assert len(rows) == 1
        assert rows[0].current_allocation == pytest.approx(100)
        assert rows[0].buy_sell == pytest.approx(0)
        assert rows[0].buy_only == pytest.approx(0)

    def test_two_assets_rebalance(self, two_assets):
        """Overweight asset sells, underweight buys; buy-only removes the sell."""
        a, b = compute(two_assets)

        assert a.current_allocation == pytest.approx(80)
        assert a.buy_sell == pytest.approx(-300)
        assert a.buy_only == pytest.approx(0)

        assert b.current_allocation == pytest.approx(20)
        assert b.buy_sell == pytest.approx(300)
        assert b.buy_only == pytest.approx(600)

    def test_single_asset_approximation_is_kept(self, three_assets):
        """buy_sell holds the rest of the portfolio fixed for each asset."""
        stocks, bonds, gold = compute(three_assets)

        # 40 * 6000 / 60 - 6000
        assert stocks.buy_sell == pytest.approx(-2000)
        # 30 * 3000 / 30 - 3000
        assert bonds.buy_sell == pytest.approx(0)
        # 30 * 1000 / 10 - 1000
        assert gold.buy_sell == pytest.approx(2000)

    def test_buy_only_uses_largest_sell_ratio(self, three_assets):
        """adjustment = |-2000 / 40| = 50, applied to every target."""
        stocks, bonds, gold = compute(three_assets)

        assert stocks.buy_only == pytest.approx(0)
        assert bonds.buy_only == pytest.approx(0 + 30 * 50)
        assert gold.buy_only == pytest.approx(2000 + 30 * 50)

    def test_zero_total_market_value(self):
        """All-zero market values give zero allocation and zero trades."""
        rows = compute([
            AssetEntry(asset="A", market_value=0, target_allocation=70),
            AssetEntry(asset="B", market_value=0, target_allocation=30),
        ])

        for row in rows:
            assert row.current_allocation == 0
            assert row.buy_sell == 0
            assert row.buy_only == 0

    def test_zero_value_asset_has_no_buy_sell(self):
        """An asset with no holding gets buy_sell 0, not a division error."""
        rows = compute([
            AssetEntry(asset="A", market_value=1000, target_allocation=50),
            AssetEntry(asset="New", market_value=0, target_allocation=50),
        ])

        assert rows[1].current_allocation == 0
        assert rows[1].buy_sell == 0

    def test_zero_target_seller_does_not_bind(self):
        """A selling entry with zero target contributes 0 to the adjustment."""
        rows = compute([
            AssetEntry(asset="Legacy", market_value=500, target_allocation=0),
            AssetEntry(asset="Core", market_value=500, target_allocation=100),
        ])

        legacy, core = rows
        assert legacy.buy_sell == pytest.approx(-500)
        assert core.buy_sell == pytest.approx(500)
        # Adjustment stays 0, so buy_only equals buy_sell
        assert legacy.buy_only == pytest.approx(-500)
        assert core.buy_only == pytest.approx(500)

    def test_no_sell_means_buy_only_equals_buy_sell(self):
        """Without sellers the adjustment is 0."""
        rows = compute([
            AssetEntry(asset="A", market_value=500, target_allocation=50),
            AssetEntry(asset="B", market_value=500, target_allocation=50),
        ])

        for row in rows:
            assert row.buy_sell >= 0
            assert row.buy_only == row.buy_sell

    def test_all_finite_for_degenerate_inputs(self):
        """Negative and zero values never produce NaN or infinity."""
        rows = compute([
            AssetEntry(asset="", market_value=-100, target_allocation=0),
            AssetEntry(asset="B", market_value=100, target_allocation=150),
        ])

        for row in rows:
            for value in (row.current_allocation, row.buy_sell, row.buy_only):
                assert value == value  # not NaN
                assert abs(value) != float("inf")

    def test_accepts_empty_identifiers(self):
        """In-progress entries without a name are still computed."""
        rows = compute([AssetEntry(), AssetEntry(asset="A", market_value=10, target_allocation=100)])

        assert rows[0].asset == ""
        assert rows[1].current_allocation == pytest.approx(100)


class TestInvariants:
    """Properties that hold for any input."""

    @pytest.mark.parametrize("entries", [
        [("A", 800, 50), ("B", 200, 50)],
        [("A", 6000, 40), ("B", 3000, 30), ("C", 1000, 30)],
        [("A", 100, 10), ("B", 100, 20), ("C", 100, 30), ("D", 100, 40)],
        [("A", 1234.56, 33.3), ("B", 789.01, 33.3), ("C", 4567.89, 33.4)],
        [("A", 50, 25), ("B", 50, 25), ("C", 900, 50)],
    ])
    def test_buy_only_never_negative(self, entries):
        """Buy-only plan never sells (within float tolerance)."""
        rows = compute([AssetEntry(a, v, t) for a, v, t in entries])

        for row in rows:
            assert row.buy_only >= -1e-9

    def test_binding_entry_reaches_zero(self, three_assets):
        """The entry with the largest sell ratio ends at exactly zero."""
        rows = compute(three_assets)
        adjustment = AllocationEngine.adjustment(rows)

        binding = [
            r for r in rows
            if r.buy_sell < 0 and r.target_allocation
            and abs(r.buy_sell / r.target_allocation) == pytest.approx(adjustment)
        ]
        assert binding
        for row in binding:
            assert row.buy_only == pytest.approx(0, abs=1e-9)

    def test_tied_sellers_both_reach_zero(self):
        """Entries tied on sell ratio both land on zero."""
        rows = compute([
            AssetEntry(asset="A", market_value=400, target_allocation=20),
            AssetEntry(asset="B", market_value=400, target_allocation=20),
            AssetEntry(asset="C", market_value=200, target_allocation=60),
        ])

        assert rows[0].buy_only == pytest.approx(0)
        assert rows[1].buy_only == pytest.approx(0)
        assert rows[2].buy_only > 0

    def test_order_preserved(self, three_assets):
        """Output rows follow input order one-to-one."""
        rows = compute(three_assets)

        assert [r.asset for r in rows] == [e.asset for e in three_assets]
        assert [r.market_value for r in rows] == [e.market_value for e in three_assets]

    def test_deterministic(self, three_assets):
        """Equal inputs give equal outputs."""
        assert compute(three_assets) == compute(list(three_assets))

    def test_input_not_mutated(self, two_assets):
        """compute returns new records and leaves the input list alone."""
        snapshot = list(two_assets)
        compute(two_assets)

        assert two_assets == snapshot

    def test_current_allocation_sums_to_100(self, three_assets):
        """Current allocations cover the whole portfolio."""
        rows = compute(three_assets)

        assert sum(r.current_allocation for r in rows) == pytest.approx(100)


class TestHelpers:
    """Tests for the per-step helpers."""

    def test_current_allocation_zero_total(self):
        assert current_allocation(100, 0) == 0

    def test_current_allocation(self):
        assert current_allocation(250, 1000) == pytest.approx(25)

    def test_buy_sell_zero_allocation(self):
        assert buy_sell_amount(100, 50, 0) == 0

    def test_sell_adjustment_empty(self):
        assert sell_adjustment([]) == 0

    def test_sell_adjustment_ignores_buyers(self):
        assert sell_adjustment([(300, 50), (0, 10)]) == 0

    def test_sell_adjustment_picks_max(self):
        assert sell_adjustment([(-300, 50), (-100, 10), (200, 40)]) == pytest.approx(10)


class TestRecords:
    """Tests for wire-format conversion."""

    def test_from_dict(self):
        entry = AssetEntry.from_dict({"asset": "VTI", "marketValue": 1500, "targetAllocation": 60})

        assert entry == AssetEntry(asset="VTI", market_value=1500.0, target_allocation=60.0)

    def test_from_dict_null_numbers_are_zero(self):
        """Cleared numeric inputs are stored as null and count as 0."""
        entry = AssetEntry.from_dict({"asset": "X", "marketValue": None, "targetAllocation": None})

        assert entry.market_value == 0
        assert entry.target_allocation == 0

    def test_from_dict_missing_fields(self):
        assert AssetEntry.from_dict({}) == AssetEntry()

    def test_computed_to_dict(self, two_assets):
        data = compute(two_assets)[0].to_dict()

        assert data == {
            "asset": "A",
            "marketValue": 800,
            "targetAllocation": 50,
            "currentAllocation": pytest.approx(80),
            "buySell": pytest.approx(-300),
            "buyOnly": pytest.approx(0),
        }

    def test_computed_entry_round_trip(self, two_assets):
        rows = compute(two_assets)

        assert [r.entry for r in rows] == two_assets
        assert isinstance(rows[0], ComputedAssetEntry)


class TestAllocationEngine:
    """Tests for the engine object."""

    def test_compute_matches_function(self, three_assets):
        assert AllocationEngine().compute(three_assets) == compute(three_assets)

    def test_compute_records(self):
        records = [
            {"asset": "A", "marketValue": 800, "targetAllocation": 50},
            {"asset": "B", "marketValue": 200, "targetAllocation": 50},
        ]

        result = AllocationEngine().compute_records(records)

        assert [r["asset"] for r in result] == ["A", "B"]
        assert result[1]["buyOnly"] == pytest.approx(600)

    def test_adjustment(self, two_assets):
        rows = compute(two_assets)

        assert AllocationEngine.adjustment(rows) == pytest.approx(6)
