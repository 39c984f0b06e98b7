"""
SKU aggregation tests.

Guards against:
1. Revenue splits not adding up to the order total
2. Orders counted once per line item instead of once per order
3. Shipment outcomes counted more than once per order
"""
import math

from factories import make_order, make_shipment

from sku_metrics.services.predictive_rates import PredictiveRates
from sku_metrics.services.shipment_status import ShipmentIndex
from sku_metrics.services.sku_aggregation import SkuAggregator, split_order_revenue


def _by_sku(aggregation):
    return {row.sku: row for row in aggregation.skus}


# ---------------------------------------------------------------------------
# Proportional split
# ---------------------------------------------------------------------------

def test_split_is_proportional_to_line_subtotals():
    order = make_order(1, items=[("A", "A", 300, 1), ("B", "B", 100, 2)], total=450)
    splits = split_order_revenue(order)
    assert math.isclose(splits[0], 270.0) and math.isclose(splits[1], 180.0)
    assert math.isclose(sum(splits), order.total_price)


def test_split_spreads_discounts_and_shipping():
    order = make_order(1, items=[("A", "A", 333, 1), ("B", "B", 333, 2)], total=1000)
    assert math.isclose(sum(split_order_revenue(order)), 1000)


def test_split_with_zero_item_total_does_not_divide_by_zero():
    order = make_order(1, items=[("A", "A", 0, 1)], total=50)
    assert split_order_revenue(order) == [0.0]


# ---------------------------------------------------------------------------
# End-to-end scenario
# ---------------------------------------------------------------------------

def test_cod_order_with_two_skus():
    order = make_order(1, items=[("Belly Butter", "BB", 300, 1), ("Nipple Cream", "NC", 200, 1)], total=500, cod=True)
    result = SkuAggregator().aggregate([order], ShipmentIndex())
    skus = _by_sku(result)

    assert math.isclose(skus["BB"].total_revenue, 300)
    assert math.isclose(skus["NC"].total_revenue, 200)
    assert math.isclose(skus["BB"].cod_revenue, 300) and skus["BB"].prepaid_revenue == 0
    assert skus["NC"].cod_orders == 1 and skus["NC"].prepaid_orders == 0
    assert math.isclose(sum(s.total_revenue for s in result.skus), order.total_price)
    assert result.totals.cod_orders == 1
    assert result.totals.cod_revenue == 500


def test_revenue_split_invariant_per_sku():
    orders = [
        make_order(1, items=[("A", "A", 99.99, 3), ("B", "B", 10.01, 1)], total=289.0, cod=True),
        make_order(2, items=[("A", "A", 99.99, 1)], total=120.0),
        make_order(3, items=[("B", "B", 10.01, 7), ("C", "C", 1, 1)], total=70.5, cod=True),
    ]
    result = SkuAggregator().aggregate(orders, ShipmentIndex())
    for row in result.skus:
        assert math.isclose(row.cod_revenue + row.prepaid_revenue, row.total_revenue, rel_tol=1e-6)
    assert math.isclose(sum(r.total_revenue for r in result.skus), 289.0 + 120.0 + 70.5, rel_tol=1e-6)


# ---------------------------------------------------------------------------
# Per-order counting
# ---------------------------------------------------------------------------

def test_same_sku_on_two_lines_counts_one_order():
    order = make_order(1, items=[("A", "A", 100, 1), ("A", "A", 100, 1), ("B", "B", 100, 1)], cod=True)
    index = ShipmentIndex.from_records([make_shipment("1", status_code=7)])
    result = SkuAggregator().aggregate([order], index)
    row = _by_sku(result)["A"]

    assert row.cod_orders == 1
    assert row.total_orders == 1
    assert row.quantity == 2
    assert math.isclose(row.total_revenue, 200)
    assert row.cod_outcomes.delivered == 1
    assert result.totals.total_orders == 1


def test_repeated_order_id_is_counted_once():
    order = make_order(1, items=[("Belly Butter", "BB", 500, 1)], total=500, cod=True)
    result = SkuAggregator().aggregate([order, order], ShipmentIndex())
    row = _by_sku(result)["BB"]

    assert result.totals.total_orders == 1
    assert math.isclose(result.totals.total_revenue, 500)
    assert math.isclose(sum(s.total_revenue for s in result.skus), result.totals.total_revenue)
    assert row.quantity == 1
    assert math.isclose(row.cod_revenue, 500)
    assert result.attributed_orders == {"belly butter": 1}


def test_precomputed_attribution_is_used():
    orders = [make_order(1, items=[("Belly Butter", "BB", 100, 1)]), make_order(2, items=[("X", "X", 10, 1)])]
    result = SkuAggregator().aggregate(orders, ShipmentIndex(), attribution={"1": "gift box"})
    # Order 2 is missing from the mapping and falls back to its own attribution
    assert result.attributed_orders == {"gift box": 1, "x": 1}


def test_outcomes_split_by_payment_class():
    orders = [
        make_order(1, items=[("A", "A", 100, 1)], cod=True),
        make_order(2, items=[("A", "A", 100, 1)], cod=True),
        make_order(3, items=[("A", "A", 100, 1)]),
        make_order(4, items=[("A", "A", 100, 1)]),
    ]
    index = ShipmentIndex.from_records([
        make_shipment("1", status_code=9),
        make_shipment("2", status="IN TRANSIT"),
        make_shipment("3", status_code=8),
    ])
    row = SkuAggregator().aggregate(orders, index).skus[0]

    assert (row.cod_outcomes.rto, row.cod_outcomes.in_transit) == (1, 1)
    assert (row.prepaid_outcomes.cancelled, row.prepaid_outcomes.unknown) == (1, 1)
    assert row.total_orders == 4


def test_manual_review_and_attributed_counts():
    orders = [
        make_order(1, items=[("Belly Butter", "BB", 80, 1), ("Nipple Cream", "NC", 20, 1)]),
        make_order(2, items=[("Belly Butter", "BB", 50, 1), ("Nipple Cream", "NC", 50, 1)]),
        make_order(3, items=[("Belly Butter", "BB", 50, 1)]),
    ]
    result = SkuAggregator().aggregate(orders, ShipmentIndex())
    assert result.manual_review_count == 1
    assert result.attributed_orders == {"belly butter": 2}


def test_order_without_lines_counts_in_totals_only():
    result = SkuAggregator().aggregate([make_order(1, items=[], total=99, cod=True)], ShipmentIndex())
    assert result.skus == []
    assert result.totals.cod_orders == 1
    assert result.manual_review_count == 1


def test_predictive_rates_looked_up_by_product_key():
    orders = [make_order(1, items=[("Belly Butter™ 100ml", "BB", 100, 1)]), make_order(2, items=[("Other", "O", 10, 1)])]
    rates = {"belly butter": PredictiveRates(predictive_rto=12.5, predictive_cancel=4.0)}
    skus = _by_sku(SkuAggregator().aggregate(orders, ShipmentIndex(), rates))

    assert (skus["BB"].predictive_rto, skus["BB"].predictive_cancel) == (12.5, 4.0)
    assert (skus["O"].predictive_rto, skus["O"].predictive_cancel) == (0.0, 0.0)


def test_skus_sorted_by_revenue():
    orders = [make_order(1, items=[("A", "A", 10, 1), ("B", "B", 90, 1)])]
    assert [row.sku for row in SkuAggregator().aggregate(orders, ShipmentIndex()).skus] == ["B", "A"]
