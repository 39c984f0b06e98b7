"""
Payment classification and batch de-duplication tests.
"""
from factories import make_order

from sku_metrics.models.records import Order
from sku_metrics.services.order_classification import OrderClassifier, is_cod, payment_class


def _with_gateways(*names):
    return make_order(1, items=[("A", "A", 100, 1)]).model_copy(
        update={"payment_gateway_names": list(names)}
    )


def test_cod_gateway_substring():
    assert is_cod(_with_gateways("Cash on Delivery (COD)"))
    assert is_cod(_with_gateways("cod"))
    assert is_cod(_with_gateways("razorpay", "CASH ON DELIVERY"))


def test_prepaid_gateways():
    assert not is_cod(_with_gateways("razorpay"))
    assert not is_cod(_with_gateways())
    assert payment_class(_with_gateways("gokwik")) == "prepaid"


def test_order_with_three_lines_counts_once():
    order = make_order(
        42,
        items=[("A", "A", 100, 1), ("B", "B", 100, 1), ("C", "C", 100, 1)],
        cod=True,
    )
    classifier = OrderClassifier()
    counted = [classifier.record(order) for _ in order.line_items]

    assert counted == [True, False, False]
    assert classifier.cod_orders == 1
    assert classifier.prepaid_orders == 0
    assert classifier.cod_revenue == 300


def test_totals_split_by_payment_class():
    classifier = OrderClassifier()
    classifier.record(make_order(1, items=[("A", "A", 500, 1)], cod=True))
    classifier.record(make_order(2, items=[("A", "A", 250, 1)]))
    classifier.record(make_order(2, items=[("A", "A", 250, 1)]))

    assert (classifier.cod_orders, classifier.prepaid_orders) == (1, 1)
    assert classifier.total_orders == 2
    assert classifier.total_revenue == 750


def test_classifier_instances_do_not_share_state():
    order = make_order(7, items=[("A", "A", 10, 1)])
    assert OrderClassifier().record(order)
    assert OrderClassifier().record(order)


def test_legacy_gateway_field_is_used_for_cod():
    order = Order.from_shopify({
        "id": 1,
        "created_at": "2024-03-15T10:00:00+05:30",
        "gateway": "Cash on Delivery (COD)",
        "total_price": "100.00",
    })
    assert is_cod(order)
