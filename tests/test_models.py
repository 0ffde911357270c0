from decimal import Decimal
import json

import pytest

from plantshop.models.models import Order, OrderItem, OrderStatus
from plantshop.processor.orders import merge_lines
from plantshop.utils.exceptions import ValidationError


@pytest.mark.parametrize("current, target, allowed", [
    ("pending", "paid", True),
    ("pending", "processing", True),
    ("pending", "shipped", False),
    ("paid", "paid", True),
    ("processing", "shipped", True),
    ("shipped", "completed", True),
    ("shipped", "cancelled", False),
    ("completed", "pending", False),
    ("cancelled", "paid", False),
])
def test_order_status_transitions(current, target, allowed):
    assert OrderStatus(current).can_become(OrderStatus(target)) is allowed


def test_order_items_decode_from_storage():
    stored = json.dumps([{"productId": 3, "name": "Pilea", "price": 349.9, "quantity": 2}])
    order = Order(id=1, items=stored, product_quantities_reduced=0)
    assert order.items == [OrderItem(product_id=3, name="Pilea", price=Decimal("349.90"), quantity=2)]
    assert order.items_total == Decimal("699.80")
    assert order.product_quantities_reduced is False
    assert json.loads(Order._encode("items", order.items)) == json.loads(stored)


def test_unreadable_items_decode_as_empty():
    assert Order(id=1, items="{not json").items == []


def test_merge_lines_sums_repeated_products():
    assert merge_lines([{"id": 1, "quantity": 2}, {"productId": 1, "quantity": 1}, {"id": 2, "quantity": 1}]) == {1: 3, 2: 1}


@pytest.mark.parametrize("items", [
    None,
    [],
    ["1"],
    [{"id": "1", "quantity": 1}],
    [{"id": 1, "quantity": True}],
    [{"id": 1, "quantity": -1}],
])
def test_merge_lines_rejects_malformed(items):
    with pytest.raises(ValidationError, match="Cart is empty or malformed"):
        merge_lines(items)
