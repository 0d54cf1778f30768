"""Unit tests for salesdesk.services.orders: order keys and line-item totals."""

import unittest
from decimal import Decimal

from pydantic import ValidationError

from salesdesk.schemas.order import OrderItemPayload
from salesdesk.services.orders import (
    InvalidOrderItemError,
    build_order_details,
    new_order_id,
)


class TestNewOrderId(unittest.TestCase):
    def test_format(self) -> None:
        order_id = new_order_id(lambda key: False)
        self.assertRegex(order_id, r"^ORD\d{8}$")

    def test_skips_used_keys(self) -> None:
        seen: list[str] = []

        def exists(key: str) -> bool:
            seen.append(key)
            return len(seen) < 3

        order_id = new_order_id(exists)
        self.assertEqual(len(seen), 3)
        self.assertEqual(order_id, seen[-1])

    def test_gives_up(self) -> None:
        with self.assertRaises(RuntimeError):
            new_order_id(lambda key: True, attempts=2)


class TestBuildOrderDetails(unittest.TestCase):
    """Totals are exact decimals rounded to cents."""

    def test_total_is_sum_of_subtotals(self) -> None:
        details, total = build_order_details(
            [
                OrderItemPayload(name_product="Trà", quantity=3, unit_price=0.1),
                OrderItemPayload(name_product="Bánh", quantity=1, unit_price=19999.995),
            ]
        )
        self.assertEqual(details[0].subtotal, Decimal("0.30"))
        self.assertEqual(details[1].unit_price, Decimal("20000.00"))
        self.assertEqual(total, Decimal("20000.30"))

    def test_invalid_items(self) -> None:
        cases = [
            OrderItemPayload(name_product=" ", quantity=1, unit_price=1),
            OrderItemPayload(name_product="A", quantity=0, unit_price=1),
            OrderItemPayload(name_product="A", quantity=1, unit_price=-1),
            OrderItemPayload(name_product="A", quantity=1),
        ]
        for item in cases:
            with self.assertRaises(InvalidOrderItemError) as ctx:
                build_order_details([OrderItemPayload(name_product="ok", quantity=1, unit_price=1), item])
            self.assertEqual(ctx.exception.index, 1)

    def test_payload_refuses_non_finite_prices(self) -> None:
        for value in (float("nan"), float("inf")):
            with self.assertRaises(ValidationError):
                OrderItemPayload(name_product="A", quantity=1, unit_price=value)

    def test_non_finite_price_is_an_invalid_item(self) -> None:
        # model_construct skips field validation.
        for value in (float("nan"), float("inf"), float("-inf")):
            item = OrderItemPayload.model_construct(name_product="A", quantity=1, unit_price=value)
            with self.assertRaises(InvalidOrderItemError) as ctx:
                build_order_details([item])
            self.assertIn("finite", ctx.exception.message)
