"""Order keys and line-item pricing."""

import math
import secrets
from collections.abc import Callable
from decimal import ROUND_HALF_UP, Decimal

from salesdesk.models import OrderDetail
from salesdesk.schemas.order import OrderItemPayload

ORDER_ID_PREFIX = "ORD"
ORDER_ID_DIGITS = 8
STATUS_UNPAID = "Chưa thanh toán"
STATUS_PAID = "Đã thanh toán"

_CENT = Decimal("0.01")


class InvalidOrderItemError(ValueError):
    """A line item is missing its name or has a non-positive quantity or negative price."""

    def __init__(self, index: int, message: str) -> None:
        self.index = index
        self.message = message
        super().__init__(f"item {index}: {message}")


def to_money(value: float) -> Decimal:
    """Amount rounded half-up to cents."""
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)


def new_order_id(exists: Callable[[str], bool], attempts: int = 5) -> str:
    """
    Random key of the form ORD12345678 that ``exists`` reports as unused.

    Raises RuntimeError if every attempt collides.
    """
    for _ in range(attempts):
        candidate = f"{ORDER_ID_PREFIX}{secrets.randbelow(10**ORDER_ID_DIGITS):0{ORDER_ID_DIGITS}d}"
        if not exists(candidate):
            return candidate
    raise RuntimeError("Could not allocate an unused order id")


def build_order_details(items: list[OrderItemPayload]) -> tuple[list[OrderDetail], Decimal]:
    """Detail rows for the items and the order total (sum of quantity * unit price)."""
    details: list[OrderDetail] = []
    total = Decimal("0")
    for index, item in enumerate(items):
        if item.name_product is None or not item.name_product.strip():
            raise InvalidOrderItemError(index, "name_product is required")
        if item.quantity is None or item.quantity <= 0:
            raise InvalidOrderItemError(index, "quantity must be positive")
        if item.unit_price is None or not math.isfinite(item.unit_price):
            raise InvalidOrderItemError(index, "unit_price must be a finite number")
        if item.unit_price < 0:
            raise InvalidOrderItemError(index, "unit_price must not be negative")

        unit_price = to_money(item.unit_price)
        subtotal = (unit_price * item.quantity).quantize(_CENT, rounding=ROUND_HALF_UP)
        total += subtotal
        details.append(
            OrderDetail(
                product_id=item.product_id,
                name_product=item.name_product.strip(),
                quantity=item.quantity,
                unit_price=unit_price,
                subtotal=subtotal,
            )
        )
    return details, total
