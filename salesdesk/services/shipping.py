"""Shipping keys and delivery statuses."""

import secrets
from collections.abc import Callable
from datetime import UTC, datetime

SHIPPING_ID_PREFIX = "SHP"
SHIPPING_ID_SUFFIX_DIGITS = 5

STATUS_PENDING = "pending"
STATUS_SHIPPED = "shipped"
STATUS_DELIVERED = "delivered"
STATUS_CANCELLED = "cancelled"
SHIPPING_STATUSES = (STATUS_PENDING, STATUS_SHIPPED, STATUS_DELIVERED, STATUS_CANCELLED)


def new_shipping_id(
    exists: Callable[[str], bool],
    now: datetime | None = None,
    attempts: int = 5,
) -> str:
    """
    Random key of the form SHP-YYYYMMDD-12345 that ``exists`` reports as unused.

    Raises RuntimeError if every attempt collides.
    """
    day = (now or datetime.now(UTC)).strftime("%Y%m%d")
    for _ in range(attempts):
        suffix = secrets.randbelow(10**SHIPPING_ID_SUFFIX_DIGITS)
        candidate = f"{SHIPPING_ID_PREFIX}-{day}-{suffix:0{SHIPPING_ID_SUFFIX_DIGITS}d}"
        if not exists(candidate):
            return candidate
    raise RuntimeError("Could not allocate an unused shipping id")
