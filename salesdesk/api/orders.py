"""Sales orders with their line items."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from salesdesk.api.deps import get_current_session
from salesdesk.core.database import atomic, get_db
from salesdesk.core.errors import bad_request, is_blank, not_found, server_error
from salesdesk.models import Order, PaymentMethod
from salesdesk.schemas.order import (
    OrderCreateRequest,
    OrderOut,
    OrdersListResponse,
    OrderStatusUpdate,
)
from salesdesk.schemas.payment import OrderPaymentRequest
from salesdesk.services.identity import IdentitySession
from salesdesk.services.orders import (
    STATUS_PAID,
    STATUS_UNPAID,
    InvalidOrderItemError,
    build_order_details,
    new_order_id,
)

logger = logging.getLogger(__name__)
router = APIRouter()

ORDER_NOT_FOUND = "Không tìm thấy đơn hàng"


def _load_order(db: Session, order_id: str) -> Order:
    try:
        order = (
            db.query(Order)
            .options(selectinload(Order.details))
            .filter(Order.order_id == order_id)
            .first()
        )
    except SQLAlchemyError as e:
        logger.exception("Order lookup failed", extra={"order_id": order_id})
        raise server_error("Lỗi khi tải đơn hàng") from e
    if order is None:
        raise not_found(ORDER_NOT_FOUND)
    return order


@router.get("", response_model=OrdersListResponse)
def list_orders(
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
    status: Annotated[str | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> OrdersListResponse:
    """Orders newest first, optionally only those with the given status."""
    try:
        query = db.query(Order).options(selectinload(Order.details))
        if status:
            query = query.filter(Order.status == status)
        rows = (
            query.order_by(Order.order_date.desc(), Order.order_id.desc())
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Listing orders failed")
        raise server_error("Lỗi khi tải danh sách đơn hàng") from e
    return OrdersListResponse(
        data=[OrderOut.model_validate(o) for o in rows],
        count=len(rows),
    )


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Order:
    return _load_order(db, order_id)


@router.post("", response_model=OrderOut)
def create_order(
    body: OrderCreateRequest,
    session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Order:
    """
    Create an order and its line items in one transaction.

    The order price is the sum of the line subtotals; clients cannot set it.
    """
    if is_blank(body.customer_id) or not body.items:
        raise bad_request("Missing required fields")
    try:
        details, total = build_order_details(body.items)
    except InvalidOrderItemError as e:
        raise bad_request("Sản phẩm trong đơn hàng không hợp lệ", item=e.index, reason=e.message) from e

    try:
        with atomic(db):
            order_id = new_order_id(lambda key: db.get(Order, key) is not None)
            order = Order(
                order_id=order_id,
                customer_id=body.customer_id.strip(),
                price=total,
                status=body.status.strip() if not is_blank(body.status) else STATUS_UNPAID,
                is_shipping=body.is_shipping,
                payment_method=body.payment_method,
            )
            order.details = details
            db.add(order)
    except SQLAlchemyError as e:
        logger.exception("Order insert failed", extra={"customer_id": body.customer_id})
        raise server_error("Không thể tạo đơn hàng") from e

    logger.info(
        "Order created",
        extra={"order_id": order_id, "items": len(details), "user_id": session.user.id},
    )
    return _load_order(db, order_id)


@router.patch("/{order_id}", response_model=OrderOut)
def update_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Order:
    if is_blank(body.status):
        raise bad_request("Missing required fields")
    order = _load_order(db, order_id)
    try:
        with atomic(db):
            order.status = body.status.strip()
    except SQLAlchemyError as e:
        logger.exception("Order update failed", extra={"order_id": order_id})
        raise server_error("Không thể cập nhật đơn hàng") from e
    return _load_order(db, order_id)


@router.post("/{order_id}/payment", response_model=OrderOut)
def pay_order(
    order_id: str,
    body: OrderPaymentRequest,
    session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Order:
    """Record the payment method and mark the order paid; an order is paid once."""
    if body.payment_method is None:
        raise bad_request("Phương thức thanh toán là bắt buộc")
    order = _load_order(db, order_id)
    if order.status == STATUS_PAID:
        raise bad_request("Đơn hàng đã được thanh toán")
    try:
        if db.get(PaymentMethod, body.payment_method) is None:
            raise bad_request("Phương thức thanh toán không tồn tại")
        with atomic(db):
            order.payment_method = body.payment_method
            order.status = STATUS_PAID
    except SQLAlchemyError as e:
        logger.exception("Order payment failed", extra={"order_id": order_id})
        raise server_error("Không thể cập nhật thanh toán cho đơn hàng") from e

    logger.info(
        "Order paid",
        extra={
            "order_id": order_id,
            "payment_id": body.payment_method,
            "user_id": session.user.id,
        },
    )
    return _load_order(db, order_id)
