"""Order deliveries: create one per order, list, read and update its progress."""

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.api.deps import get_current_session
from salesdesk.core.database import atomic, get_db
from salesdesk.core.errors import bad_request, is_blank, not_found, server_error
from salesdesk.models import Order, Shipping
from salesdesk.schemas.shipping import (
    ShippingCreateRequest,
    ShippingOut,
    ShippingsListResponse,
    ShippingUpdate,
)
from salesdesk.services.identity import IdentitySession
from salesdesk.services.orders import to_money
from salesdesk.services.shipping import (
    SHIPPING_STATUSES,
    STATUS_DELIVERED,
    STATUS_PENDING,
    new_shipping_id,
)

logger = logging.getLogger(__name__)
router = APIRouter()

SHIPPING_NOT_FOUND = "Không tìm thấy thông tin vận chuyển"
NEGATIVE_AMOUNT = "Phí vận chuyển và tiền thu hộ không được âm"
MONEY_FIELDS = ("shipping_cost", "cod_shipping")


def _get_shipping(db: Session, shipping_id: str) -> Shipping:
    try:
        shipping = db.get(Shipping, shipping_id)
    except SQLAlchemyError as e:
        logger.exception("Shipping lookup failed", extra={"shipping_id": shipping_id})
        raise server_error("Lỗi khi tải thông tin vận chuyển") from e
    if shipping is None:
        raise not_found(SHIPPING_NOT_FOUND)
    return shipping


@router.get("", response_model=ShippingsListResponse)
def list_shippings(
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
    status: Annotated[str | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> ShippingsListResponse:
    """Newest deliveries first, optionally only those with the given status."""
    try:
        query = db.query(Shipping)
        if status:
            query = query.filter(Shipping.status == status)
        rows = (
            query.order_by(Shipping.created_at.desc(), Shipping.shipping_id.desc())
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Listing shippings failed")
        raise server_error("Lỗi khi tải danh sách vận chuyển") from e
    return ShippingsListResponse(
        data=[ShippingOut.model_validate(s) for s in rows],
        count=len(rows),
    )


@router.get("/{shipping_id}", response_model=ShippingOut)
def get_shipping(
    shipping_id: str,
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Shipping:
    return _get_shipping(db, shipping_id)


@router.post("", response_model=ShippingOut)
def create_shipping(
    body: ShippingCreateRequest,
    session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Shipping:
    """
    Start the delivery of an order. The order is flagged as shipping in the same
    transaction; an order has at most one delivery.
    """
    required = (body.order_id, body.name_customer, body.phone_customer, body.shipping_address)
    if any(is_blank(value) for value in required):
        raise bad_request("Missing required fields")
    if body.shipping_cost < 0 or body.cod_shipping < 0:
        raise bad_request(NEGATIVE_AMOUNT)
    order_id = body.order_id.strip()

    try:
        order = db.get(Order, order_id)
        if order is None:
            raise not_found("Không tìm thấy đơn hàng")
        if db.query(Shipping).filter(Shipping.order_id == order_id).first() is not None:
            raise bad_request("Đơn hàng đã có thông tin vận chuyển")
        with atomic(db):
            shipping = Shipping(
                shipping_id=new_shipping_id(lambda key: db.get(Shipping, key) is not None),
                order_id=order_id,
                name_customer=body.name_customer.strip(),
                phone_customer=body.phone_customer.strip(),
                shipping_address=body.shipping_address.strip(),
                carrier=body.carrier or None,
                tracking_number=body.tracking_number or None,
                shipping_cost=to_money(body.shipping_cost),
                cod_shipping=to_money(body.cod_shipping),
                weight=body.weight,
                unit_weight=body.unit_weight or None,
                status=STATUS_PENDING,
                delivery_date=body.delivery_date,
            )
            db.add(shipping)
            order.is_shipping = True
    except SQLAlchemyError as e:
        logger.exception("Shipping insert failed", extra={"order_id": order_id})
        raise server_error("Không thể tạo thông tin vận chuyển") from e

    db.refresh(shipping)
    logger.info(
        "Shipping created",
        extra={
            "shipping_id": shipping.shipping_id,
            "order_id": order_id,
            "user_id": session.user.id,
        },
    )
    return shipping


@router.patch("/{shipping_id}", response_model=ShippingOut)
def update_shipping(
    shipping_id: str,
    body: ShippingUpdate,
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Shipping:
    """
    Write the fields present in the body. Moving to 'delivered' without an
    actual_delivery_date stamps the current time.
    """
    changes = body.model_dump(exclude_unset=True)
    if "status" in changes and changes["status"] not in SHIPPING_STATUSES:
        raise bad_request(
            "Trạng thái vận chuyển không hợp lệ",
            allowed=list(SHIPPING_STATUSES),
        )
    for field in ("name_customer", "phone_customer", "shipping_address"):
        if field in changes and is_blank(changes[field]):
            raise bad_request("Missing required fields", field=field)
    for field in MONEY_FIELDS:
        if field in changes:
            if changes[field] is None or changes[field] < 0:
                raise bad_request(NEGATIVE_AMOUNT, field=field)
            changes[field] = to_money(changes[field])

    shipping = _get_shipping(db, shipping_id)
    if changes.get("status") == STATUS_DELIVERED and changes.get("actual_delivery_date") is None:
        if shipping.actual_delivery_date is None:
            changes["actual_delivery_date"] = datetime.now(UTC)
        else:
            changes.pop("actual_delivery_date", None)

    try:
        with atomic(db):
            for field, value in changes.items():
                setattr(shipping, field, value)
    except SQLAlchemyError as e:
        logger.exception("Shipping update failed", extra={"shipping_id": shipping_id})
        raise server_error("Lỗi khi cập nhật thông tin vận chuyển") from e

    db.refresh(shipping)
    return shipping
