"""Customers: search, read, create, replace (signed in) and delete (admin only)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from salesdesk.api.deps import get_current_session, require_admin
from salesdesk.core.database import atomic, get_db
from salesdesk.core.errors import bad_request, is_blank, not_found, server_error
from salesdesk.models import Account, Customer, Order
from salesdesk.schemas.customer import CustomerOut, CustomerPayload
from salesdesk.schemas.order import OrderOut, OrdersListResponse
from salesdesk.services.identity import IdentitySession

logger = logging.getLogger(__name__)
router = APIRouter()

CUSTOMER_NOT_FOUND = "Không tìm thấy khách hàng"
PHONE_TAKEN = "Số điện thoại này đã được sử dụng bởi khách hàng khác"
EMAIL_TAKEN = "Email này đã được sử dụng bởi khách hàng khác"
CONTACT_TAKEN = "Số điện thoại hoặc email đã được sử dụng bởi khách hàng khác"


def _get_customer(db: Session, customer_id: str) -> Customer:
    try:
        customer = db.get(Customer, customer_id)
    except SQLAlchemyError as e:
        logger.exception("Customer lookup failed", extra={"customer_id": customer_id})
        raise server_error("Lỗi khi tải thông tin khách hàng") from e
    if customer is None:
        raise not_found(CUSTOMER_NOT_FOUND)
    return customer


def _ensure_contact_free(db: Session, phone: str, email: str | None, exclude_id: str | None = None) -> None:
    """400 when another customer already uses the phone number or email."""
    conditions = [Customer.phone == phone]
    if email:
        conditions.append(Customer.email == email)
    query = db.query(Customer).filter(or_(*conditions))
    if exclude_id is not None:
        query = query.filter(Customer.customer_id != exclude_id)
    for existing in query.all():
        if existing.phone == phone:
            raise bad_request(PHONE_TAKEN, field="phone")
        raise bad_request(EMAIL_TAKEN, field="email")


def _apply_payload(db: Session, customer: Customer, body: CustomerPayload) -> None:
    if is_blank(body.full_name) or is_blank(body.phone):
        raise bad_request("Họ tên và số điện thoại là bắt buộc")
    phone = body.phone.strip()
    email = body.email.strip() if not is_blank(body.email) else None
    _ensure_contact_free(db, phone, email, exclude_id=customer.customer_id)

    customer.full_name = body.full_name.strip()
    customer.phone = phone
    customer.email = email
    customer.address = body.address or None
    customer.hometown = body.hometown or None


@router.get("", response_model=list[CustomerOut])
def list_customers(
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
    q: Annotated[str | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
) -> list[Customer]:
    """
    With ``q``: customers whose name, phone or email contains it, by name.
    Without: newest customers first.
    """
    try:
        query = db.query(Customer)
        if q and q.strip():
            term = f"%{q.strip()}%"
            query = query.filter(
                or_(
                    Customer.full_name.ilike(term),
                    Customer.phone.ilike(term),
                    Customer.email.ilike(term),
                )
            ).order_by(Customer.full_name)
        else:
            query = query.order_by(Customer.created_at.desc(), Customer.full_name)
        return query.limit(limit).all()
    except SQLAlchemyError as e:
        logger.exception("Listing customers failed")
        raise server_error("Lỗi khi tải danh sách khách hàng") from e


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(
    customer_id: str,
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Customer:
    return _get_customer(db, customer_id)


@router.get("/{customer_id}/orders", response_model=OrdersListResponse)
def list_customer_orders(
    customer_id: str,
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> OrdersListResponse:
    _get_customer(db, customer_id)
    try:
        rows = (
            db.query(Order)
            .options(selectinload(Order.details))
            .filter(Order.customer_id == customer_id)
            .order_by(Order.order_date.desc(), Order.order_id.desc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Listing customer orders failed", extra={"customer_id": customer_id})
        raise server_error("Lỗi khi tải danh sách đơn hàng") from e
    return OrdersListResponse(
        data=[OrderOut.model_validate(o) for o in rows],
        count=len(rows),
    )


@router.post("", response_model=CustomerOut)
def create_customer(
    body: CustomerPayload,
    session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Customer:
    customer = Customer()
    try:
        with atomic(db):
            _apply_payload(db, customer, body)
            db.add(customer)
    except IntegrityError as e:
        # Concurrent insert with the same phone or email.
        raise bad_request(CONTACT_TAKEN) from e
    except SQLAlchemyError as e:
        logger.exception("Customer insert failed")
        raise server_error("Không thể thêm khách hàng") from e

    db.refresh(customer)
    logger.info(
        "Customer created",
        extra={"customer_id": customer.customer_id, "user_id": session.user.id},
    )
    return customer


@router.put("/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: str,
    body: CustomerPayload,
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Customer:
    customer = _get_customer(db, customer_id)
    try:
        with atomic(db):
            _apply_payload(db, customer, body)
    except IntegrityError as e:
        raise bad_request(CONTACT_TAKEN) from e
    except SQLAlchemyError as e:
        logger.exception("Customer update failed", extra={"customer_id": customer_id})
        raise server_error("Không thể cập nhật khách hàng") from e

    db.refresh(customer)
    return customer


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: str,
    admin: Annotated[Account, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, bool | str]:
    """Orders keep their customer_id after the customer row is gone."""
    customer = _get_customer(db, customer_id)
    try:
        with atomic(db):
            db.delete(customer)
    except SQLAlchemyError as e:
        logger.exception("Customer delete failed", extra={"customer_id": customer_id})
        raise server_error("Không thể xóa khách hàng") from e

    logger.info(
        "Customer deleted",
        extra={"customer_id": customer_id, "actor_id": admin.user_id},
    )
    return {"success": True, "message": "Đã xóa khách hàng"}
