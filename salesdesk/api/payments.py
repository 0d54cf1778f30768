"""Payment methods offered at checkout."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.api.deps import get_current_session, require_admin
from salesdesk.core.database import atomic, get_db
from salesdesk.core.errors import bad_request, is_blank, server_error
from salesdesk.models import Account, PaymentMethod
from salesdesk.schemas.payment import PaymentMethodOut, PaymentMethodPayload
from salesdesk.services.identity import IdentitySession

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=list[PaymentMethodOut])
def list_payment_methods(
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> list[PaymentMethod]:
    try:
        return db.query(PaymentMethod).order_by(PaymentMethod.payment_method_name).all()
    except SQLAlchemyError as e:
        logger.exception("Listing payment methods failed")
        raise server_error("Lỗi khi lấy phương thức thanh toán") from e


@router.post("", response_model=PaymentMethodOut)
def create_payment_method(
    body: PaymentMethodPayload,
    admin: Annotated[Account, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> PaymentMethod:
    if is_blank(body.payment_method_name):
        raise bad_request("Tên phương thức thanh toán là bắt buộc")
    method = PaymentMethod(
        payment_method_name=body.payment_method_name.strip(),
        description=body.description or None,
        user_id=admin.user_id,
    )
    try:
        with atomic(db):
            db.add(method)
    except IntegrityError as e:
        raise bad_request("Phương thức thanh toán đã tồn tại") from e
    except SQLAlchemyError as e:
        logger.exception("Payment method insert failed")
        raise server_error("Không thể thêm phương thức thanh toán") from e

    db.refresh(method)
    logger.info("Payment method created", extra={"payment_id": method.payment_id})
    return method
