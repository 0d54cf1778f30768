"""Partner return requests."""

import logging
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.api.deps import get_current_session
from salesdesk.core.database import atomic, get_db
from salesdesk.core.errors import bad_request, is_blank, not_found, server_error
from salesdesk.models import ReturnRequest
from salesdesk.schemas.returns import (
    ReturnCreateRequest,
    ReturnOut,
    ReturnsListResponse,
    ReturnStatusUpdate,
)
from salesdesk.services.identity import IdentitySession

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=ReturnsListResponse)
def list_returns(
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> ReturnsListResponse:
    """All return requests, newest first."""
    try:
        rows = (
            db.query(ReturnRequest)
            .order_by(ReturnRequest.return_date.desc(), ReturnRequest.return_id.desc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Listing returns failed")
        raise server_error("Không thể tải danh sách trả hàng") from e
    return ReturnsListResponse(
        data=[ReturnOut.model_validate(r) for r in rows],
        count=len(rows),
    )


@router.post("", response_model=ReturnOut)
def create_return(
    body: ReturnCreateRequest,
    session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> ReturnRequest:
    if is_blank(body.order_id) or is_blank(body.return_reason) or is_blank(body.status):
        raise bad_request("Missing required fields")

    row = ReturnRequest(
        name_return=body.name_return,
        order_id=body.order_id.strip(),
        return_reason=body.return_reason,
        refund_amount=Decimal(str(body.refund_amount)) if body.refund_amount is not None else None,
        status=body.status.strip(),
    )
    try:
        with atomic(db):
            db.add(row)
    except SQLAlchemyError as e:
        logger.exception("Return insert failed", extra={"order_id": body.order_id})
        raise server_error("Không thể tạo yêu cầu trả hàng") from e

    db.refresh(row)
    logger.info(
        "Return created",
        extra={"return_id": row.return_id, "user_id": session.user.id},
    )
    return row


@router.patch("/{return_id}", response_model=ReturnOut)
def update_return_status(
    return_id: int,
    body: ReturnStatusUpdate,
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> ReturnRequest:
    if is_blank(body.status):
        raise bad_request("Missing required fields")
    try:
        row = db.get(ReturnRequest, return_id)
        if row is None:
            raise not_found("Không tìm thấy yêu cầu trả hàng")
        with atomic(db):
            row.status = body.status.strip()
    except SQLAlchemyError as e:
        logger.exception("Return update failed", extra={"return_id": return_id})
        raise server_error("Không thể cập nhật yêu cầu trả hàng") from e

    db.refresh(row)
    return row
