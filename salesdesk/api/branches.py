"""Store branches: listed by any signed-in user, managed by admins."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.api.deps import get_current_session, require_admin
from salesdesk.core.database import atomic, get_db
from salesdesk.core.errors import bad_request, is_blank, not_found, server_error
from salesdesk.core.permissions import find_account
from salesdesk.models import Account, Branch, UserProfile
from salesdesk.schemas.branch import BranchOut, BranchPayload
from salesdesk.services.identity import IdentitySession

logger = logging.getLogger(__name__)
router = APIRouter()

BRANCH_NOT_FOUND = "Không tìm thấy chi nhánh"


def _get_branch(db: Session, branch_id: int) -> Branch:
    try:
        branch = db.get(Branch, branch_id)
    except SQLAlchemyError as e:
        logger.exception("Branch lookup failed", extra={"branch_id": branch_id})
        raise server_error("Lỗi khi tải chi nhánh") from e
    if branch is None:
        raise not_found(BRANCH_NOT_FOUND)
    return branch


def _to_out(db: Session, branches: list[Branch]) -> list[BranchOut]:
    """Attach each manager's full name (None when unassigned or unknown)."""
    manager_ids = {b.manager_id for b in branches if b.manager_id}
    names: dict[str, str] = {}
    if manager_ids:
        rows = db.query(UserProfile).filter(UserProfile.user_id.in_(sorted(manager_ids))).all()
        names = {p.user_id: p.full_name for p in rows}
    return [
        BranchOut(
            branch_id=b.branch_id,
            branch_name=b.branch_name,
            branch_address=b.branch_address,
            manager_id=b.manager_id,
            manager_name=names.get(b.manager_id) if b.manager_id else None,
        )
        for b in branches
    ]


def _apply_payload(db: Session, branch: Branch, body: BranchPayload) -> None:
    if is_blank(body.branch_name) or is_blank(body.branch_address):
        raise bad_request("Tên và địa chỉ chi nhánh là bắt buộc")
    manager_id = body.manager_id or None
    if manager_id is not None and find_account(db, manager_id) is None:
        raise bad_request("Người quản lý không tồn tại")
    branch.branch_name = body.branch_name.strip()
    branch.branch_address = body.branch_address.strip()
    branch.manager_id = manager_id


@router.get("", response_model=list[BranchOut])
def list_branches(
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> list[BranchOut]:
    try:
        return _to_out(db, db.query(Branch).order_by(Branch.branch_id).all())
    except SQLAlchemyError as e:
        logger.exception("Listing branches failed")
        raise server_error("Lỗi khi tải danh sách chi nhánh") from e


@router.post("", response_model=BranchOut)
def create_branch(
    body: BranchPayload,
    admin: Annotated[Account, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> BranchOut:
    branch = Branch()
    try:
        with atomic(db):
            _apply_payload(db, branch, body)
            db.add(branch)
    except SQLAlchemyError as e:
        logger.exception("Branch insert failed")
        raise server_error("Không thể thêm chi nhánh") from e

    db.refresh(branch)
    logger.info(
        "Branch created",
        extra={"branch_id": branch.branch_id, "actor_id": admin.user_id},
    )
    return _to_out(db, [branch])[0]


@router.put("/{branch_id}", response_model=BranchOut)
def update_branch(
    branch_id: int,
    body: BranchPayload,
    _admin: Annotated[Account, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> BranchOut:
    branch = _get_branch(db, branch_id)
    try:
        with atomic(db):
            _apply_payload(db, branch, body)
    except SQLAlchemyError as e:
        logger.exception("Branch update failed", extra={"branch_id": branch_id})
        raise server_error("Không thể cập nhật chi nhánh") from e

    db.refresh(branch)
    return _to_out(db, [branch])[0]


@router.delete("/{branch_id}")
def delete_branch(
    branch_id: int,
    admin: Annotated[Account, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, bool | str]:
    branch = _get_branch(db, branch_id)
    try:
        with atomic(db):
            db.delete(branch)
    except SQLAlchemyError as e:
        logger.exception("Branch delete failed", extra={"branch_id": branch_id})
        raise server_error("Không thể xóa chi nhánh") from e

    logger.info(
        "Branch deleted",
        extra={"branch_id": branch_id, "actor_id": admin.user_id},
    )
    return {"success": True, "message": "Đã xóa chi nhánh"}
