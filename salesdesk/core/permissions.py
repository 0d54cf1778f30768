"""Role gate: decide from the stored account row whether a principal may act."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.core.errors import bad_request, forbidden, server_error
from salesdesk.models import Account

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

ACCOUNT_NOT_FOUND = "Không có quyền truy cập: Không tìm thấy thông tin tài khoản"
ADMIN_REQUIRED = "Không có quyền truy cập: Chỉ admin mới có thể thực hiện thao tác này"
CANNOT_DELETE_SELF = "Không thể xóa tài khoản của chính mình"
CANNOT_DELETE_ADMIN = "Không thể xóa tài khoản admin khác"


def find_account(db: Session, user_id: str) -> Account | None:
    return db.query(Account).filter(Account.user_id == user_id).first()


def load_account(db: Session, user_id: str) -> Account:
    """The principal's account row; 403 when it is missing or cannot be read."""
    try:
        account = find_account(db, user_id)
    except SQLAlchemyError:
        logger.exception("Account lookup failed during role check")
        raise forbidden(ACCOUNT_NOT_FOUND)
    if account is None:
        logger.warning("Role check denied: no account row", extra={"user_id": user_id})
        raise forbidden(ACCOUNT_NOT_FOUND)
    return account


def check_role(
    account: Account,
    role: str = ADMIN_ROLE,
    denied_message: str = ADMIN_REQUIRED,
) -> Account:
    """Exact string comparison of the stored role; 403 on mismatch."""
    if account.role != role:
        logger.warning(
            "Role check denied",
            extra={"user_id": account.user_id, "role": account.role, "required_role": role},
        )
        raise forbidden(denied_message)
    return account


def require_role(
    db: Session,
    user_id: str,
    role: str = ADMIN_ROLE,
    denied_message: str = ADMIN_REQUIRED,
) -> Account:
    """
    Return the caller's account if its role equals ``role``.

    Fails closed with 403 when the account is missing, the lookup fails, or the
    role differs.
    """
    return check_role(load_account(db, user_id), role, denied_message)

def ensure_not_self(actor_id: str, target_id: str, message: str = CANNOT_DELETE_SELF) -> None:
    """Refuse operations an account may not perform on itself."""
    if actor_id == target_id:
        raise bad_request(message)


def ensure_target_not_admin(
    db: Session,
    target_id: str,
    message: str = CANNOT_DELETE_ADMIN,
) -> Account | None:
    """
    Refuse to act on another admin. Returns the target account (None if it has none).

    If the target's role cannot be read the request is refused.
    """
    try:
        target = find_account(db, target_id)
    except SQLAlchemyError:
        logger.exception("Could not read target account role")
        raise server_error("Không thể kiểm tra quyền của người dùng cần xóa")
    if target is not None and target.role == ADMIN_ROLE:
        raise bad_request(message)
    return target
