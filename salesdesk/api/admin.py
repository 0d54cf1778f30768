"""Admin account management: list, create, delete and re-role users (admin only)."""

import logging
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.api.deps import get_current_session, get_identity_transport, require_admin
from salesdesk.core.config import Settings, get_settings
from salesdesk.core.database import atomic, get_db
from salesdesk.core.errors import bad_request, is_blank, not_found, server_error
from salesdesk.core.permissions import (
    ensure_not_self,
    ensure_target_not_admin,
    require_role,
)
from salesdesk.models import Account, UserProfile
from salesdesk.schemas.admin import (
    AccountListItem,
    AccountOut,
    AccountsListResponse,
    ChangeRoleRequest,
    CreatedUser,
    CreateUserRequest,
    CreateUserResponse,
    DeleteUserRequest,
    DeleteUserResponse,
)
from salesdesk.services.accounts import (
    STATUS_ACTIVE,
    create_account_records,
    find_profile_by_phone,
    remove_account_records,
)
from salesdesk.services.identity import (
    IdentityError,
    IdentityNotConfiguredError,
    IdentitySession,
    create_admin_client,
)

logger = logging.getLogger(__name__)
router = APIRouter()

DELETE_ADMIN_ONLY = "Không có quyền truy cập: Chỉ admin mới có thể xóa người dùng"
ADMIN_NOT_CONFIGURED = "Server chưa được cấu hình cho thao tác quản trị"


@router.get("/users", response_model=AccountsListResponse)
def list_users(
    _admin: Annotated[Account, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> AccountsListResponse:
    """Accounts joined with their profiles, oldest first."""
    try:
        rows = (
            db.query(Account, UserProfile)
            .outerjoin(UserProfile, UserProfile.user_id == Account.user_id)
            .order_by(Account.account_id)
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Listing accounts failed")
        raise server_error("Lỗi khi tải danh sách người dùng") from e

    users = [
        AccountListItem(
            user_id=account.user_id,
            username=account.username,
            role=account.role,
            status=account.status,
            last_login=account.last_login,
            email=profile.email if profile else None,
            full_name=profile.full_name if profile else None,
            phone=profile.phone if profile else None,
        )
        for account, profile in rows
    ]
    return AccountsListResponse(users=users, count=len(users))


@router.post("/create-user", response_model=CreateUserResponse)
async def create_user(
    body: CreateUserRequest,
    _admin: Annotated[Account, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    transport: Annotated[httpx.AsyncBaseTransport | None, Depends(get_identity_transport)],
) -> CreateUserResponse:
    """
    Create a confirmed login plus its profile and account rows.

    The user must change the password at first sign-in. If the rows cannot be
    written the login is deleted again so no half-created user is left behind.
    """
    if (
        is_blank(body.email)
        or is_blank(body.password)
        or is_blank(body.full_name)
        or is_blank(body.role)
    ):
        raise bad_request("Thiếu thông tin bắt buộc")
    email = body.email.strip()
    phone = body.phone.strip() if body.phone and body.phone.strip() else None

    if phone:
        try:
            existing = find_profile_by_phone(db, phone)
        except SQLAlchemyError as e:
            logger.exception("Phone lookup failed")
            raise server_error("Lỗi khi kiểm tra số điện thoại") from e
        if existing is not None:
            raise bad_request(
                f"Số điện thoại {phone} đã được sử dụng bởi người dùng khác ({existing.full_name})"
            )

    try:
        admin_client = create_admin_client(settings, transport)
    except IdentityNotConfiguredError as e:
        logger.error("Admin identity client unavailable", extra={"reason": e.message})
        raise server_error(ADMIN_NOT_CONFIGURED) from e

    try:
        user = await admin_client.admin_create_user(
            email,
            body.password,
            user_metadata={
                "full_name": body.full_name,
                "phone": phone,
                "role": body.role,
                "require_password_change": True,
            },
        )
    except IdentityError as e:
        if e.is_client_error:
            raise bad_request(e.message) from e
        raise server_error("Lỗi khi tạo người dùng") from e

    try:
        create_account_records(
            db,
            user_id=user.id,
            email=email,
            full_name=body.full_name,
            role=body.role.strip(),
            status=STATUS_ACTIVE,
            phone=phone,
        )
    except SQLAlchemyError as e:
        logger.exception("Account rows not written; removing login", extra={"user_id": user.id})
        try:
            await admin_client.admin_delete_user(user.id)
        except IdentityError:
            logger.exception("Could not remove orphaned login", extra={"user_id": user.id})
        raise server_error("Không thể tạo người dùng") from e

    logger.info("User created by admin", extra={"user_id": user.id, "role": body.role})
    return CreateUserResponse(
        user=CreatedUser(id=user.id, email=email, full_name=body.full_name)
    )


async def _delete_login(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None,
    user_id: str,
) -> bool:
    """Remove the identity user; False (logged) when that is not possible."""
    try:
        admin_client = create_admin_client(settings, transport)
    except IdentityNotConfiguredError as e:
        logger.warning("Login not deleted", extra={"user_id": user_id, "reason": e.message})
        return False
    try:
        await admin_client.admin_delete_user(user_id)
    except IdentityError as e:
        if e.status_code == 404:
            return True
        logger.error(
            "Login not deleted",
            extra={"user_id": user_id, "status_code": e.status_code, "reason": e.message[:200]},
        )
        return False
    return True


@router.post("/users/delete", response_model=DeleteUserResponse)
async def delete_user(
    body: DeleteUserRequest,
    session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    transport: Annotated[httpx.AsyncBaseTransport | None, Depends(get_identity_transport)],
) -> DeleteUserResponse:
    """
    Delete another user's account (admin only).

    Checks run in order and the first failure answers: not signed in (401),
    missing userId (400), deleting yourself (400), caller not admin (403),
    target is an admin (400).
    """
    target_id = body.user_id
    if is_blank(target_id):
        raise bad_request("User ID không được để trống")
    actor_id = session.user.id
    ensure_not_self(actor_id, target_id)
    require_role(db, actor_id, denied_message=DELETE_ADMIN_ONLY)
    ensure_target_not_admin(db, target_id)

    try:
        display_name = remove_account_records(db, target_id)
    except SQLAlchemyError as e:
        logger.exception("Account removal failed", extra={"user_id": target_id})
        raise server_error("Không thể xóa người dùng") from e

    identity_deleted = await _delete_login(settings, transport, target_id)
    logger.info(
        "Account deleted",
        extra={"actor_id": actor_id, "user_id": target_id, "identity_deleted": identity_deleted},
    )
    return DeleteUserResponse(
        message=f"Đã xóa tài khoản của {display_name} thành công",
        identity_deleted=identity_deleted,
    )


@router.patch("/users/{user_id}/role", response_model=AccountOut)
def change_role(
    user_id: str,
    body: ChangeRoleRequest,
    admin: Annotated[Account, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> Account:
    """Give another non-admin account a new role."""
    if is_blank(body.role):
        raise bad_request("Vai trò là bắt buộc")
    ensure_not_self(admin.user_id, user_id, "Không thể thay đổi quyền của chính mình")
    target = ensure_target_not_admin(db, user_id, "Không thể thay đổi quyền của admin khác")
    if target is None:
        raise not_found("Không tìm thấy tài khoản")

    try:
        with atomic(db):
            target.role = body.role.strip()
    except SQLAlchemyError as e:
        logger.exception("Role change failed", extra={"user_id": user_id})
        raise server_error("Không thể cập nhật quyền") from e

    db.refresh(target)
    logger.info(
        "Role changed",
        extra={"actor_id": admin.user_id, "user_id": user_id, "role": target.role},
    )
    return target
