"""Product categories: list, create, update (signed in) and delete (admin only)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.api.deps import get_current_session, require_admin
from salesdesk.core.database import atomic, get_db
from salesdesk.core.errors import bad_request, is_blank, not_found, server_error
from salesdesk.models import Account, Category
from salesdesk.schemas.category import CategoryOut, CategoryPayload
from salesdesk.services.identity import IdentitySession

logger = logging.getLogger(__name__)
router = APIRouter()

REQUIRED_FIELDS = "Tên danh mục và mục mô tả là bắt buộc"
DUPLICATE_NAME = "Tên danh mục đã tồn tại"
CATEGORY_NOT_FOUND = "Không tìm thấy danh mục"


def _get_category(db: Session, category_id: int) -> Category:
    try:
        category = db.get(Category, category_id)
    except SQLAlchemyError as e:
        logger.exception("Category lookup failed", extra={"category_id": category_id})
        raise server_error("Lỗi máy chủ khi tải danh mục sản phẩm") from e
    if category is None:
        raise not_found(CATEGORY_NOT_FOUND)
    return category


@router.get("", response_model=list[CategoryOut])
def list_categories(
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> list[Category]:
    try:
        return db.query(Category).order_by(Category.category_id).all()
    except SQLAlchemyError as e:
        logger.exception("Listing categories failed")
        raise server_error("Lỗi máy chủ khi tải danh mục sản phẩm") from e


@router.post("", response_model=CategoryOut)
def create_category(
    body: CategoryPayload,
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Category:
    """Insert a category; name and description must be non-empty."""
    if is_blank(body.name_category) or is_blank(body.description_category):
        raise bad_request(REQUIRED_FIELDS)

    category = Category(
        name_category=body.name_category.strip(),
        description_category=body.description_category.strip(),
        image_category=body.image_category or None,
    )
    try:
        with atomic(db):
            db.add(category)
    except IntegrityError as e:
        raise bad_request(DUPLICATE_NAME) from e
    except SQLAlchemyError as e:
        logger.exception("Category insert failed")
        raise server_error("Lỗi máy chủ khi thêm danh mục sản phẩm") from e

    db.refresh(category)
    logger.info("Category created", extra={"category_id": category.category_id})
    return category


@router.put("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    body: CategoryPayload,
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Category:
    """Replace name, description and image; name and description stay required."""
    if is_blank(body.name_category) or is_blank(body.description_category):
        raise bad_request(REQUIRED_FIELDS)
    category = _get_category(db, category_id)

    try:
        with atomic(db):
            category.name_category = body.name_category.strip()
            category.description_category = body.description_category.strip()
            category.image_category = body.image_category or None
    except IntegrityError as e:
        raise bad_request(DUPLICATE_NAME) from e
    except SQLAlchemyError as e:
        logger.exception("Category update failed", extra={"category_id": category_id})
        raise server_error("Lỗi máy chủ khi cập nhật danh mục sản phẩm") from e

    db.refresh(category)
    return category


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    admin: Annotated[Account, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, bool | str]:
    category = _get_category(db, category_id)
    try:
        with atomic(db):
            db.delete(category)
    except SQLAlchemyError as e:
        logger.exception("Category delete failed", extra={"category_id": category_id})
        raise server_error("Lỗi máy chủ khi xóa danh mục sản phẩm") from e

    logger.info(
        "Category deleted",
        extra={"category_id": category_id, "actor_id": admin.user_id},
    )
    return {"success": True, "message": "Đã xóa danh mục"}
