"""Products: list, read, create, replace (signed in) and delete (admin only)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.api.deps import get_current_session, require_admin
from salesdesk.core.database import atomic, get_db
from salesdesk.core.errors import bad_request, is_blank, not_found, server_error
from salesdesk.models import Account, Category, Product
from salesdesk.schemas.product import ProductOut, ProductPayload, ProductsListResponse
from salesdesk.services.identity import IdentitySession
from salesdesk.services.orders import to_money

logger = logging.getLogger(__name__)
router = APIRouter()

PRODUCT_NOT_FOUND = "Không tìm thấy sản phẩm"
CATEGORY_NOT_FOUND = "Danh mục không tồn tại"


def _get_product(db: Session, product_id: int) -> Product:
    try:
        product = db.get(Product, product_id)
    except SQLAlchemyError as e:
        logger.exception("Product lookup failed", extra={"product_id": product_id})
        raise server_error("Lỗi khi tải sản phẩm") from e
    if product is None:
        raise not_found(PRODUCT_NOT_FOUND)
    return product


def _apply_payload(db: Session, product: Product, body: ProductPayload) -> None:
    """Validate the body and copy it onto ``product``; raises 400 on bad input."""
    if is_blank(body.product_name) or body.price is None:
        raise bad_request("Tên sản phẩm và giá là bắt buộc")
    if body.price < 0:
        raise bad_request("Giá sản phẩm không được âm")
    if body.stock_quantity is not None and body.stock_quantity < 0:
        raise bad_request("Số lượng tồn kho không được âm")
    if body.category_id is not None and db.get(Category, body.category_id) is None:
        raise bad_request(CATEGORY_NOT_FOUND)

    product.product_name = body.product_name.strip()
    product.category_id = body.category_id
    product.description = body.description
    product.color = body.color
    product.size = body.size
    product.price = to_money(body.price)
    product.stock_quantity = body.stock_quantity or 0
    product.image = body.image or None


@router.get("", response_model=ProductsListResponse)
def list_products(
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
    category_id: Annotated[int | None, Query()] = None,
    search: Annotated[str | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> ProductsListResponse:
    """Newest products first, optionally within one category or matching a name fragment."""
    try:
        query = db.query(Product)
        if category_id is not None:
            query = query.filter(Product.category_id == category_id)
        if search and search.strip():
            query = query.filter(Product.product_name.ilike(f"%{search.strip()}%"))
        rows = query.order_by(Product.product_id.desc()).limit(limit).all()
    except SQLAlchemyError as e:
        logger.exception("Listing products failed")
        raise server_error("Lỗi khi tải danh sách sản phẩm") from e
    return ProductsListResponse(
        data=[ProductOut.model_validate(p) for p in rows],
        count=len(rows),
    )


@router.get("/{product_id}", response_model=ProductOut)
def get_product(
    product_id: int,
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Product:
    return _get_product(db, product_id)


@router.post("", response_model=ProductOut)
def create_product(
    body: ProductPayload,
    session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Product:
    product = Product()
    try:
        with atomic(db):
            _apply_payload(db, product, body)
            db.add(product)
    except SQLAlchemyError as e:
        logger.exception("Product insert failed")
        raise server_error("Có lỗi xảy ra khi thêm sản phẩm") from e

    db.refresh(product)
    logger.info(
        "Product created",
        extra={"product_id": product.product_id, "user_id": session.user.id},
    )
    return product


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    body: ProductPayload,
    _session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Product:
    product = _get_product(db, product_id)
    try:
        with atomic(db):
            _apply_payload(db, product, body)
    except SQLAlchemyError as e:
        logger.exception("Product update failed", extra={"product_id": product_id})
        raise server_error("Có lỗi xảy ra khi cập nhật sản phẩm") from e

    db.refresh(product)
    return product


@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    admin: Annotated[Account, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, bool | str]:
    product = _get_product(db, product_id)
    try:
        with atomic(db):
            db.delete(product)
    except SQLAlchemyError as e:
        logger.exception("Product delete failed", extra={"product_id": product_id})
        raise server_error("Có lỗi xảy ra khi xóa sản phẩm") from e

    logger.info(
        "Product deleted",
        extra={"product_id": product_id, "actor_id": admin.user_id},
    )
    return {"success": True, "message": "Đã xóa sản phẩm"}
