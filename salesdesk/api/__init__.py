"""API routes, mounted under settings.API_PREFIX."""

from fastapi import APIRouter

from salesdesk.api import (
    admin,
    auth,
    branches,
    categories,
    chat,
    customers,
    health,
    orders,
    payments,
    products,
    returns,
    shippings,
)

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
router.include_router(categories.router, prefix="/categories", tags=["categories"])
router.include_router(products.router, prefix="/products", tags=["products"])
router.include_router(customers.router, prefix="/customers", tags=["customers"])
router.include_router(returns.router, prefix="/partners/returns", tags=["returns"])
router.include_router(chat.router, prefix="/chat", tags=["chat"])
router.include_router(orders.router, prefix="/orders", tags=["orders"])
router.include_router(branches.router, prefix="/branches", tags=["branches"])
router.include_router(payments.router, prefix="/payments", tags=["payments"])
router.include_router(shippings.router, prefix="/shippings", tags=["shippings"])
