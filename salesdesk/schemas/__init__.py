"""Pydantic request/response schemas."""

from salesdesk.schemas.category import CategoryOut, CategoryPayload
from salesdesk.schemas.chat import ConversationOut, CreateConversationRequest
from salesdesk.schemas.customer import CustomerOut, CustomerPayload
from salesdesk.schemas.health import HealthResponse
from salesdesk.schemas.order import OrderCreateRequest, OrderOut
from salesdesk.schemas.product import ProductOut, ProductPayload
from salesdesk.schemas.returns import ReturnCreateRequest, ReturnOut
from salesdesk.schemas.shipping import ShippingCreateRequest, ShippingOut

__all__ = [
    "CategoryOut",
    "CategoryPayload",
    "ConversationOut",
    "CreateConversationRequest",
    "CustomerOut",
    "CustomerPayload",
    "HealthResponse",
    "OrderCreateRequest",
    "OrderOut",
    "ProductOut",
    "ProductPayload",
    "ReturnCreateRequest",
    "ReturnOut",
    "ShippingCreateRequest",
    "ShippingOut",
]
