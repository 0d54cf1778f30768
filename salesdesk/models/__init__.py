"""SQLAlchemy ORM models."""

from salesdesk.models.account import Account, UserProfile
from salesdesk.models.base import Base
from salesdesk.models.branch import Branch
from salesdesk.models.category import Category
from salesdesk.models.chat import ChatConversation, ChatParticipant
from salesdesk.models.customer import Customer
from salesdesk.models.order import Order, OrderDetail
from salesdesk.models.payment import PaymentMethod
from salesdesk.models.product import Product
from salesdesk.models.returns import ReturnRequest
from salesdesk.models.shipping import Shipping

__all__ = [
    "Account",
    "Base",
    "Branch",
    "Category",
    "ChatConversation",
    "ChatParticipant",
    "Customer",
    "Order",
    "OrderDetail",
    "PaymentMethod",
    "Product",
    "ReturnRequest",
    "Shipping",
    "UserProfile",
]
