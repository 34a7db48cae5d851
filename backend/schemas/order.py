from decimal import Decimal
from pydantic import EmailStr, Field
from typing import List, Optional
from datetime import datetime

from models.order import OrderStatus
from schemas.common import ORMBase, Pagination
from schemas.cart import FurnitureBrief
from schemas.user import UserSummary


# A requested (furniture, quantity) pair
class OrderLineIn(ORMBase):
    furniture_id: int = Field(gt=0)
    quantity: int = Field(gt=0)


class GuestInfo(ORMBase):
    email: EmailStr
    name: Optional[str] = None


# Input schema for the generic order creation endpoint
class OrderCreatePayload(ORMBase):
    items: List[OrderLineIn] = Field(min_length=1)
    guest_info: Optional[GuestInfo] = None


# Checkout body; without items the current cart is used
class CheckoutPayload(ORMBase):
    items: Optional[List[OrderLineIn]] = None


# Output schema for an individual order line item
class OrderItemOut(ORMBase):
    id: int
    furniture_id: int
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    furniture: Optional[FurnitureBrief] = None


# Output schema representing the full order details
class OrderResponse(ORMBase):
    id: int
    user_id: Optional[int] = None
    status: OrderStatus
    total_amount: Decimal
    created_at: Optional[datetime] = None
    guest_email: Optional[str] = None
    guest_name: Optional[str] = None
    user: Optional[UserSummary] = None
    items: List[OrderItemOut]


# Schema for paginated order lists
class OrdersPage(ORMBase):
    orders: List[OrderResponse]
    pagination: Pagination


# Schema for updating order status
class OrderStatusPatch(ORMBase):
    status: OrderStatus
