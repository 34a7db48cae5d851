from decimal import Decimal
from pydantic import Field
from typing import List, Optional

from schemas.common import ORMBase
from schemas.furniture import CategoryRef, ImageOut

# Request schema for adding an item to the cart
class CartAddItem(ORMBase):
    furniture_id: int = Field(gt=0)
    quantity: int = Field(default=1, gt=0)

# Request schema for updating cart item quantity
class CartUpdateItem(ORMBase):
    cart_item_id: int = Field(gt=0)
    quantity: int = Field(gt=0)

# Furniture as embedded in cart and order lines
class FurnitureBrief(ORMBase):
    id: int
    name: str
    price: Decimal
    sku: Optional[str] = None
    category: Optional[CategoryRef] = None
    images: List[ImageOut] = []

# Response schema for a single cart line item
class CartItemOut(ORMBase):
    id: int
    cart_id: int
    furniture_id: int
    quantity: int
    line_total: Decimal
    furniture: Optional[FurnitureBrief] = None

# Response schema for the entire cart summary
class CartOut(ORMBase):
    id: int
    user_id: int
    items: List[CartItemOut]
    total: Decimal

class CartCleared(ORMBase):
    message: str
    deleted_count: int
