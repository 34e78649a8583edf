"""
Pydantic Schemas for Order Request/Response Validation

Required-field checks live in the routes so that missing fields and
malformed fields produce different error envelopes.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Any
from datetime import datetime

from restaurant_services.orders.models import OrderStatus


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class OrderCreate(BaseModel):
    """Request schema for creating a new order."""
    user_id: Optional[str] = Field(None, max_length=255, examples=["user123"])
    items: Optional[List[Any]] = Field(
        None,
        examples=[[{"id": 1, "name": "X-Burger Clássico", "price": 18.90, "quantity": 2}]],
    )
    total: Optional[float] = Field(None, allow_inf_nan=False, examples=[37.80])

    def missing_fields(self) -> list[str]:
        """Names of required fields that were not supplied."""
        missing = []
        if not self.user_id:
            missing.append("user_id")
        if self.items is None:
            missing.append("items")
        if self.total is None:
            missing.append("total")
        return missing


class OrderUpdate(BaseModel):
    """Mutable order fields; anything left out is kept as is."""
    status: Optional[OrderStatus] = Field(None, examples=["preparing"])
    items: Optional[List[Any]] = None
    total: Optional[float] = Field(None, allow_inf_nan=False)

    def has_changes(self) -> bool:
        return any(v is not None for v in (self.status, self.items, self.total))


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class OrderResponse(BaseModel):
    """Response schema for a single order."""
    id: int
    user_id: str
    items: List[Any]
    total: float
    status: OrderStatus
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class OrderListResponse(BaseModel):
    """Response for listing multiple orders."""
    success: bool = True
    orders: List[OrderResponse]
    count: int


class OrderDetailResponse(BaseModel):
    success: bool = True
    order: OrderResponse


class OrderMutationResponse(BaseModel):
    """Response after creating or updating an order."""
    success: bool = True
    order: OrderResponse
    message: str


class MessageResponse(BaseModel):
    success: bool = True
    message: str
