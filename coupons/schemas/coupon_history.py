"""CouponHistory schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CouponHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    coupon_id: UUID
    order_id: UUID
    customer_id: UUID | None = None
    code: str
    amount: Decimal
    min_total: Decimal
    status: bool
    created_at: datetime


class CouponHistoryListOptions(BaseModel):
    """Filters and paging for customer-facing redemption listings."""

    page: int = Field(default=1, ge=1)
    page_limit: int | None = Field(default=None, ge=1)
    customer_id: UUID | None = None
    order_id: UUID | None = None
    sort: str | list[str] | None = None
