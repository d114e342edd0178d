"""Order context supplied by the order-processing collaborator."""

from datetime import datetime
from decimal import Decimal
from typing import Self
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from coupons.models.coupon import OrderType


class OrderContext(BaseModel):
    order_id: UUID
    customer_id: UUID | None = None
    order_type: OrderType | str | None = None
    order_datetime: datetime | None = None
    total: Decimal = Field(default=Decimal("0"), ge=0)
    location_id: UUID | None = None


class DiscountApplication(BaseModel):
    """A coupon applied to a cart, with the discount already computed upstream.

    The coupon is referenced by id or by code.
    """

    coupon_id: UUID | None = None
    coupon_code: str | None = None
    value: Decimal = Field(default=Decimal("0"), ge=0)

    @model_validator(mode="after")
    def validate_coupon_reference(self) -> Self:
        """Validate at least one coupon reference is given."""
        if self.coupon_id is None and not self.coupon_code:
            msg = "coupon_id or coupon_code is required"
            raise ValueError(msg)
        return self
