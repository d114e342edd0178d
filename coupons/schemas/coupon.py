"""Coupon schemas."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from coupons.models.coupon import CouponType, CouponValidity, OrderType, Weekday

# Fields each validity mode needs; fields of other modes are ignored
VALIDITY_REQUIRED_FIELDS: dict[CouponValidity, tuple[str, ...]] = {
    CouponValidity.FOREVER: (),
    CouponValidity.FIXED: ("fixed_date", "fixed_from_time", "fixed_to_time"),
    CouponValidity.PERIOD: ("period_start_date", "period_end_date"),
    CouponValidity.RECURRING: ("recurring_from_time", "recurring_to_time"),
}


class CouponCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    coupon_type: CouponType
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    min_total: Decimal = Field(default=Decimal("0"), ge=0)
    redemptions: int | None = Field(default=None, ge=0)
    customer_redemptions: int | None = Field(default=None, ge=0)

    validity: CouponValidity = CouponValidity.FOREVER
    fixed_date: date | None = None
    fixed_from_time: time | None = None
    fixed_to_time: time | None = None
    period_start_date: date | None = None
    period_end_date: date | None = None
    recurring_every: set[Weekday] = Field(default_factory=set)
    recurring_from_time: time | None = None
    recurring_to_time: time | None = None

    order_restriction: set[OrderType] = Field(default_factory=set)
    auto_apply: bool = False
    status: bool = True

    category_ids: list[UUID] = Field(default_factory=list)
    menu_ids: list[UUID] = Field(default_factory=list)
    location_ids: list[UUID] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_validity_fields(self) -> Self:
        """Validate the fields of the selected validity mode are populated."""
        missing = [
            field for field in VALIDITY_REQUIRED_FIELDS[self.validity] if getattr(self, field) is None
        ]
        if missing:
            msg = f"{', '.join(missing)} required for validity '{self.validity.value}'"
            raise ValueError(msg)
        return self

    @model_validator(mode="after")
    def validate_percentage_discount(self) -> Self:
        """Validate percentage discounts do not exceed 100."""
        if self.coupon_type == CouponType.PERCENTAGE and self.discount > 100:
            msg = "discount must be at most 100 for percentage coupons"
            raise ValueError(msg)
        return self


class CouponUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    discount: Decimal | None = Field(default=None, ge=0)
    min_total: Decimal | None = Field(default=None, ge=0)
    redemptions: int | None = Field(default=None, ge=0)
    customer_redemptions: int | None = Field(default=None, ge=0)

    validity: CouponValidity | None = None
    fixed_date: date | None = None
    fixed_from_time: time | None = None
    fixed_to_time: time | None = None
    period_start_date: date | None = None
    period_end_date: date | None = None
    recurring_every: set[Weekday] | None = None
    recurring_from_time: time | None = None
    recurring_to_time: time | None = None

    order_restriction: set[OrderType] | None = None
    auto_apply: bool | None = None
    status: bool | None = None


class CouponResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    name: str
    description: str | None = None
    coupon_type: str
    discount: Decimal
    min_total: Decimal
    redemptions: int | None = None
    customer_redemptions: int | None = None
    validity: str
    fixed_date: date | None = None
    fixed_from_time: time | None = None
    fixed_to_time: time | None = None
    period_start_date: date | None = None
    period_end_date: date | None = None
    recurring_every: int | None = None
    recurring_from_time: time | None = None
    recurring_to_time: time | None = None
    order_restriction: list[str]
    auto_apply: bool
    status: bool
    created_at: datetime | None = None
