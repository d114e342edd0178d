"""Coupon model for order discounts."""

from collections.abc import Iterable
from enum import Enum, IntEnum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    func,
)

from coupons.core.database import Base
from coupons.models.shared import UUIDType, ValueSet, generate_uuid


class CouponType(str, Enum):
    FIXED_AMOUNT = "fixed_amount"
    PERCENTAGE = "percentage"


class CouponValidity(str, Enum):
    FOREVER = "forever"
    FIXED = "fixed"
    PERIOD = "period"
    RECURRING = "recurring"


class OrderType(str, Enum):
    DELIVERY = "delivery"
    COLLECTION = "collection"


class Weekday(IntEnum):
    """Day numbering used by recurring coupons (0 = Sunday)."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def from_python_weekday(cls, weekday: int) -> "Weekday":
        """Convert ``date.weekday()`` (0 = Monday) to this numbering."""
        return cls((weekday + 1) % 7)


ALL_WEEKDAYS = frozenset(Weekday)


def weekday_mask(days: Iterable[int]) -> int:
    """Pack weekdays into the 7-bit ``recurring_every`` mask."""
    mask = 0
    for day in days:
        mask |= 1 << Weekday(day)
    return mask


def weekdays_from_mask(mask: int | None) -> frozenset[Weekday]:
    """Unpack a ``recurring_every`` mask. An empty mask means every day."""
    if not mask:
        return ALL_WEEKDAYS
    return frozenset(day for day in Weekday if mask & (1 << day))


class Coupon(Base):
    """Coupon model for order discounts."""

    __tablename__ = "coupons"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    code = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    coupon_type = Column(String(20), nullable=False)
    discount = Column(Numeric(12, 4), nullable=False, default=0)
    min_total = Column(Numeric(12, 4), nullable=False, default=0)

    # Zero or NULL means unlimited
    redemptions = Column(Integer, nullable=True)
    customer_redemptions = Column(Integer, nullable=True)

    validity = Column(String(20), nullable=False, default=CouponValidity.FOREVER.value)
    fixed_date = Column(Date, nullable=True)
    fixed_from_time = Column(Time, nullable=True)
    fixed_to_time = Column(Time, nullable=True)
    period_start_date = Column(Date, nullable=True)
    period_end_date = Column(Date, nullable=True)
    recurring_every = Column(Integer, nullable=True)
    recurring_from_time = Column(Time, nullable=True)
    recurring_to_time = Column(Time, nullable=True)

    # Order types the coupon is limited to; empty means any
    order_restriction = Column(ValueSet, nullable=False, default=list)

    auto_apply = Column(Boolean, nullable=False, default=False)
    status = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class CouponCategory(Base):
    """Join table linking coupons to menu categories."""

    __tablename__ = "coupon_categories"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    coupon_id = Column(
        UUIDType,
        ForeignKey("coupons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category_id = Column(UUIDType, nullable=False, index=True)


class CouponMenu(Base):
    """Join table linking coupons to menu items."""

    __tablename__ = "coupon_menus"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    coupon_id = Column(
        UUIDType,
        ForeignKey("coupons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    menu_id = Column(UUIDType, nullable=False, index=True)
