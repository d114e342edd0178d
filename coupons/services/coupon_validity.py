"""Time-window, restriction and display rules for coupons.

Everything here is a pure function of a coupon-like object and its inputs;
nothing touches the database.
"""

from datetime import datetime, time
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from coupons.models.coupon import CouponType, CouponValidity, Weekday, weekdays_from_mask
from coupons.models.shared import utc_now


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _plain(value: Decimal) -> str:
    """Render a decimal without exponent or trailing zeros."""
    return format(Decimal(value).normalize(), "f")


def _within_time(moment: time, start: time, end: time) -> bool:
    return start <= moment <= end


def is_expired(coupon: Any, reference: datetime | None = None) -> bool:
    """Check whether a coupon's validity window excludes a moment.

    Args:
        coupon: The coupon to check.
        reference: The order date-time. Defaults to now (UTC).

    Returns:
        True if the coupon cannot be used at ``reference``.
    """
    if reference is None:
        reference = utc_now()

    validity = _enum_value(coupon.validity)

    if validity == CouponValidity.FOREVER.value:
        return False

    if validity == CouponValidity.FIXED.value:
        start = datetime.combine(coupon.fixed_date, coupon.fixed_from_time, tzinfo=reference.tzinfo)
        end = datetime.combine(coupon.fixed_date, coupon.fixed_to_time, tzinfo=reference.tzinfo)
        return not start <= reference <= end

    if validity == CouponValidity.PERIOD.value:
        return not coupon.period_start_date <= reference.date() <= coupon.period_end_date

    if validity == CouponValidity.RECURRING.value:
        weekday = Weekday.from_python_weekday(reference.weekday())
        if weekday not in weekdays_from_mask(coupon.recurring_every):
            return True
        return not _within_time(
            reference.time(), coupon.recurring_from_time, coupon.recurring_to_time
        )

    return False


def has_restriction(coupon: Any, order_type: Any) -> bool:
    """Check whether a coupon's order-type restriction excludes an order type."""
    allowed = {_enum_value(item) for item in coupon.order_restriction or ()}
    if not allowed:
        return False
    return _enum_value(order_type) not in allowed


def max_redemption_reached(cap: int | None, count: int) -> bool:
    """Global cap check: a cap equal to the count is already reached."""
    return bool(cap) and cap <= count  # type: ignore[operator]


def customer_max_redemption_reached(cap: int | None, count: int) -> bool:
    """Per-customer cap check: only a count above the cap is reached."""
    return bool(cap) and cap < count  # type: ignore[operator]


def is_fixed(coupon: Any) -> bool:
    return _enum_value(coupon.coupon_type) == CouponType.FIXED_AMOUNT.value


def minimum_order_total(coupon: Any) -> Decimal:
    return Decimal(coupon.min_total or 0)


def type_name(coupon: Any) -> str:
    return "Fixed Amount" if is_fixed(coupon) else "Percentage"


def formatted_discount(coupon: Any) -> str:
    """Render a coupon's discount, e.g. "15%" or "1,250.00"."""
    discount = Decimal(coupon.discount or 0)
    if is_fixed(coupon):
        return f"{discount:,.2f}"
    rounded = discount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{rounded}%"


def discount_with_operand(coupon: Any) -> str:
    """Render a coupon's discount as a negative line-item adjustment."""
    discount = _plain(Decimal(coupon.discount or 0))
    if is_fixed(coupon):
        return f"-{discount}"
    return f"-{discount}%"
