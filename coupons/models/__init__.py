from coupons.models.coupon import (
    Coupon,
    CouponCategory,
    CouponMenu,
    CouponType,
    CouponValidity,
    OrderType,
    Weekday,
)
from coupons.models.coupon_history import CouponHistory
from coupons.models.locationable import Locationable

__all__ = [
    "Coupon",
    "CouponCategory",
    "CouponHistory",
    "CouponMenu",
    "CouponType",
    "CouponValidity",
    "Locationable",
    "OrderType",
    "Weekday",
]
