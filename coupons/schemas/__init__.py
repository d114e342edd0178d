from coupons.schemas.coupon import CouponCreate, CouponResponse, CouponUpdate
from coupons.schemas.coupon_history import CouponHistoryListOptions, CouponHistoryResponse
from coupons.schemas.order import DiscountApplication, OrderContext

__all__ = [
    "CouponCreate",
    "CouponHistoryListOptions",
    "CouponHistoryResponse",
    "CouponResponse",
    "CouponUpdate",
    "DiscountApplication",
    "OrderContext",
]
