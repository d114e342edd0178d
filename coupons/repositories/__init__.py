from coupons.repositories.coupon_history_repository import CouponHistoryRepository
from coupons.repositories.coupon_repository import CouponRepository
from coupons.repositories.locationable_repository import LocationableRepository

__all__ = [
    "CouponHistoryRepository",
    "CouponRepository",
    "LocationableRepository",
]
