"""Coupon eligibility checks against orders, locations and redemption caps."""

from enum import Enum
from uuid import UUID

from sqlalchemy.orm import Session

from coupons.core.errors import CouponNotFoundError
from coupons.models.coupon import Coupon
from coupons.repositories.coupon_repository import CouponRepository
from coupons.schemas.order import OrderContext
from coupons.services.coupon_validity import (
    customer_max_redemption_reached,
    has_restriction,
    is_expired,
    max_redemption_reached,
    minimum_order_total,
)
from coupons.services.redemption_ledger import RedemptionLedger


class CouponIneligibility(str, Enum):
    """Why a coupon cannot be applied to an order."""

    DISABLED = "disabled"
    EXPIRED = "expired"
    BELOW_MINIMUM_TOTAL = "below_minimum_total"
    ORDER_TYPE_RESTRICTED = "order_type_restricted"
    LOCATION_RESTRICTED = "location_restricted"
    MAX_REDEMPTIONS_REACHED = "max_redemptions_reached"
    CUSTOMER_MAX_REDEMPTIONS_REACHED = "customer_max_redemptions_reached"


class CouponEligibilityService:
    """Service answering whether a coupon may be used for an order."""

    def __init__(self, db: Session, ledger: RedemptionLedger | None = None):
        self.db = db
        self.coupon_repo = CouponRepository(db)
        self.ledger = ledger or RedemptionLedger(db)

    def get_by_code(self, code: str) -> Coupon | None:
        """Get the enabled coupon with an exact code, or None."""
        return self.coupon_repo.get_by_code(code)

    def lookup(self, code: str) -> Coupon:
        """Get the enabled coupon with an exact code.

        Raises:
            CouponNotFoundError: If no enabled coupon has this code.
        """
        coupon = self.coupon_repo.get_by_code(code)
        if not coupon:
            raise CouponNotFoundError(code)
        return coupon

    def has_location_restriction(self, coupon: Coupon, location_id: UUID | None) -> bool:
        """Check whether a coupon's locations exclude a location.

        A coupon without locations is available everywhere.
        """
        locations = self.coupon_repo.locations
        if not locations.has_any(coupon.id):  # type: ignore[arg-type]
            return False
        if location_id is None:
            return True
        return not locations.is_linked(coupon.id, location_id)  # type: ignore[arg-type]

    def has_reached_max_redemption(self, coupon: Coupon) -> bool:
        """Check the global redemption cap against enabled redemptions."""
        if not coupon.redemptions:
            return False
        count = self.ledger.count_redemptions(coupon)
        return max_redemption_reached(coupon.redemptions, count)  # type: ignore[arg-type]

    def customer_has_max_redemption(self, coupon: Coupon, customer_id: UUID | None) -> bool:
        """Check the per-customer redemption cap against enabled redemptions.

        Guests (no customer) are not subject to the per-customer cap.
        """
        if customer_id is None or not coupon.customer_redemptions:
            return False
        count = self.ledger.count_customer_redemptions(coupon, customer_id)
        return customer_max_redemption_reached(
            coupon.customer_redemptions,  # type: ignore[arg-type]
            count,
        )

    def check(self, coupon: Coupon, order: OrderContext) -> CouponIneligibility | None:
        """Run every eligibility rule for an order, cheapest first.

        Returns:
            The first rule the coupon fails, or None if it can be applied.
        """
        if not coupon.status:
            return CouponIneligibility.DISABLED
        if is_expired(coupon, order.order_datetime):
            return CouponIneligibility.EXPIRED
        if order.total < minimum_order_total(coupon):
            return CouponIneligibility.BELOW_MINIMUM_TOTAL
        if has_restriction(coupon, order.order_type):
            return CouponIneligibility.ORDER_TYPE_RESTRICTED
        if self.has_location_restriction(coupon, order.location_id):
            return CouponIneligibility.LOCATION_RESTRICTED
        if self.has_reached_max_redemption(coupon):
            return CouponIneligibility.MAX_REDEMPTIONS_REACHED
        if self.customer_has_max_redemption(coupon, order.customer_id):
            return CouponIneligibility.CUSTOMER_MAX_REDEMPTIONS_REACHED
        return None

    def is_eligible(self, coupon: Coupon, order: OrderContext) -> bool:
        return self.check(coupon, order) is None

    def auto_applicable(self, order: OrderContext) -> list[Coupon]:
        """Get auto-apply coupons that pass every rule for an order."""
        return [
            coupon
            for coupon in self.coupon_repo.get_auto_applicable()
            if self.check(coupon, order) is None
        ]
