"""CouponHistory model recording each coupon redemption."""

from sqlalchemy import Boolean, Column, DateTime, Numeric, String

from coupons.core.database import Base
from coupons.models.shared import UUIDType, generate_uuid, utc_now


class CouponHistory(Base):
    """One redemption of a coupon against a completed order.

    Code, amount and minimum total are copied from the coupon at redemption
    time. Disabled entries are kept but excluded from redemption counts.
    """

    __tablename__ = "coupons_history"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    # No foreign key: history outlives deleted coupons for audit
    coupon_id = Column(UUIDType, nullable=False, index=True)
    order_id = Column(UUIDType, nullable=False, index=True)
    # NULL for guest orders
    customer_id = Column(UUIDType, nullable=True, index=True)

    code = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 4), nullable=False, default=0)
    min_total = Column(Numeric(12, 4), nullable=False, default=0)

    status = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
