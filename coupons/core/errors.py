"""Errors raised by coupon lookups and ledger mutations.

Persistence-layer rejections (unique code, foreign keys) are not wrapped:
``sqlalchemy.exc.IntegrityError`` reaches the caller unchanged.
"""


class CouponError(ValueError):
    """Base class for coupon engine failures."""


class CouponNotFoundError(CouponError):
    """No enabled coupon matches the requested code."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Coupon '{code}' not found")


class InvalidCouponReferenceError(CouponError):
    """A discount application does not resolve to a persisted coupon."""


class RedemptionVetoedError(CouponError):
    """A before-add-history hook rejected the redemption."""


class RedemptionLimitError(CouponError):
    """The coupon or the customer has used up its redemptions."""
