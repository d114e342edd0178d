"""Redemption ledger recording coupon usage against completed orders."""

import logging
from collections.abc import Callable
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coupons.core.errors import (
    InvalidCouponReferenceError,
    RedemptionLimitError,
    RedemptionVetoedError,
)
from coupons.core.sorting import Page
from coupons.models.coupon import Coupon
from coupons.models.coupon_history import CouponHistory
from coupons.repositories.coupon_history_repository import CouponHistoryRepository
from coupons.repositories.coupon_repository import CouponRepository
from coupons.schemas.coupon_history import CouponHistoryListOptions
from coupons.schemas.order import DiscountApplication, OrderContext
from coupons.services.coupon_validity import (
    customer_max_redemption_reached,
    max_redemption_reached,
)

logger = logging.getLogger(__name__)

# Called with the unsaved entry before it is persisted. Returning False
# vetoes the redemption.
BeforeAddHistoryHook = Callable[
    [CouponHistory, DiscountApplication, OrderContext, Coupon],
    bool,
]


class RedemptionLedger:
    """Service for recording, counting and voiding coupon redemptions."""

    def __init__(self, db: Session, hooks: list[BeforeAddHistoryHook] | None = None):
        self.db = db
        self.coupon_repo = CouponRepository(db)
        self.history_repo = CouponHistoryRepository(db)
        self.hooks: list[BeforeAddHistoryHook] = list(hooks or [])

    def add_hook(self, hook: BeforeAddHistoryHook) -> None:
        self.hooks.append(hook)

    def count_redemptions(self, coupon: Coupon) -> int:
        """Count enabled redemptions of a coupon."""
        return self.history_repo.count_enabled(coupon.id)  # type: ignore[arg-type]

    def count_customer_redemptions(self, coupon: Coupon, customer_id: UUID | None) -> int:
        """Count enabled redemptions of a coupon by one customer, or by guests for None."""
        return self.history_repo.count_enabled_for_customer(
            coupon.id,  # type: ignore[arg-type]
            customer_id,
        )

    def create_history(
        self,
        application: DiscountApplication,
        order: OrderContext,
    ) -> CouponHistory:
        """Record one redemption of a coupon for a completed order.

        Every call creates a new entry; there is no de-duplication per order.

        Args:
            application: The applied coupon and its computed discount.
            order: The completed order.

        Returns:
            The created CouponHistory.

        Raises:
            InvalidCouponReferenceError: If the application's coupon does not exist.
            RedemptionVetoedError: If a before-add hook rejected the entry.
            IntegrityError: If the database rejected the entry.
        """
        coupon = self._resolve_coupon(application)
        return self._record(coupon, application, order)

    def redeem(
        self,
        application: DiscountApplication,
        order: OrderContext,
    ) -> CouponHistory:
        """Check redemption caps and record the redemption in one transaction.

        The coupon row stays locked from the cap check until the entry is
        committed, so concurrent orders cannot both take the last redemption.

        Raises:
            InvalidCouponReferenceError: If the application's coupon does not exist.
            RedemptionLimitError: If the global or per-customer cap is reached.
            RedemptionVetoedError: If a before-add hook rejected the entry.
            IntegrityError: If the database rejected the entry.
        """
        coupon_id = self._resolve_coupon(application).id
        coupon = self.coupon_repo.get_for_update(coupon_id)  # type: ignore[arg-type]
        if not coupon:
            self.db.rollback()
            raise InvalidCouponReferenceError(f"Coupon {coupon_id} not found")

        code = coupon.code
        if max_redemption_reached(
            coupon.redemptions,  # type: ignore[arg-type]
            self.count_redemptions(coupon),
        ):
            self.db.rollback()
            raise RedemptionLimitError(f"Coupon '{code}' has no redemptions left")

        if order.customer_id is not None and customer_max_redemption_reached(
            coupon.customer_redemptions,  # type: ignore[arg-type]
            self.count_customer_redemptions(coupon, order.customer_id),
        ):
            self.db.rollback()
            raise RedemptionLimitError(
                f"Customer {order.customer_id} has no redemptions of '{code}' left"
            )

        return self._record(coupon, application, order)

    def toggle_status(self, history_id: UUID) -> CouponHistory | None:
        """Void or restore a redemption. Returns None if the entry does not exist."""
        entry = self.history_repo.toggle_status(history_id)
        if entry is not None:
            logger.info(
                "Coupon history %s %s",
                history_id,
                "restored" if entry.status else "voided",
            )
        return entry

    def set_status(self, history_ids: list[UUID], enabled: bool) -> int:
        """Void or restore several redemptions at once."""
        updated = self.history_repo.set_status(history_ids, enabled)
        logger.info("Set status=%s on %d coupon history entries", enabled, updated)
        return updated

    def list_for_customer(self, options: CouponHistoryListOptions) -> Page[CouponHistory]:
        """Get a page of enabled redemptions for order-history display."""
        return self.history_repo.get_all(
            page=options.page,
            page_limit=options.page_limit,
            customer_id=options.customer_id,
            order_id=options.order_id,
            sort=options.sort,
        )

    def _resolve_coupon(self, application: DiscountApplication) -> Coupon:
        coupon: Coupon | None = None
        if application.coupon_id is not None:
            coupon = self.coupon_repo.get_by_id(application.coupon_id)
        elif application.coupon_code:
            coupon = self.coupon_repo.get_by_code(application.coupon_code)

        if not coupon:
            reference = application.coupon_id or application.coupon_code
            logger.warning("Discount application references unknown coupon %s", reference)
            raise InvalidCouponReferenceError(f"Coupon {reference} not found")
        return coupon

    def _record(
        self,
        coupon: Coupon,
        application: DiscountApplication,
        order: OrderContext,
    ) -> CouponHistory:
        code = str(coupon.code)
        entry = self.history_repo.build(
            coupon_id=coupon.id,  # type: ignore[arg-type]
            order_id=order.order_id,
            customer_id=order.customer_id,
            code=code,
            amount=application.value,
            min_total=Decimal(coupon.min_total or 0),
        )

        for hook in self.hooks:
            if not hook(entry, application, order, coupon):
                self.db.rollback()
                logger.warning(
                    "Coupon history for coupon %s on order %s vetoed by %s",
                    code,
                    order.order_id,
                    getattr(hook, "__name__", repr(hook)),
                )
                raise RedemptionVetoedError(
                    f"Redemption of '{code}' on order {order.order_id} was vetoed"
                )

        try:
            self.history_repo.save(entry)
        except IntegrityError:
            self.db.rollback()
            raise

        logger.info(
            "Recorded coupon %s redemption on order %s (amount %s)",
            code,
            order.order_id,
            entry.amount,
        )
        return entry
