"""CouponHistory repository for data access."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from coupons.core.config import settings
from coupons.core.sorting import Page, apply_allowed_sorting, paginate
from coupons.models.coupon_history import CouponHistory

ALLOWED_SORTING = (
    "created_at desc",
    "created_at asc",
)


class CouponHistoryRepository:
    """Repository for CouponHistory model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, history_id: UUID) -> CouponHistory | None:
        """Get a history entry by ID."""
        return self.db.query(CouponHistory).filter(CouponHistory.id == history_id).first()

    def get_by_coupon_id(self, coupon_id: UUID) -> list[CouponHistory]:
        """Get every history entry of a coupon, enabled or not, newest first."""
        return (
            self.db.query(CouponHistory)
            .filter(CouponHistory.coupon_id == coupon_id)
            .order_by(CouponHistory.created_at.desc())
            .all()
        )

    def get_all(
        self,
        page: int = 1,
        page_limit: int | None = None,
        customer_id: UUID | None = None,
        order_id: UUID | None = None,
        sort: str | list[str] | None = None,
    ) -> Page[CouponHistory]:
        """Get a page of enabled history entries with optional filters."""
        query = self.db.query(CouponHistory).filter(CouponHistory.status.is_(True))

        if customer_id is not None:
            query = query.filter(CouponHistory.customer_id == customer_id)
        if order_id is not None:
            query = query.filter(CouponHistory.order_id == order_id)

        query = apply_allowed_sorting(
            query, CouponHistory, sort or settings.COUPONS_HISTORY_SORT, ALLOWED_SORTING
        )
        return paginate(query, page, page_limit or settings.COUPONS_PAGE_LIMIT)

    def count_enabled(self, coupon_id: UUID) -> int:
        """Count enabled history entries of a coupon."""
        return (
            self.db.query(func.count(CouponHistory.id))
            .filter(CouponHistory.coupon_id == coupon_id, CouponHistory.status.is_(True))
            .scalar()
            or 0
        )

    def count_enabled_for_customer(self, coupon_id: UUID, customer_id: UUID | None) -> int:
        """Count enabled history entries of a coupon for one customer.

        A customer_id of None counts guest redemptions.
        """
        customer_filter = (
            CouponHistory.customer_id.is_(None)
            if customer_id is None
            else CouponHistory.customer_id == customer_id
        )
        return (
            self.db.query(func.count(CouponHistory.id))
            .filter(
                CouponHistory.coupon_id == coupon_id,
                CouponHistory.status.is_(True),
                customer_filter,
            )
            .scalar()
            or 0
        )

    def build(
        self,
        coupon_id: UUID,
        order_id: UUID,
        customer_id: UUID | None,
        code: str,
        amount: Decimal,
        min_total: Decimal,
        created_at: datetime | None = None,
    ) -> CouponHistory:
        """Build an enabled, unsaved history entry."""
        entry = CouponHistory(
            coupon_id=coupon_id,
            order_id=order_id,
            customer_id=customer_id,
            code=code,
            amount=amount,
            min_total=min_total,
            status=True,
        )
        if created_at is not None:
            entry.created_at = created_at  # type: ignore[assignment]
        return entry

    def save(self, entry: CouponHistory, commit: bool = True) -> CouponHistory:
        """Persist a new history entry."""
        self.db.add(entry)
        if commit:
            self.db.commit()
            self.db.refresh(entry)
        else:
            self.db.flush()
        return entry

    def toggle_status(self, history_id: UUID) -> CouponHistory | None:
        """Flip a history entry between enabled and disabled."""
        entry = self.get_by_id(history_id)
        if not entry:
            return None

        entry.status = not entry.status  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def set_status(self, history_ids: list[UUID], status: bool) -> int:
        """Set the status of several history entries. Returns rows updated."""
        if not history_ids:
            return 0
        updated = (
            self.db.query(CouponHistory)
            .filter(CouponHistory.id.in_(history_ids))
            .update({CouponHistory.status: status}, synchronize_session=False)
        )
        self.db.commit()
        return updated
