"""Coupon repository for data access."""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from coupons.core.config import settings
from coupons.core.sorting import Page, apply_allowed_sorting, paginate
from coupons.models.coupon import (
    Coupon,
    CouponCategory,
    CouponMenu,
    CouponType,
    CouponValidity,
    weekday_mask,
)
from coupons.models.shared import plain_values
from coupons.repositories.locationable_repository import LocationableRepository
from coupons.schemas.coupon import VALIDITY_REQUIRED_FIELDS, CouponCreate, CouponUpdate

COUPON_LOCATIONABLE_TYPE = "coupons"

ALLOWED_SORTING = (
    "name desc",
    "name asc",
    "id desc",
    "id asc",
    "code desc",
    "code asc",
)


class CouponRepository:
    """Repository for Coupon model."""

    def __init__(self, db: Session):
        self.db = db
        self.locations = LocationableRepository(db, COUPON_LOCATIONABLE_TYPE)

    def get_all(
        self,
        page: int = 1,
        page_limit: int | None = None,
        sort: str | list[str] | None = None,
    ) -> Page[Coupon]:
        """Get a page of enabled coupons."""
        query = self.db.query(Coupon).filter(Coupon.status.is_(True))
        query = apply_allowed_sorting(
            query, Coupon, sort or settings.COUPONS_LIST_SORT, ALLOWED_SORTING
        )
        return paginate(query, page, page_limit or settings.COUPONS_PAGE_LIMIT)

    def get_by_id(self, coupon_id: UUID) -> Coupon | None:
        """Get a coupon by ID."""
        return self.db.query(Coupon).filter(Coupon.id == coupon_id).first()

    def get_by_code(self, code: str) -> Coupon | None:
        """Get an enabled coupon by exact code."""
        return (
            self.db.query(Coupon)
            .filter(Coupon.code == code, Coupon.status.is_(True))
            .first()
        )

    def get_for_update(self, coupon_id: UUID) -> Coupon | None:
        """Get a coupon by ID, locking its row until the transaction ends.

        Dialects without row locks (SQLite) ignore FOR UPDATE.
        """
        return (
            self.db.query(Coupon)
            .filter(Coupon.id == coupon_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_auto_applicable(self) -> list[Coupon]:
        """Get enabled coupons flagged for automatic application."""
        return (
            self.db.query(Coupon)
            .filter(Coupon.status.is_(True), Coupon.auto_apply.is_(True))
            .order_by(Coupon.created_at.asc())
            .all()
        )

    def get_by_category(self, category_id: UUID) -> list[Coupon]:
        """Get enabled coupons scoped to a category."""
        return (
            self.db.query(Coupon)
            .join(CouponCategory, CouponCategory.coupon_id == Coupon.id)
            .filter(CouponCategory.category_id == category_id, Coupon.status.is_(True))
            .all()
        )

    def get_by_menu(self, menu_id: UUID) -> list[Coupon]:
        """Get enabled coupons scoped to a menu item."""
        return (
            self.db.query(Coupon)
            .join(CouponMenu, CouponMenu.coupon_id == Coupon.id)
            .filter(CouponMenu.menu_id == menu_id, Coupon.status.is_(True))
            .all()
        )

    def get_category_ids(self, coupon_id: UUID) -> list[UUID]:
        rows = self.db.query(CouponCategory).filter(CouponCategory.coupon_id == coupon_id).all()
        return [row.category_id for row in rows]

    def get_menu_ids(self, coupon_id: UUID) -> list[UUID]:
        rows = self.db.query(CouponMenu).filter(CouponMenu.coupon_id == coupon_id).all()
        return [row.menu_id for row in rows]

    def get_location_ids(self, coupon_id: UUID) -> list[UUID]:
        return self.locations.get_location_ids(coupon_id)

    def create(self, data: CouponCreate) -> Coupon:
        """Create a new coupon with its category, menu and location links."""
        coupon = Coupon(
            code=data.code,
            name=data.name,
            description=data.description,
            coupon_type=data.coupon_type.value,
            discount=data.discount,
            min_total=data.min_total,
            redemptions=data.redemptions,
            customer_redemptions=data.customer_redemptions,
            validity=data.validity.value,
            fixed_date=data.fixed_date,
            fixed_from_time=data.fixed_from_time,
            fixed_to_time=data.fixed_to_time,
            period_start_date=data.period_start_date,
            period_end_date=data.period_end_date,
            recurring_every=weekday_mask(data.recurring_every) or None,
            recurring_from_time=data.recurring_from_time,
            recurring_to_time=data.recurring_to_time,
            order_restriction=plain_values(data.order_restriction),
            auto_apply=data.auto_apply,
            status=data.status,
        )
        self.db.add(coupon)
        self.db.flush()

        self._sync_categories(coupon.id, data.category_ids)  # type: ignore[arg-type]
        self._sync_menus(coupon.id, data.menu_ids)  # type: ignore[arg-type]
        self.locations.sync(coupon.id, data.location_ids)  # type: ignore[arg-type]

        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def update(self, coupon_id: UUID, data: CouponUpdate) -> Coupon | None:
        """Update a coupon by ID."""
        coupon = self.get_by_id(coupon_id)
        if not coupon:
            return None

        update_data = data.model_dump(exclude_unset=True)
        self._validate_update(coupon, update_data)

        if "validity" in update_data:
            update_data["validity"] = update_data["validity"].value
        if "recurring_every" in update_data:
            update_data["recurring_every"] = weekday_mask(update_data["recurring_every"] or ()) or None
        if "order_restriction" in update_data:
            update_data["order_restriction"] = plain_values(update_data["order_restriction"])

        for key, value in update_data.items():
            setattr(coupon, key, value)

        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def _validate_update(self, coupon: Coupon, update_data: dict[str, Any]) -> None:
        """Validate the coupon as it will look once the update is applied.

        Raises:
            ValueError: If the selected validity mode is missing its fields or
                a percentage discount exceeds 100.
        """
        if "validity" in update_data and update_data["validity"] is None:
            raise ValueError("validity cannot be null")

        validity = CouponValidity(update_data.get("validity", coupon.validity))
        missing = [
            field
            for field in VALIDITY_REQUIRED_FIELDS[validity]
            if update_data.get(field, getattr(coupon, field)) is None
        ]
        if missing:
            msg = f"{', '.join(missing)} required for validity '{validity.value}'"
            raise ValueError(msg)

        discount = update_data.get("discount", coupon.discount)
        is_percentage = coupon.coupon_type == CouponType.PERCENTAGE.value
        if is_percentage and discount is not None and discount > 100:
            raise ValueError("discount must be at most 100 for percentage coupons")

    def set_categories(self, coupon_id: UUID, category_ids: list[UUID]) -> bool:
        """Replace a coupon's categories. An empty list removes all of them."""
        if not self.get_by_id(coupon_id):
            return False
        self._sync_categories(coupon_id, category_ids)
        self.db.commit()
        return True

    def set_menus(self, coupon_id: UUID, menu_ids: list[UUID]) -> bool:
        """Replace a coupon's menu items. An empty list removes all of them."""
        if not self.get_by_id(coupon_id):
            return False
        self._sync_menus(coupon_id, menu_ids)
        self.db.commit()
        return True

    def set_locations(self, coupon_id: UUID, location_ids: list[UUID]) -> bool:
        """Replace a coupon's locations. An empty list removes all of them."""
        if not self.get_by_id(coupon_id):
            return False
        self.locations.sync(coupon_id, location_ids)
        self.db.commit()
        return True

    def delete(self, coupon_id: UUID) -> bool:
        """Delete a coupon, detaching its links first. History is kept."""
        coupon = self.get_by_id(coupon_id)
        if not coupon:
            return False

        self.db.query(CouponCategory).filter(CouponCategory.coupon_id == coupon_id).delete(
            synchronize_session=False
        )
        self.db.query(CouponMenu).filter(CouponMenu.coupon_id == coupon_id).delete(
            synchronize_session=False
        )
        self.locations.detach_all(coupon_id)

        self.db.delete(coupon)
        self.db.commit()
        return True

    def _sync_categories(self, coupon_id: UUID, category_ids: list[UUID]) -> None:
        self.db.query(CouponCategory).filter(CouponCategory.coupon_id == coupon_id).delete(
            synchronize_session=False
        )
        for category_id in dict.fromkeys(category_ids):
            self.db.add(CouponCategory(coupon_id=coupon_id, category_id=category_id))
        self.db.flush()

    def _sync_menus(self, coupon_id: UUID, menu_ids: list[UUID]) -> None:
        self.db.query(CouponMenu).filter(CouponMenu.coupon_id == coupon_id).delete(
            synchronize_session=False
        )
        for menu_id in dict.fromkeys(menu_ids):
            self.db.add(CouponMenu(coupon_id=coupon_id, menu_id=menu_id))
        self.db.flush()
