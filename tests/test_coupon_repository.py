"""Tests for CouponRepository data access."""

from datetime import date, time
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from coupons.models.coupon import (
    Coupon,
    CouponCategory,
    CouponMenu,
    CouponType,
    CouponValidity,
    OrderType,
    Weekday,
    weekdays_from_mask,
)
from coupons.models.locationable import Locationable
from coupons.repositories.coupon_history_repository import CouponHistoryRepository
from coupons.repositories.coupon_repository import COUPON_LOCATIONABLE_TYPE, CouponRepository
from coupons.schemas.coupon import CouponCreate, CouponResponse, CouponUpdate


@pytest.fixture
def coupon_repo(db_session):
    return CouponRepository(db_session)


def _coupon_data(code: str = "SAVE10", **kwargs) -> CouponCreate:
    defaults = {
        "code": code,
        "name": f"Coupon {code}",
        "coupon_type": CouponType.PERCENTAGE,
        "discount": Decimal("10"),
    }
    defaults.update(kwargs)
    return CouponCreate(**defaults)


class TestCreate:
    def test_create_defaults(self, coupon_repo):
        coupon = coupon_repo.create(_coupon_data())

        assert coupon.id is not None
        assert coupon.code == "SAVE10"
        assert coupon.coupon_type == "percentage"
        assert coupon.discount == Decimal("10")
        assert coupon.min_total == Decimal("0")
        assert coupon.validity == "forever"
        assert coupon.redemptions is None
        assert coupon.customer_redemptions is None
        assert coupon.order_restriction == []
        assert coupon.recurring_every is None
        assert coupon.auto_apply is False
        assert coupon.status is True

    def test_create_recurring_with_restrictions(self, coupon_repo):
        coupon = coupon_repo.create(
            _coupon_data(
                validity=CouponValidity.RECURRING,
                recurring_every={Weekday.SATURDAY, Weekday.SUNDAY},
                recurring_from_time=time(18, 0),
                recurring_to_time=time(22, 0),
                order_restriction={OrderType.DELIVERY},
            )
        )

        assert weekdays_from_mask(coupon.recurring_every) == {Weekday.SATURDAY, Weekday.SUNDAY}
        assert coupon.recurring_from_time == time(18, 0)
        assert coupon.order_restriction == ["delivery"]

    def test_create_with_links(self, coupon_repo):
        category_id, menu_id, location_id = uuid4(), uuid4(), uuid4()
        coupon = coupon_repo.create(
            _coupon_data(
                category_ids=[category_id],
                menu_ids=[menu_id, menu_id],
                location_ids=[location_id],
            )
        )

        assert coupon_repo.get_category_ids(coupon.id) == [category_id]
        assert coupon_repo.get_menu_ids(coupon.id) == [menu_id]
        assert coupon_repo.get_location_ids(coupon.id) == [location_id]

    def test_duplicate_code_raises(self, coupon_repo, db_session):
        coupon_repo.create(_coupon_data())
        with pytest.raises(IntegrityError):
            coupon_repo.create(_coupon_data())
        db_session.rollback()

    def test_codes_are_case_sensitive(self, coupon_repo):
        coupon_repo.create(_coupon_data("SAVE10"))
        coupon_repo.create(_coupon_data("save10"))

        assert coupon_repo.get_by_code("SAVE10").code == "SAVE10"
        assert coupon_repo.get_by_code("save10").code == "save10"
        assert coupon_repo.get_by_code("Save10") is None

    def test_response_schema(self, coupon_repo):
        coupon = coupon_repo.create(_coupon_data(order_restriction={OrderType.COLLECTION}))
        response = CouponResponse.model_validate(coupon)

        assert response.code == "SAVE10"
        assert response.order_restriction == ["collection"]
        assert response.status is True


class TestCreateValidation:
    def test_fixed_requires_its_fields(self):
        with pytest.raises(ValidationError, match="fixed_date"):
            _coupon_data(validity=CouponValidity.FIXED)

    def test_period_requires_its_fields(self):
        with pytest.raises(ValidationError, match="period_end_date"):
            _coupon_data(validity=CouponValidity.PERIOD, period_start_date=date(2025, 1, 1))

    def test_recurring_requires_times(self):
        with pytest.raises(ValidationError, match="recurring_from_time"):
            _coupon_data(validity=CouponValidity.RECURRING)

    def test_other_mode_fields_not_validated(self):
        data = _coupon_data(
            validity=CouponValidity.PERIOD,
            period_start_date=date(2025, 1, 1),
            period_end_date=date(2025, 1, 31),
            fixed_from_time=time(9, 0),
        )
        assert data.fixed_date is None

    def test_negative_discount_rejected(self):
        with pytest.raises(ValidationError):
            _coupon_data(discount=Decimal("-1"))

    def test_negative_min_total_rejected(self):
        with pytest.raises(ValidationError):
            _coupon_data(min_total=Decimal("-0.01"))

    def test_percentage_over_100_rejected(self):
        with pytest.raises(ValidationError, match="at most 100"):
            _coupon_data(discount=Decimal("150"))

    def test_fixed_amount_over_100_allowed(self):
        data = _coupon_data(coupon_type=CouponType.FIXED_AMOUNT, discount=Decimal("150"))
        assert data.discount == Decimal("150")


class TestGet:
    def test_get_by_code_skips_disabled(self, coupon_repo):
        coupon_repo.create(_coupon_data(status=False))
        assert coupon_repo.get_by_code("SAVE10") is None

    def test_get_by_id_includes_disabled(self, coupon_repo):
        coupon = coupon_repo.create(_coupon_data(status=False))
        assert coupon_repo.get_by_id(coupon.id).id == coupon.id

    def test_get_by_id_missing(self, coupon_repo):
        assert coupon_repo.get_by_id(uuid4()) is None

    def test_get_for_update(self, coupon_repo):
        coupon = coupon_repo.create(_coupon_data())
        assert coupon_repo.get_for_update(coupon.id).code == "SAVE10"

    def test_get_auto_applicable(self, coupon_repo):
        coupon_repo.create(_coupon_data("AUTO", auto_apply=True))
        coupon_repo.create(_coupon_data("AUTO_OFF", auto_apply=True, status=False))
        coupon_repo.create(_coupon_data("MANUAL"))

        assert [c.code for c in coupon_repo.get_auto_applicable()] == ["AUTO"]

    def test_get_by_category_and_menu(self, coupon_repo):
        category_id, menu_id = uuid4(), uuid4()
        coupon_repo.create(_coupon_data("CAT", category_ids=[category_id]))
        coupon_repo.create(_coupon_data("MENU", menu_ids=[menu_id]))

        assert [c.code for c in coupon_repo.get_by_category(category_id)] == ["CAT"]
        assert [c.code for c in coupon_repo.get_by_menu(menu_id)] == ["MENU"]
        assert coupon_repo.get_by_category(uuid4()) == []


class TestGetAll:
    def test_sorted_by_code(self, coupon_repo):
        for code in ("B", "C", "A"):
            coupon_repo.create(_coupon_data(code))

        page = coupon_repo.get_all(sort="code asc")
        assert [c.code for c in page.items] == ["A", "B", "C"]
        assert page.total == 3

    def test_only_enabled(self, coupon_repo):
        coupon_repo.create(_coupon_data("ON"))
        coupon_repo.create(_coupon_data("OFF", status=False))

        page = coupon_repo.get_all()
        assert [c.code for c in page.items] == ["ON"]

    def test_unknown_sort_ignored(self, coupon_repo):
        coupon_repo.create(_coupon_data("A"))
        page = coupon_repo.get_all(sort=["discount desc", "code asc"])
        assert [c.code for c in page.items] == ["A"]

    def test_pagination(self, coupon_repo):
        for i in range(5):
            coupon_repo.create(_coupon_data(f"CODE{i}"))

        page = coupon_repo.get_all(page=2, page_limit=2, sort="code asc")
        assert [c.code for c in page.items] == ["CODE2", "CODE3"]
        assert page.total == 5
        assert page.last_page == 3


class TestUpdate:
    def test_update_fields(self, coupon_repo):
        coupon = coupon_repo.create(_coupon_data())
        updated = coupon_repo.update(
            coupon.id,
            CouponUpdate(
                name="Renamed",
                redemptions=5,
                validity=CouponValidity.PERIOD,
                period_start_date=date(2025, 1, 1),
                period_end_date=date(2025, 1, 31),
                recurring_every={Weekday.MONDAY},
                order_restriction={OrderType.COLLECTION},
            ),
        )

        assert updated.name == "Renamed"
        assert updated.redemptions == 5
        assert updated.validity == "period"
        assert updated.period_end_date == date(2025, 1, 31)
        assert weekdays_from_mask(updated.recurring_every) == {Weekday.MONDAY}
        assert updated.order_restriction == ["collection"]

    def test_clear_restrictions(self, coupon_repo):
        coupon = coupon_repo.create(
            _coupon_data(order_restriction={OrderType.DELIVERY}, recurring_every={Weekday.MONDAY})
        )
        updated = coupon_repo.update(
            coupon.id, CouponUpdate(order_restriction=None, recurring_every=None)
        )

        assert updated.order_restriction == []
        assert updated.recurring_every is None

    def test_update_leaves_unset_fields(self, coupon_repo):
        coupon = coupon_repo.create(_coupon_data(min_total=Decimal("15")))
        updated = coupon_repo.update(coupon.id, CouponUpdate(status=False))

        assert updated.status is False
        assert updated.min_total == Decimal("15")

    def test_update_missing(self, coupon_repo):
        assert coupon_repo.update(uuid4(), CouponUpdate(name="x")) is None

    def test_switch_validity_requires_its_fields(self, coupon_repo, db_session):
        coupon = coupon_repo.create(_coupon_data())

        with pytest.raises(ValueError, match="fixed_date, fixed_from_time, fixed_to_time"):
            coupon_repo.update(coupon.id, CouponUpdate(validity=CouponValidity.FIXED))

        db_session.refresh(coupon)
        assert coupon.validity == "forever"

    def test_switch_validity_with_fields(self, coupon_repo):
        coupon = coupon_repo.create(_coupon_data())
        updated = coupon_repo.update(
            coupon.id,
            CouponUpdate(
                validity=CouponValidity.FIXED,
                fixed_date=date(2025, 6, 15),
                fixed_from_time=time(12, 0),
                fixed_to_time=time(14, 0),
            ),
        )
        assert updated.validity == "fixed"

    def test_partial_update_keeps_existing_mode_fields(self, coupon_repo):
        coupon = coupon_repo.create(
            _coupon_data(
                validity=CouponValidity.PERIOD,
                period_start_date=date(2025, 1, 1),
                period_end_date=date(2025, 1, 31),
            )
        )
        updated = coupon_repo.update(
            coupon.id, CouponUpdate(period_end_date=date(2025, 2, 28))
        )
        assert updated.period_end_date == date(2025, 2, 28)

    def test_clearing_required_field_rejected(self, coupon_repo):
        coupon = coupon_repo.create(
            _coupon_data(
                validity=CouponValidity.PERIOD,
                period_start_date=date(2025, 1, 1),
                period_end_date=date(2025, 1, 31),
            )
        )
        with pytest.raises(ValueError, match="period_start_date"):
            coupon_repo.update(coupon.id, CouponUpdate(period_start_date=None))

    def test_null_validity_rejected(self, coupon_repo):
        coupon = coupon_repo.create(_coupon_data())
        with pytest.raises(ValueError, match="validity cannot be null"):
            coupon_repo.update(coupon.id, CouponUpdate(validity=None))

    def test_percentage_over_100_rejected(self, coupon_repo):
        coupon = coupon_repo.create(_coupon_data())
        with pytest.raises(ValueError, match="at most 100"):
            coupon_repo.update(coupon.id, CouponUpdate(discount=Decimal("120")))

    def test_fixed_amount_over_100_allowed(self, coupon_repo):
        coupon = coupon_repo.create(
            _coupon_data(coupon_type=CouponType.FIXED_AMOUNT, discount=Decimal("5"))
        )
        updated = coupon_repo.update(coupon.id, CouponUpdate(discount=Decimal("120")))
        assert updated.discount == Decimal("120")


class TestLinks:
    def test_set_categories_replaces(self, coupon_repo):
        first, second = uuid4(), uuid4()
        coupon = coupon_repo.create(_coupon_data(category_ids=[first]))

        assert coupon_repo.set_categories(coupon.id, [second]) is True
        assert coupon_repo.get_category_ids(coupon.id) == [second]

    def test_set_menus_empty_removes_all(self, coupon_repo):
        coupon = coupon_repo.create(_coupon_data(menu_ids=[uuid4(), uuid4()]))

        assert coupon_repo.set_menus(coupon.id, []) is True
        assert coupon_repo.get_menu_ids(coupon.id) == []

    def test_set_locations(self, coupon_repo):
        keep, drop, add = uuid4(), uuid4(), uuid4()
        coupon = coupon_repo.create(_coupon_data(location_ids=[keep, drop]))

        assert coupon_repo.set_locations(coupon.id, [keep, add]) is True
        assert set(coupon_repo.get_location_ids(coupon.id)) == {keep, add}

    def test_links_require_existing_coupon(self, coupon_repo):
        assert coupon_repo.set_categories(uuid4(), [uuid4()]) is False
        assert coupon_repo.set_menus(uuid4(), [uuid4()]) is False
        assert coupon_repo.set_locations(uuid4(), [uuid4()]) is False

    def test_locations_scoped_by_entity_kind(self, coupon_repo, db_session):
        coupon = coupon_repo.create(_coupon_data())
        location_id = uuid4()
        db_session.add(
            Locationable(
                location_id=location_id,
                locationable_type="menus",
                locationable_id=coupon.id,
            )
        )
        db_session.commit()

        assert coupon_repo.get_location_ids(coupon.id) == []


class TestDelete:
    def test_delete_detaches_links_and_keeps_history(self, coupon_repo, db_session):
        coupon = coupon_repo.create(
            _coupon_data(category_ids=[uuid4()], menu_ids=[uuid4()], location_ids=[uuid4()])
        )
        history_repo = CouponHistoryRepository(db_session)
        history_repo.save(
            history_repo.build(
                coupon_id=coupon.id,
                order_id=uuid4(),
                customer_id=None,
                code=coupon.code,
                amount=Decimal("2"),
                min_total=Decimal("0"),
            )
        )
        coupon_id = coupon.id

        assert coupon_repo.delete(coupon_id) is True

        assert db_session.query(Coupon).count() == 0
        assert db_session.query(CouponCategory).count() == 0
        assert db_session.query(CouponMenu).count() == 0
        assert (
            db_session.query(Locationable)
            .filter(Locationable.locationable_type == COUPON_LOCATIONABLE_TYPE)
            .count()
            == 0
        )
        history = history_repo.get_by_coupon_id(coupon_id)
        assert len(history) == 1
        assert history[0].code == "SAVE10"

    def test_delete_missing(self, coupon_repo):
        assert coupon_repo.delete(uuid4()) is False
