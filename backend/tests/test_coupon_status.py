"""Tests for coupon status classification and the matching SQL predicates."""

from datetime import UTC, datetime, timedelta

import pytest

from coupon_admin.models.coupon import Coupon, CouponStatus
from coupon_admin.services.coupon_status import get_coupon_status, status_condition

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


class TestGetCouponStatus:
    def test_inactive_regardless_of_dates(self):
        assert (
            get_coupon_status(False, datetime(2020, 1, 1, tzinfo=UTC), None, NOW)
            == CouponStatus.INACTIVE
        )

    def test_inactive_overrides_expired_window(self):
        status = get_coupon_status(
            False,
            datetime(2020, 1, 1, tzinfo=UTC),
            datetime(2020, 12, 31, tzinfo=UTC),
            NOW,
        )
        assert status == CouponStatus.INACTIVE

    def test_scheduled_when_start_in_future(self):
        assert (
            get_coupon_status(True, NOW + timedelta(days=365), None, NOW)
            == CouponStatus.SCHEDULED
        )

    def test_scheduled_takes_precedence_over_expired(self):
        # Inconsistent window: end before start, both relative to now
        status = get_coupon_status(
            True, NOW + timedelta(days=1), NOW - timedelta(days=1), NOW
        )
        assert status == CouponStatus.SCHEDULED

    def test_expired_when_end_in_past(self):
        status = get_coupon_status(
            True,
            datetime(2020, 1, 1, tzinfo=UTC),
            datetime(2020, 12, 31, tzinfo=UTC),
            NOW,
        )
        assert status == CouponStatus.EXPIRED

    def test_active_without_end(self):
        assert get_coupon_status(True, NOW - timedelta(days=1), None, NOW) == CouponStatus.ACTIVE

    def test_active_within_window(self):
        status = get_coupon_status(
            True, NOW - timedelta(days=1), NOW + timedelta(days=1), NOW
        )
        assert status == CouponStatus.ACTIVE

    def test_window_boundaries_are_active(self):
        assert get_coupon_status(True, NOW, None, NOW) == CouponStatus.ACTIVE
        assert get_coupon_status(True, NOW - timedelta(days=1), NOW, NOW) == CouponStatus.ACTIVE

    def test_naive_datetimes_treated_as_utc(self):
        status = get_coupon_status(
            True,
            datetime(2025, 6, 15, 11, 0),
            datetime(2025, 6, 15, 11, 30),
            NOW,
        )
        assert status == CouponStatus.EXPIRED


class TestStatusCondition:
    def test_inactive_condition(self):
        assert str(status_condition(CouponStatus.INACTIVE, NOW)) == str(
            Coupon.is_active.is_(False)
        )

    def test_accepts_plain_strings(self):
        assert str(status_condition("scheduled", NOW)) == str(
            status_condition(CouponStatus.SCHEDULED, NOW)
        )

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            status_condition("bogus", NOW)

    @pytest.mark.parametrize(
        ("is_active", "start_days", "end_days", "expected"),
        [
            (True, -10, None, CouponStatus.ACTIVE),
            (True, -10, 10, CouponStatus.ACTIVE),
            (True, 5, None, CouponStatus.SCHEDULED),
            (True, -10, -5, CouponStatus.EXPIRED),
            (False, -10, None, CouponStatus.INACTIVE),
            (False, 5, None, CouponStatus.INACTIVE),
            (False, -10, -5, CouponStatus.INACTIVE),
        ],
    )
    def test_sql_predicates_agree_with_classifier(
        self, db_session, make_coupon, is_active, start_days, end_days, expected
    ):
        coupon = make_coupon(
            is_active=is_active,
            starts_at=NOW + timedelta(days=start_days),
            ends_at=NOW + timedelta(days=end_days) if end_days is not None else None,
        )

        assert (
            get_coupon_status(coupon.is_active, coupon.starts_at, coupon.ends_at, NOW)
            == expected
        )
        for status in CouponStatus:
            matched = (
                db_session.query(Coupon)
                .filter(Coupon.id == coupon.id, status_condition(status, NOW))
                .count()
            )
            assert matched == (1 if status == expected else 0), status
