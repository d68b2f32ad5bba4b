"""Coupon status derivation.

A coupon's status is never stored: it follows from ``is_active`` and the
``starts_at``/``ends_at`` window at a given instant. The in-memory classifier
and the SQL predicates used by list filtering live side by side here and must
agree: a deactivated coupon is ``inactive`` whatever its dates, and a coupon
that has not started yet is ``scheduled`` even when its end date has passed.
"""

from datetime import datetime

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from coupon_admin.models.coupon import Coupon, CouponStatus
from coupon_admin.models.shared import as_utc


def get_coupon_status(
    is_active: bool,
    starts_at: datetime,
    ends_at: datetime | None,
    now: datetime,
) -> CouponStatus:
    """Classify a coupon at instant *now*.

    Args:
        is_active: Manual activation toggle.
        starts_at: Start of the activation window.
        ends_at: Optional end of the activation window.
        now: The instant to classify at. Always supplied by the caller.

    Returns:
        The derived CouponStatus.
    """
    if not is_active:
        return CouponStatus.INACTIVE

    now = as_utc(now)
    if now < as_utc(starts_at):
        return CouponStatus.SCHEDULED
    if ends_at is not None and now > as_utc(ends_at):
        return CouponStatus.EXPIRED
    return CouponStatus.ACTIVE


def status_condition(status: CouponStatus | str, now: datetime) -> ColumnElement[bool]:
    """Build the SQL predicate matching coupons whose status at *now* is *status*.

    Raises:
        ValueError: If *status* is not a known CouponStatus.
    """
    status = CouponStatus(status)
    now = as_utc(now)

    if status == CouponStatus.ACTIVE:
        return and_(
            Coupon.is_active.is_(True),
            Coupon.starts_at <= now,
            or_(Coupon.ends_at.is_(None), Coupon.ends_at >= now),
        )
    if status == CouponStatus.SCHEDULED:
        return and_(Coupon.is_active.is_(True), Coupon.starts_at > now)
    if status == CouponStatus.EXPIRED:
        return and_(
            Coupon.is_active.is_(True),
            Coupon.ends_at.is_not(None),
            Coupon.ends_at < now,
        )
    return Coupon.is_active.is_(False)
