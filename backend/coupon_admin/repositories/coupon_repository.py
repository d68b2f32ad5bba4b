"""Coupon repository for data access."""

from collections.abc import Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from coupon_admin.models.coupon import Coupon
from coupon_admin.services.coupon_list_query import CouponListQuery
from coupon_admin.services.coupon_validation import ValidatedCoupon


class DuplicateCouponCodeError(Exception):
    """Raised when a shop already has a coupon with the same code."""


def _is_unique_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate key" in message


class CouponRepository:
    """Repository for Coupon model. Every query is scoped to a shop."""

    def __init__(self, db: Session):
        self.db = db

    def find_many(self, query: CouponListQuery) -> list[Coupon]:
        """Get one page of coupons for a compiled list query."""
        return (
            self.db.query(Coupon)
            .filter(query.where)
            .order_by(query.order_by)
            .offset(query.offset)
            .limit(query.limit)
            .all()
        )

    def count(self, where: ColumnElement[bool]) -> int:
        """Count coupons matching a filter."""
        return self.db.query(Coupon).filter(where).count()

    def get_by_id(self, coupon_id: int, shop: str) -> Coupon | None:
        """Get a coupon by ID within a shop."""
        return (
            self.db.query(Coupon)
            .filter(Coupon.id == coupon_id, Coupon.shop == shop)
            .first()
        )

    def get_many_by_ids(self, coupon_ids: Sequence[int], shop: str) -> list[Coupon]:
        """Get every coupon of a shop whose ID is in coupon_ids, in ID order."""
        if not coupon_ids:
            return []
        return (
            self.db.query(Coupon)
            .filter(Coupon.id.in_(coupon_ids), Coupon.shop == shop)
            .order_by(Coupon.id)
            .all()
        )

    def create(self, data: ValidatedCoupon, shop: str) -> Coupon:
        """Create a new coupon.

        Raises:
            DuplicateCouponCodeError: If the shop already uses this code.
        """
        coupon = Coupon(
            shop=shop,
            title=data.title,
            code=data.code,
            discount_type=data.discount_type.value,
            discount_value=data.discount_value,
            minimum_purchase=data.minimum_purchase,
            usage_limit=data.usage_limit,
            starts_at=data.starts_at,
            ends_at=data.ends_at,
        )
        self.db.add(coupon)
        self._commit()
        self.db.refresh(coupon)
        return coupon

    def update(self, coupon: Coupon, data: ValidatedCoupon) -> Coupon:
        """Overwrite a coupon's editable fields.

        Raises:
            DuplicateCouponCodeError: If another coupon of the shop uses the code.
        """
        coupon.title = data.title  # type: ignore[assignment]
        coupon.code = data.code  # type: ignore[assignment]
        coupon.discount_type = data.discount_type.value  # type: ignore[assignment]
        coupon.discount_value = data.discount_value  # type: ignore[assignment]
        coupon.minimum_purchase = data.minimum_purchase  # type: ignore[assignment]
        coupon.usage_limit = data.usage_limit  # type: ignore[assignment]
        coupon.starts_at = data.starts_at  # type: ignore[assignment]
        coupon.ends_at = data.ends_at  # type: ignore[assignment]
        self._commit()
        self.db.refresh(coupon)
        return coupon

    def set_active(self, coupon: Coupon, is_active: bool) -> Coupon:
        """Set a coupon's activation toggle."""
        coupon.is_active = is_active  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def set_shopify_discount_id(self, coupon: Coupon, shopify_discount_id: str) -> Coupon:
        """Link a coupon to its Shopify discount."""
        coupon.shopify_discount_id = shopify_discount_id  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def delete(self, coupon: Coupon) -> None:
        """Delete a coupon."""
        self.db.delete(coupon)
        self.db.commit()

    def delete_many(self, coupon_ids: Sequence[int], shop: str) -> int:
        """Delete every coupon of a shop whose ID is in coupon_ids.

        Returns:
            Number of deleted coupons.
        """
        if not coupon_ids:
            return 0
        count = (
            self.db.query(Coupon)
            .filter(Coupon.id.in_(coupon_ids), Coupon.shop == shop)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return count

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if _is_unique_violation(exc):
                raise DuplicateCouponCodeError("A coupon with this code already exists") from exc
            raise
