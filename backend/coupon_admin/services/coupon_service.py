"""Coupon management service: validation, persistence and Shopify sync."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from coupon_admin.models.coupon import Coupon
from coupon_admin.repositories.coupon_repository import (
    CouponRepository,
    DuplicateCouponCodeError,
)
from coupon_admin.services.coupon_list_query import CouponListParams, build_coupon_list_query
from coupon_admin.services.coupon_sync import CouponSyncService
from coupon_admin.services.coupon_validation import CouponFormData, validate_coupon_form
from coupon_admin.services.shopify_discount import ShopifyDiscountGateway

logger = logging.getLogger(__name__)

DUPLICATE_CODE_MESSAGE = "A coupon with this code already exists"


class CouponNotFoundError(ValueError):
    """The coupon does not exist or belongs to another shop."""


class CouponValidationError(ValueError):
    """The submitted coupon form has invalid fields."""

    def __init__(self, errors: dict[str, str]):
        super().__init__("Invalid coupon")
        self.errors = errors


@dataclass
class CouponListPage:
    """One page of the coupon list."""

    coupons: list[Coupon]
    total_count: int
    params: CouponListParams


@dataclass
class CouponMutation:
    """A locally persisted change and whether Shopify accepted it."""

    coupon: Coupon
    synced: bool


class CouponService:
    """Service for shop-scoped coupon management."""

    def __init__(self, db: Session, gateway: ShopifyDiscountGateway):
        self.db = db
        self.coupon_repo = CouponRepository(db)
        self.sync = CouponSyncService(db, gateway)

    def list_coupons(
        self,
        shop: str,
        params: CouponListParams,
        now: datetime,
    ) -> CouponListPage:
        """Get one filtered, sorted page of a shop's coupons plus the total match count."""
        query = build_coupon_list_query(shop, params, now)
        return CouponListPage(
            coupons=self.coupon_repo.find_many(query),
            total_count=self.coupon_repo.count(query.where),
            params=params,
        )

    def get_coupon(self, coupon_id: int, shop: str) -> Coupon:
        """Get a coupon of the shop.

        Raises:
            CouponNotFoundError: If it does not exist or belongs to another shop.
        """
        coupon = self.coupon_repo.get_by_id(coupon_id, shop)
        if not coupon:
            raise CouponNotFoundError(f"Coupon {coupon_id} not found")
        return coupon

    def create_coupon(self, form: CouponFormData, shop: str) -> CouponMutation:
        """Validate and store a new coupon, then mirror it to Shopify.

        Raises:
            CouponValidationError: If the form is invalid or the code is taken.
        """
        result = validate_coupon_form(form)
        if not result.success or result.data is None:
            raise CouponValidationError(result.errors)

        try:
            coupon = self.coupon_repo.create(result.data, shop)
        except DuplicateCouponCodeError:
            raise CouponValidationError({"code": DUPLICATE_CODE_MESSAGE}) from None

        logger.info("Created coupon %s (%s) for %s", coupon.id, coupon.code, shop)
        return CouponMutation(coupon=coupon, synced=self.sync.sync_created(coupon))

    def update_coupon(self, coupon_id: int, form: CouponFormData, shop: str) -> CouponMutation:
        """Re-validate and overwrite a coupon, then push it to Shopify.

        Raises:
            CouponNotFoundError: If the coupon is not the shop's.
            CouponValidationError: If the form is invalid or the code is taken.
        """
        coupon = self.get_coupon(coupon_id, shop)

        result = validate_coupon_form(form)
        if not result.success or result.data is None:
            raise CouponValidationError(result.errors)

        try:
            coupon = self.coupon_repo.update(coupon, result.data)
        except DuplicateCouponCodeError:
            raise CouponValidationError({"code": DUPLICATE_CODE_MESSAGE}) from None

        return CouponMutation(coupon=coupon, synced=self.sync.sync_updated(coupon))

    def toggle_coupon(self, coupon_id: int, shop: str) -> CouponMutation:
        """Flip a coupon's ``is_active`` flag and mirror it to Shopify."""
        coupon = self.get_coupon(coupon_id, shop)
        coupon = self.coupon_repo.set_active(coupon, not coupon.is_active)
        return CouponMutation(coupon=coupon, synced=self.sync.sync_toggled(coupon))

    def delete_coupon(self, coupon_id: int, shop: str) -> bool:
        """Delete a coupon, removing its Shopify discount first.

        Returns:
            Whether the Shopify discount was removed (True when none was linked).
        """
        coupon = self.get_coupon(coupon_id, shop)
        synced = self.sync.sync_deleted(coupon)
        self.coupon_repo.delete(coupon)
        logger.info("Deleted coupon %s for %s", coupon_id, shop)
        return synced

    def bulk_delete_coupons(self, coupon_ids: Sequence[int], shop: str) -> int:
        """Delete several coupons of a shop.

        Shopify discounts are removed one at a time before the local rows are
        deleted in a single statement. A failed removal does not stop the
        local delete. IDs of other shops are ignored.

        Returns:
            Number of coupons deleted.
        """
        for coupon in self.coupon_repo.get_many_by_ids(coupon_ids, shop):
            self.sync.sync_deleted(coupon)

        deleted = self.coupon_repo.delete_many(coupon_ids, shop)
        logger.info("Bulk deleted %d coupons for %s", deleted, shop)
        return deleted
