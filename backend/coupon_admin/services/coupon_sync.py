"""Best-effort mirroring of coupons to Shopify discounts.

The local coupon is the source of truth. Every method here makes at most one
Admin API round trip, never retries, and never raises for an API failure:
failures are logged and reported as ``False`` so callers can flag them
without undoing the local change.
"""

import logging

import httpx
from sqlalchemy.orm import Session

from coupon_admin.models.coupon import Coupon
from coupon_admin.repositories.coupon_repository import CouponRepository
from coupon_admin.services.shopify_discount import (
    DiscountUserError,
    ShopifyDiscountError,
    ShopifyDiscountGateway,
)

logger = logging.getLogger(__name__)

SYNC_ERRORS = (httpx.HTTPError, ShopifyDiscountError)


def _format_user_errors(user_errors: list[DiscountUserError]) -> str:
    return "; ".join(
        f"{'.'.join(e.field)}: {e.message}" if e.field else e.message for e in user_errors
    )


class CouponSyncService:
    """Keeps Shopify code discounts in step with local coupons."""

    def __init__(self, db: Session, gateway: ShopifyDiscountGateway):
        self.db = db
        self.gateway = gateway
        self.coupon_repo = CouponRepository(db)

    def sync_created(self, coupon: Coupon) -> bool:
        """Create the Shopify discount for a new coupon and store its ID.

        Returns:
            True if the discount was created and linked, False otherwise.
        """
        try:
            function_id = self.gateway.get_function_id()
            result = self.gateway.create_discount(function_id, coupon)
        except SYNC_ERRORS:
            logger.exception("Failed to create Shopify discount for coupon %s", coupon.id)
            return False

        if result.user_errors:
            logger.warning(
                "Shopify rejected discount for coupon %s: %s",
                coupon.id,
                _format_user_errors(result.user_errors),
            )
            return False
        if not result.id:
            logger.warning("Shopify returned no discount ID for coupon %s", coupon.id)
            return False

        self.coupon_repo.set_shopify_discount_id(coupon, result.id)
        logger.info("Linked coupon %s to Shopify discount %s", coupon.id, result.id)
        return True

    def sync_updated(self, coupon: Coupon) -> bool:
        """Push an edited coupon to its Shopify discount, if it has one."""
        if not coupon.shopify_discount_id:
            return True

        try:
            result = self.gateway.update_discount(str(coupon.shopify_discount_id), coupon)
        except SYNC_ERRORS:
            logger.exception("Failed to update Shopify discount for coupon %s", coupon.id)
            return False

        if result.user_errors:
            logger.warning(
                "Shopify rejected update for coupon %s: %s",
                coupon.id,
                _format_user_errors(result.user_errors),
            )
            return False
        return True

    def sync_toggled(self, coupon: Coupon) -> bool:
        """Activate or deactivate the Shopify discount to match ``is_active``."""
        if not coupon.shopify_discount_id:
            return True

        discount_id = str(coupon.shopify_discount_id)
        try:
            if coupon.is_active:
                user_errors = self.gateway.activate_discount(discount_id)
            else:
                user_errors = self.gateway.deactivate_discount(discount_id)
        except SYNC_ERRORS:
            logger.exception("Failed to toggle Shopify discount for coupon %s", coupon.id)
            return False

        if user_errors:
            logger.warning(
                "Shopify rejected toggle for coupon %s: %s",
                coupon.id,
                _format_user_errors(user_errors),
            )
            return False
        return True

    def sync_deleted(self, coupon: Coupon) -> bool:
        """Delete the Shopify discount of a coupon that is about to be deleted."""
        if not coupon.shopify_discount_id:
            return True

        try:
            result = self.gateway.delete_discount(str(coupon.shopify_discount_id))
        except SYNC_ERRORS:
            logger.exception("Failed to delete Shopify discount for coupon %s", coupon.id)
            return False

        if result.user_errors:
            logger.warning(
                "Shopify rejected delete for coupon %s: %s",
                coupon.id,
                _format_user_errors(result.user_errors),
            )
            return False
        return True
