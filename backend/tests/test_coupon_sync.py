"""Tests for best-effort Shopify sync of coupons."""

import logging

import httpx
import pytest

from coupon_admin.services.coupon_sync import CouponSyncService
from coupon_admin.services.shopify_discount import (
    DiscountDeleteResult,
    DiscountMutationResult,
    DiscountUserError,
    ShopifyDiscountError,
)
from tests.conftest import DISCOUNT_ID, FUNCTION_ID


@pytest.fixture
def sync(db_session, gateway):
    return CouponSyncService(db_session, gateway)


@pytest.fixture
def linked_coupon(make_coupon):
    return make_coupon(shopify_discount_id=DISCOUNT_ID)


class TestSyncCreated:
    def test_links_discount_id(self, sync, gateway, make_coupon, db_session):
        coupon = make_coupon()

        assert sync.sync_created(coupon) is True

        gateway.create_discount.assert_called_once_with(FUNCTION_ID, coupon)
        db_session.refresh(coupon)
        assert coupon.shopify_discount_id == DISCOUNT_ID

    def test_missing_function_is_reported(self, sync, gateway, make_coupon, caplog):
        gateway.get_function_id.side_effect = ShopifyDiscountError("function not found")
        coupon = make_coupon()

        with caplog.at_level(logging.ERROR, logger="coupon_admin.services.coupon_sync"):
            assert sync.sync_created(coupon) is False

        gateway.create_discount.assert_not_called()
        assert coupon.shopify_discount_id is None
        assert "Failed to create Shopify discount" in caplog.text

    def test_network_error_is_reported(self, sync, gateway, make_coupon):
        gateway.create_discount.side_effect = httpx.ConnectError("Connection refused")
        coupon = make_coupon()

        assert sync.sync_created(coupon) is False
        assert coupon.shopify_discount_id is None

    def test_user_errors_leave_coupon_unlinked(self, sync, gateway, make_coupon, caplog):
        gateway.create_discount.return_value = DiscountMutationResult(
            user_errors=[DiscountUserError(field=["code"], message="Code taken")]
        )
        coupon = make_coupon()

        with caplog.at_level(logging.WARNING, logger="coupon_admin.services.coupon_sync"):
            assert sync.sync_created(coupon) is False

        assert coupon.shopify_discount_id is None
        assert "code: Code taken" in caplog.text

    def test_empty_discount_id(self, sync, gateway, make_coupon):
        gateway.create_discount.return_value = DiscountMutationResult(id="")
        assert sync.sync_created(make_coupon()) is False

    def test_unexpected_errors_propagate(self, sync, gateway, make_coupon):
        gateway.create_discount.side_effect = KeyError("id")
        with pytest.raises(KeyError):
            sync.sync_created(make_coupon())


class TestSyncUpdated:
    def test_unlinked_coupon_skips_api(self, sync, gateway, make_coupon):
        assert sync.sync_updated(make_coupon()) is True
        gateway.update_discount.assert_not_called()

    def test_pushes_linked_coupon(self, sync, gateway, linked_coupon):
        assert sync.sync_updated(linked_coupon) is True
        gateway.update_discount.assert_called_once_with(DISCOUNT_ID, linked_coupon)

    def test_failure_reported(self, sync, gateway, linked_coupon):
        gateway.update_discount.side_effect = httpx.ReadTimeout("timed out")
        assert sync.sync_updated(linked_coupon) is False

    def test_user_errors_reported(self, sync, gateway, linked_coupon):
        gateway.update_discount.return_value = DiscountMutationResult(
            id=DISCOUNT_ID,
            user_errors=[DiscountUserError(field=[], message="Invalid")],
        )
        assert sync.sync_updated(linked_coupon) is False


class TestSyncToggled:
    def test_unlinked_coupon_skips_api(self, sync, gateway, make_coupon):
        assert sync.sync_toggled(make_coupon(is_active=False)) is True
        gateway.activate_discount.assert_not_called()
        gateway.deactivate_discount.assert_not_called()

    def test_active_coupon_activates(self, sync, gateway, linked_coupon):
        assert sync.sync_toggled(linked_coupon) is True
        gateway.activate_discount.assert_called_once_with(DISCOUNT_ID)
        gateway.deactivate_discount.assert_not_called()

    def test_inactive_coupon_deactivates(self, sync, gateway, make_coupon):
        coupon = make_coupon(shopify_discount_id=DISCOUNT_ID, is_active=False)
        assert sync.sync_toggled(coupon) is True
        gateway.deactivate_discount.assert_called_once_with(DISCOUNT_ID)
        gateway.activate_discount.assert_not_called()

    def test_user_errors_reported(self, sync, gateway, linked_coupon):
        gateway.activate_discount.return_value = [
            DiscountUserError(field=["id"], message="Discount does not exist")
        ]
        assert sync.sync_toggled(linked_coupon) is False

    def test_failure_reported(self, sync, gateway, linked_coupon):
        gateway.activate_discount.side_effect = ShopifyDiscountError("GraphQL errors")
        assert sync.sync_toggled(linked_coupon) is False


class TestSyncDeleted:
    def test_unlinked_coupon_skips_api(self, sync, gateway, make_coupon):
        assert sync.sync_deleted(make_coupon()) is True
        gateway.delete_discount.assert_not_called()

    def test_deletes_linked_discount(self, sync, gateway, linked_coupon):
        assert sync.sync_deleted(linked_coupon) is True
        gateway.delete_discount.assert_called_once_with(DISCOUNT_ID)

    def test_failure_reported(self, sync, gateway, linked_coupon):
        gateway.delete_discount.side_effect = httpx.ConnectError("Connection refused")
        assert sync.sync_deleted(linked_coupon) is False

    def test_user_errors_reported(self, sync, gateway, linked_coupon):
        gateway.delete_discount.return_value = DiscountDeleteResult(
            user_errors=[DiscountUserError(field=["id"], message="Not found")]
        )
        assert sync.sync_deleted(linked_coupon) is False
