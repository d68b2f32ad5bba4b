from coupon_admin.models.coupon import Coupon, CouponStatus, DiscountType

__all__ = [
    "Coupon",
    "CouponStatus",
    "DiscountType",
]
