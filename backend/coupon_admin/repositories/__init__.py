from coupon_admin.repositories.coupon_repository import CouponRepository, DuplicateCouponCodeError

__all__ = [
    "CouponRepository",
    "DuplicateCouponCodeError",
]
