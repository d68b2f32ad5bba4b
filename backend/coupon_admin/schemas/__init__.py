from coupon_admin.schemas.coupon import (
    BulkDeleteResponse,
    CouponListResponse,
    CouponResponse,
    CouponToggleResponse,
)

__all__ = [
    "BulkDeleteResponse",
    "CouponListResponse",
    "CouponResponse",
    "CouponToggleResponse",
]
