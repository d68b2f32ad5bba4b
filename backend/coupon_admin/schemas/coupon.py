"""Coupon response schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from coupon_admin.models.coupon import Coupon, CouponStatus, DiscountType
from coupon_admin.services.coupon_service import CouponListPage
from coupon_admin.services.coupon_status import get_coupon_status


def format_discount(discount_type: str, value: Decimal | float) -> str:
    """Human readable discount label, e.g. ``25%`` or ``$8.99``."""
    if discount_type == DiscountType.PERCENTAGE.value:
        return f"{Decimal(str(value)).normalize():f}%"
    return f"${Decimal(str(value)):.2f}"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CouponResponse(CamelModel):
    id: int
    shop: str
    title: str
    code: str
    discount_type: str
    discount_value: Decimal
    minimum_purchase: Decimal | None = None
    usage_limit: int | None = None
    usage_count: int
    starts_at: datetime
    ends_at: datetime | None = None
    is_active: bool
    shopify_discount_id: str | None = None
    status: CouponStatus
    discount_label: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_coupon(cls, coupon: Coupon, now: datetime) -> "CouponResponse":
        """Build the response for *coupon* with its status at *now*."""
        return cls(
            id=coupon.id,  # type: ignore[arg-type]
            shop=coupon.shop,  # type: ignore[arg-type]
            title=coupon.title,  # type: ignore[arg-type]
            code=coupon.code,  # type: ignore[arg-type]
            discount_type=coupon.discount_type,  # type: ignore[arg-type]
            discount_value=coupon.discount_value,  # type: ignore[arg-type]
            minimum_purchase=coupon.minimum_purchase,  # type: ignore[arg-type]
            usage_limit=coupon.usage_limit,  # type: ignore[arg-type]
            usage_count=coupon.usage_count or 0,  # type: ignore[arg-type]
            starts_at=coupon.starts_at,  # type: ignore[arg-type]
            ends_at=coupon.ends_at,  # type: ignore[arg-type]
            is_active=coupon.is_active,  # type: ignore[arg-type]
            shopify_discount_id=coupon.shopify_discount_id,  # type: ignore[arg-type]
            status=get_coupon_status(
                coupon.is_active,  # type: ignore[arg-type]
                coupon.starts_at,  # type: ignore[arg-type]
                coupon.ends_at,  # type: ignore[arg-type]
                now,
            ),
            discount_label=format_discount(
                coupon.discount_type,  # type: ignore[arg-type]
                coupon.discount_value,  # type: ignore[arg-type]
            ),
            created_at=coupon.created_at,  # type: ignore[arg-type]
            updated_at=coupon.updated_at,  # type: ignore[arg-type]
        )


class CouponListResponse(CamelModel):
    """A page of coupons echoed with the canonical list parameters."""

    coupons: list[CouponResponse]
    total_count: int
    page: int
    page_size: int
    search: str
    status: list[str]
    discount_type: list[str]
    sort: str
    direction: str

    @classmethod
    def from_page(cls, page: CouponListPage, now: datetime) -> "CouponListResponse":
        params = page.params
        return cls(
            coupons=[CouponResponse.from_coupon(c, now) for c in page.coupons],
            total_count=page.total_count,
            page=params.page,
            page_size=params.page_size,
            search=params.search,
            status=params.status,
            discount_type=params.discount_type,
            sort=params.sort,
            direction=params.direction,
        )


class CouponToggleResponse(CamelModel):
    success: bool
    is_active: bool
    synced: bool


class BulkDeleteResponse(CamelModel):
    deleted: int
