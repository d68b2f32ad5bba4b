"""Coupon model for shop discount codes."""

from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)

from coupon_admin.core.database import Base


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class CouponStatus(str, Enum):
    """Display status derived from ``is_active`` and the date window. Never stored."""

    ACTIVE = "active"
    SCHEDULED = "scheduled"
    EXPIRED = "expired"
    INACTIVE = "inactive"


class Coupon(Base):
    """Coupon model, optionally mirrored to a Shopify code discount."""

    __tablename__ = "coupons"
    __table_args__ = (UniqueConstraint("shop", "code", name="uq_coupons_shop_code"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    shop = Column(String(255), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False, index=True)

    discount_type = Column(String(20), nullable=False)
    discount_value = Column(Numeric(12, 2), nullable=False)
    minimum_purchase = Column(Numeric(12, 2), nullable=True)

    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)

    starts_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    shopify_discount_id = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
