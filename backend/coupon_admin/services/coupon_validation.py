"""Coupon form validation.

Turns the raw strings posted by the coupon form into a typed record. Every
field is checked independently and all failures are reported together, keyed
by form field name, so the form can highlight each invalid input at once.
"""

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation

from pydantic import BaseModel

from coupon_admin.models.coupon import DiscountType

CODE_PATTERN = re.compile(r"^[A-Z0-9-]+$")
TITLE_MAX_LENGTH = 255
CODE_MIN_LENGTH = 3
CODE_MAX_LENGTH = 50
MAX_PERCENTAGE = Decimal("100")


class CouponFormData(BaseModel):
    """Raw coupon form input. Every field arrives as a possibly blank string."""

    title: str = ""
    code: str = ""
    discountType: str = ""
    discountValue: str = ""
    minimumPurchase: str = ""
    usageLimit: str = ""
    startsAt: str = ""
    endsAt: str = ""


@dataclass
class ValidatedCoupon:
    """Coupon fields that passed validation."""

    title: str
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    minimum_purchase: Decimal | None
    usage_limit: int | None
    starts_at: datetime
    ends_at: datetime | None


@dataclass
class CouponValidationResult:
    """Outcome of validating a coupon form: either data or field errors."""

    data: ValidatedCoupon | None = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors


def _parse_decimal(raw: str) -> Decimal | None:
    """Parse a finite decimal, or return None."""
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def _parse_date(raw: str) -> datetime | None:
    """Parse an ISO-8601 date or datetime into an aware UTC datetime."""
    raw = raw.strip()
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def validate_coupon_form(raw: CouponFormData) -> CouponValidationResult:
    """Validate and normalize a coupon form.

    Args:
        raw: The submitted form fields.

    Returns:
        CouponValidationResult holding the ValidatedCoupon on success, or the
        error message for every invalid field on failure.
    """
    errors: dict[str, str] = {}

    title = raw.title.strip()
    if not title:
        errors["title"] = "Title is required"
    elif len(title) > TITLE_MAX_LENGTH:
        errors["title"] = "Title must be 255 characters or less"

    code = raw.code.strip().upper()
    if not code:
        errors["code"] = "Code is required"
    elif not CODE_PATTERN.match(code):
        errors["code"] = "Code can only contain letters, numbers, and hyphens"
    elif not CODE_MIN_LENGTH <= len(code) <= CODE_MAX_LENGTH:
        errors["code"] = "Code must be between 3 and 50 characters"

    discount_type = raw.discountType
    if discount_type not in (DiscountType.PERCENTAGE.value, DiscountType.FIXED_AMOUNT.value):
        errors["discountType"] = "Discount type must be percentage or fixed amount"

    discount_value = _parse_decimal(raw.discountValue)
    if discount_value is None or discount_value <= 0:
        errors["discountValue"] = "Discount value must be a positive number"
    elif discount_type == DiscountType.PERCENTAGE.value and discount_value > MAX_PERCENTAGE:
        errors["discountValue"] = "Percentage discount cannot exceed 100"

    minimum_purchase: Decimal | None = None
    if raw.minimumPurchase.strip():
        minimum_purchase = _parse_decimal(raw.minimumPurchase)
        if minimum_purchase is None or minimum_purchase < 0:
            errors["minimumPurchase"] = "Minimum purchase must be a non-negative number"

    usage_limit: int | None = None
    if raw.usageLimit.strip():
        parsed_limit = _parse_decimal(raw.usageLimit)
        if (
            parsed_limit is None
            or parsed_limit <= 0
            or parsed_limit != parsed_limit.to_integral_value()
        ):
            errors["usageLimit"] = "Usage limit must be a positive whole number"
        else:
            usage_limit = int(parsed_limit)

    starts_at = _parse_date(raw.startsAt)
    if starts_at is None:
        errors["startsAt"] = "Start date is required"

    ends_at: datetime | None = None
    if raw.endsAt.strip():
        ends_at = _parse_date(raw.endsAt)
        if ends_at is None:
            errors["endsAt"] = "End date must be a valid date"
        elif starts_at is not None and ends_at <= starts_at:
            # Only compared against a valid start date
            errors["endsAt"] = "End date must be after start date"

    if errors:
        return CouponValidationResult(errors=errors)

    return CouponValidationResult(
        data=ValidatedCoupon(
            title=title,
            code=code,
            discount_type=DiscountType(discount_type),
            discount_value=discount_value,  # type: ignore[arg-type]
            minimum_purchase=minimum_purchase,
            usage_limit=usage_limit,
            starts_at=starts_at,  # type: ignore[arg-type]
            ends_at=ends_at,
        )
    )
