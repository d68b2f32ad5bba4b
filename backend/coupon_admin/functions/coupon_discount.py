"""Checkout discount function for coupon code discounts.

Runs once per checkout computation, isolated from the admin app: it reads the
function input JSON (cart snapshot plus the discount's configuration
metafield) on stdin and writes the discounts to apply on stdout. Evaluation is
a pure function of the cart and the configuration.
"""

import json
import sys
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

DEFAULT_MESSAGE = "Coupon discount"


class DiscountApplicationStrategy(str, Enum):
    FIRST = "FIRST"


@dataclass
class CartSnapshot:
    subtotal: Decimal
    line_ids: list[str] = field(default_factory=list)


@dataclass
class DiscountConfig:
    """Function configuration stored on the Shopify discount's metafield."""

    discount_type: str | None = None
    discount_value: Decimal | None = None
    minimum_purchase: Decimal | None = None
    title: str | None = None


@dataclass
class Discount:
    target_line_ids: list[str]
    discount_type: str
    value: Decimal
    message: str


@dataclass
class DiscountResult:
    discounts: list[Discount] = field(default_factory=list)
    strategy: DiscountApplicationStrategy = DiscountApplicationStrategy.FIRST


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    return number


def evaluate_discount(cart: CartSnapshot, config: DiscountConfig | None) -> DiscountResult:
    """Decide which discount, if any, applies to *cart*.

    Args:
        cart: Subtotal and line IDs of the cart being checked out.
        config: The coupon's discount configuration.

    Returns:
        A DiscountResult with at most one discount covering every cart line.
    """
    if config is None or not config.discount_type or not config.discount_value:
        return DiscountResult()

    if config.minimum_purchase and cart.subtotal < config.minimum_purchase:
        return DiscountResult()

    if not cart.line_ids:
        return DiscountResult()

    return DiscountResult(
        discounts=[
            Discount(
                target_line_ids=list(cart.line_ids),
                discount_type=config.discount_type,
                value=config.discount_value,
                message=config.title or DEFAULT_MESSAGE,
            )
        ],
    )


def parse_config(raw: str | None) -> DiscountConfig:
    """Parse the metafield JSON; missing or malformed configuration is empty."""
    try:
        data = json.loads(raw or "{}")
    except json.JSONDecodeError:
        return DiscountConfig()
    if not isinstance(data, dict):
        return DiscountConfig()
    return DiscountConfig(
        discount_type=data.get("discountType"),
        discount_value=_to_decimal(data.get("discountValue")),
        minimum_purchase=_to_decimal(data.get("minimumPurchase")),
        title=data.get("title"),
    )


def _value_json(discount: Discount) -> dict[str, Any]:
    if discount.discount_type == "percentage":
        return {"percentage": {"value": str(discount.value)}}
    return {"fixedAmount": {"amount": str(discount.value)}}


def run(input_data: dict[str, Any]) -> dict[str, Any]:
    """Map the function input JSON to the function result JSON."""
    cart_data = input_data.get("cart") or {}
    subtotal = _to_decimal(
        ((cart_data.get("cost") or {}).get("subtotalAmount") or {}).get("amount")
    )
    cart = CartSnapshot(
        subtotal=subtotal if subtotal is not None else Decimal("0"),
        line_ids=[line["id"] for line in cart_data.get("lines") or []],
    )
    metafield = (input_data.get("discountNode") or {}).get("metafield") or {}

    result = evaluate_discount(cart, parse_config(metafield.get("value")))
    return {
        "discountApplicationStrategy": result.strategy.value,
        "discounts": [
            {
                "targets": [{"cartLine": {"id": line_id}} for line_id in d.target_line_ids],
                "value": _value_json(d),
                "message": d.message,
            }
            for d in result.discounts
        ],
    }


def main() -> None:
    json.dump(run(json.load(sys.stdin)), sys.stdout)


if __name__ == "__main__":
    main()
