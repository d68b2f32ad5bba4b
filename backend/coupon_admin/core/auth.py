from fastapi import Depends, HTTPException, Request

from coupon_admin.services.shopify_discount import ShopifyDiscountGateway

SHOP_HEADER = "X-Shopify-Shop-Domain"


def get_current_shop(request: Request) -> str:
    """Return the authenticated shop domain.

    The embedded-app session layer in front of this API authenticates the
    merchant and forwards the shop domain in the ``X-Shopify-Shop-Domain``
    header.
    """
    shop = request.headers.get(SHOP_HEADER, "").strip().lower()
    if not shop:
        raise HTTPException(status_code=401, detail=f"{SHOP_HEADER} header is required")
    return shop


def get_discount_gateway(shop: str = Depends(get_current_shop)) -> ShopifyDiscountGateway:
    """Admin API gateway for the authenticated shop."""
    return ShopifyDiscountGateway(shop)
