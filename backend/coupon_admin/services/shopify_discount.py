"""Shopify Admin GraphQL client for app code discounts.

Each coupon can be mirrored as a Shopify code discount backed by the
``coupon-discount`` function. This module only talks to the Admin API; it
does not touch the database and does not swallow errors.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx

from coupon_admin.core.config import settings
from coupon_admin.models.coupon import Coupon
from coupon_admin.models.shared import as_utc

FUNCTION_API_TYPE = "product_discounts"
METAFIELD_NAMESPACE = "$app:coupon-discount"
METAFIELD_KEY = "function-configuration"

FUNCTIONS_QUERY = """
query {
  shopifyFunctions(first: 25) {
    nodes {
      id
      title
      apiType
    }
  }
}
"""

CREATE_MUTATION = """
mutation discountCodeAppCreate($codeAppDiscount: DiscountCodeAppInput!) {
  discountCodeAppCreate(codeAppDiscount: $codeAppDiscount) {
    codeAppDiscount {
      discountId
    }
    userErrors {
      field
      message
    }
  }
}
"""

UPDATE_MUTATION = """
mutation discountCodeAppUpdate($id: ID!, $codeAppDiscount: DiscountCodeAppInput!) {
  discountCodeAppUpdate(id: $id, codeAppDiscount: $codeAppDiscount) {
    codeAppDiscount {
      discountId
    }
    userErrors {
      field
      message
    }
  }
}
"""

DELETE_MUTATION = """
mutation discountCodeDelete($id: ID!) {
  discountCodeDelete(id: $id) {
    deletedCodeDiscountId
    userErrors {
      field
      message
    }
  }
}
"""

ACTIVATE_MUTATION = """
mutation discountCodeActivate($id: ID!) {
  discountCodeActivate(id: $id) {
    codeDiscountNode {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""

DEACTIVATE_MUTATION = """
mutation discountCodeDeactivate($id: ID!) {
  discountCodeDeactivate(id: $id) {
    codeDiscountNode {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""


class ShopifyDiscountError(Exception):
    """Raised when the Admin API answers with GraphQL errors or an unexpected payload."""


@dataclass
class DiscountUserError:
    field: list[str]
    message: str


@dataclass
class DiscountMutationResult:
    """Result of a create or update mutation."""

    id: str = ""
    user_errors: list[DiscountUserError] = field(default_factory=list)


@dataclass
class DiscountDeleteResult:
    deleted_id: str = ""
    user_errors: list[DiscountUserError] = field(default_factory=list)


def _isoformat(value: datetime | None) -> str | None:
    return as_utc(value).isoformat() if value is not None else None


def _number(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def build_function_configuration(coupon: Coupon) -> dict[str, Any]:
    """Configuration read by the checkout function from the discount's metafield."""
    return {
        "discountType": coupon.discount_type,
        "discountValue": _number(coupon.discount_value),  # type: ignore[arg-type]
        "minimumPurchase": _number(coupon.minimum_purchase),  # type: ignore[arg-type]
        "title": coupon.title,
    }


def build_code_app_discount(coupon: Coupon) -> dict[str, Any]:
    """Map a coupon to a ``DiscountCodeAppInput``, without the function ID."""
    return {
        "title": coupon.title,
        "code": coupon.code,
        "startsAt": _isoformat(coupon.starts_at),  # type: ignore[arg-type]
        "endsAt": _isoformat(coupon.ends_at),  # type: ignore[arg-type]
        "usageLimit": coupon.usage_limit,
        "combinesWith": {
            "orderDiscounts": False,
            "productDiscounts": False,
            "shippingDiscounts": True,
        },
        "metafields": [
            {
                "namespace": METAFIELD_NAMESPACE,
                "key": METAFIELD_KEY,
                "type": "json",
                "value": json.dumps(build_function_configuration(coupon)),
            }
        ],
    }


def _user_errors(payload: dict[str, Any]) -> list[DiscountUserError]:
    return [
        DiscountUserError(field=list(error.get("field") or []), message=error.get("message", ""))
        for error in payload.get("userErrors") or []
    ]


class ShopifyDiscountGateway:
    """Admin GraphQL client for one shop."""

    def __init__(
        self,
        shop: str,
        access_token: str | None = None,
        api_version: str | None = None,
        timeout: float | None = None,
    ):
        self.shop = shop
        self.access_token = (
            access_token if access_token is not None else settings.SHOPIFY_ACCESS_TOKEN
        )
        self.api_version = api_version or settings.SHOPIFY_API_VERSION
        self.timeout = timeout if timeout is not None else settings.SHOPIFY_API_TIMEOUT

    @property
    def endpoint(self) -> str:
        return f"https://{self.shop}/admin/api/{self.api_version}/graphql.json"

    def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a GraphQL document and return its ``data`` object.

        Raises:
            httpx.HTTPError: On transport failures and non-2xx responses.
            ShopifyDiscountError: If the response carries GraphQL errors or no data.
        """
        body: dict[str, Any] = {"query": query}
        if variables is not None:
            body["variables"] = variables

        with httpx.Client(timeout=self.timeout) as client:
            resp = client.post(
                self.endpoint,
                json=body,
                headers={
                    "Content-Type": "application/json",
                    "X-Shopify-Access-Token": self.access_token,
                },
            )
        resp.raise_for_status()

        payload = resp.json()
        if payload.get("errors"):
            raise ShopifyDiscountError(f"GraphQL errors: {payload['errors']}")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise ShopifyDiscountError("GraphQL response has no data")
        return data

    def _mutation_payload(self, data: dict[str, Any], name: str) -> dict[str, Any]:
        result = data.get(name)
        if not isinstance(result, dict):
            raise ShopifyDiscountError(f"Missing {name} in GraphQL response")
        return result

    def get_function_id(self) -> str:
        """Find the ID of the deployed coupon discount function.

        Raises:
            ShopifyDiscountError: If no product discount function is deployed.
        """
        data = self.execute(FUNCTIONS_QUERY)
        nodes = (data.get("shopifyFunctions") or {}).get("nodes") or []
        for node in nodes:
            if node.get("apiType") == FUNCTION_API_TYPE:
                return str(node["id"])
        raise ShopifyDiscountError(
            "Coupon discount function not found. Has the extension been deployed?"
        )

    def create_discount(self, function_id: str, coupon: Coupon) -> DiscountMutationResult:
        """Create a code discount for *coupon* backed by *function_id*."""
        code_app_discount = build_code_app_discount(coupon)
        code_app_discount["functionId"] = function_id

        data = self.execute(CREATE_MUTATION, {"codeAppDiscount": code_app_discount})
        result = self._mutation_payload(data, "discountCodeAppCreate")
        return DiscountMutationResult(
            id=(result.get("codeAppDiscount") or {}).get("discountId") or "",
            user_errors=_user_errors(result),
        )

    def update_discount(self, shopify_discount_id: str, coupon: Coupon) -> DiscountMutationResult:
        """Push the coupon's current fields to an existing code discount."""
        data = self.execute(
            UPDATE_MUTATION,
            {"id": shopify_discount_id, "codeAppDiscount": build_code_app_discount(coupon)},
        )
        result = self._mutation_payload(data, "discountCodeAppUpdate")
        return DiscountMutationResult(
            id=(result.get("codeAppDiscount") or {}).get("discountId") or "",
            user_errors=_user_errors(result),
        )

    def delete_discount(self, shopify_discount_id: str) -> DiscountDeleteResult:
        data = self.execute(DELETE_MUTATION, {"id": shopify_discount_id})
        result = self._mutation_payload(data, "discountCodeDelete")
        return DiscountDeleteResult(
            deleted_id=result.get("deletedCodeDiscountId") or "",
            user_errors=_user_errors(result),
        )

    def activate_discount(self, shopify_discount_id: str) -> list[DiscountUserError]:
        data = self.execute(ACTIVATE_MUTATION, {"id": shopify_discount_id})
        return _user_errors(self._mutation_payload(data, "discountCodeActivate"))

    def deactivate_discount(self, shopify_discount_id: str) -> list[DiscountUserError]:
        data = self.execute(DEACTIVATE_MUTATION, {"id": shopify_discount_id})
        return _user_errors(self._mutation_payload(data, "discountCodeDeactivate"))
