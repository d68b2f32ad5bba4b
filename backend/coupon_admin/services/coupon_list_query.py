"""Coupon list query building.

Query parameters for the coupon list come straight from the browser's URL and
are parsed leniently: every field has a default and invalid values are
dropped or clamped, never reported. The parsed parameters are then compiled
into a shop-scoped SQLAlchemy filter, ordering and page window.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement, UnaryExpression

from coupon_admin.core.sorting import build_order_by
from coupon_admin.models.coupon import Coupon, CouponStatus, DiscountType
from coupon_admin.services.coupon_status import status_condition

PAGE_SIZE = 10
# Offsets past this overflow a 64-bit signed OFFSET
MAX_OFFSET = 2**63 - 1

VALID_STATUSES = tuple(s.value for s in CouponStatus)
VALID_DISCOUNT_TYPES = tuple(t.value for t in DiscountType)
SORT_COLUMNS: dict[str, ColumnElement[Any]] = {
    "code": Coupon.code,
    "createdAt": Coupon.created_at,
    "discountValue": Coupon.discount_value,
}
DEFAULT_SORT = "createdAt"
DEFAULT_DIRECTION = "desc"


@dataclass
class CouponListParams:
    """Canonical coupon list parameters."""

    search: str = ""
    status: list[str] = field(default_factory=list)
    discount_type: list[str] = field(default_factory=list)
    sort: str = DEFAULT_SORT
    direction: str = DEFAULT_DIRECTION
    page: int = 1
    page_size: int = PAGE_SIZE


@dataclass
class CouponListQuery:
    """Compiled list query: filter, ordering and page window."""

    where: ColumnElement[bool]
    order_by: UnaryExpression[Any]
    offset: int
    limit: int


def _get_all(params: Any, key: str) -> list[str]:
    """Read every value of *key* from a QueryParams-like or plain mapping."""
    if hasattr(params, "getlist"):
        return list(params.getlist(key))
    values = params.get(key, [])
    if isinstance(values, str):
        return [values]
    return list(values)


def _get_first(params: Any, key: str) -> str | None:
    values = _get_all(params, key)
    return values[0] if values else None


def parse_coupon_list_params(
    params: Mapping[str, Sequence[str]] | Any,
) -> CouponListParams:
    """Parse untrusted list query parameters.

    Args:
        params: Multi-valued parameter map, either starlette QueryParams or a
            dict of value lists.

    Returns:
        CouponListParams with defaults for anything missing or invalid.
    """
    search = _get_first(params, "search") or ""
    status = [s for s in _get_all(params, "status") if s in VALID_STATUSES]
    discount_type = [d for d in _get_all(params, "discountType") if d in VALID_DISCOUNT_TYPES]

    sort = _get_first(params, "sort")
    if sort not in SORT_COLUMNS:
        sort = DEFAULT_SORT

    direction = _get_first(params, "direction")
    if direction not in ("asc", "desc"):
        direction = DEFAULT_DIRECTION

    try:
        page = int((_get_first(params, "page") or "").strip())
    except ValueError:
        page = 1
    if page < 1 or (page - 1) * PAGE_SIZE > MAX_OFFSET:
        page = 1

    return CouponListParams(
        search=search,
        status=status,
        discount_type=discount_type,
        sort=sort,
        direction=direction,
        page=page,
        page_size=PAGE_SIZE,
    )


def build_status_filter(statuses: Sequence[str], now: datetime) -> ColumnElement[bool] | None:
    """OR together the predicates for each selected status, keeping their order."""
    conditions = [status_condition(s, now) for s in statuses if s in VALID_STATUSES]
    if not conditions:
        return None
    if len(conditions) == 1:
        return conditions[0]
    return or_(*conditions)


def build_coupon_list_query(
    shop: str,
    params: CouponListParams,
    now: datetime,
) -> CouponListQuery:
    """Compile list parameters into a shop-scoped query.

    The shop condition is always present. When it is the only condition the
    filter is the bare equality clause rather than a one-element conjunction.
    """
    conditions: list[ColumnElement[bool]] = [Coupon.shop == shop]

    if params.search:
        conditions.append(
            or_(
                Coupon.code.contains(params.search, autoescape=True),
                Coupon.title.contains(params.search, autoescape=True),
            )
        )

    if params.status:
        status_filter = build_status_filter(params.status, now)
        if status_filter is not None:
            conditions.append(status_filter)

    if params.discount_type:
        conditions.append(Coupon.discount_type.in_(params.discount_type))

    where = conditions[0] if len(conditions) == 1 else and_(*conditions)

    return CouponListQuery(
        where=where,
        order_by=build_order_by(
            SORT_COLUMNS,
            params.sort,
            params.direction,
            default_field=DEFAULT_SORT,
            default_direction=DEFAULT_DIRECTION,
        ),
        offset=(params.page - 1) * params.page_size,
        limit=params.page_size,
    )
