"""Coupon admin endpoints.

Reads are plain JSON endpoints. Writes follow the embedded admin's form
conventions: the form is posted with an ``_action`` field naming the intent,
successful writes redirect back to the list with a flag, and invalid input
comes back as ``{"errors": {field: message}}`` with status 422.
"""

from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import FormData
from starlette.responses import Response

from coupon_admin.core.auth import get_current_shop, get_discount_gateway
from coupon_admin.core.database import get_db
from coupon_admin.models.shared import utc_now
from coupon_admin.schemas.coupon import (
    BulkDeleteResponse,
    CouponListResponse,
    CouponResponse,
    CouponToggleResponse,
)
from coupon_admin.services.coupon_list_query import parse_coupon_list_params
from coupon_admin.services.coupon_service import (
    CouponNotFoundError,
    CouponService,
    CouponValidationError,
)
from coupon_admin.services.coupon_validation import CouponFormData
from coupon_admin.services.shopify_discount import ShopifyDiscountGateway

router = APIRouter()

LIST_PATH = "/app/coupons"

# Largest value a 64-bit signed INTEGER column holds
MAX_COUPON_ID = 2**63 - 1


def _to_coupon_id(raw: str) -> int | None:
    """Parse a coupon ID, or return None if it cannot name a stored coupon."""
    try:
        coupon_id = int(raw)
    except ValueError:
        return None
    if not 1 <= coupon_id <= MAX_COUPON_ID:
        return None
    return coupon_id


def _parse_coupon_id(raw: str) -> int:
    coupon_id = _to_coupon_id(raw)
    if coupon_id is None:
        raise HTTPException(status_code=404, detail="Not found")
    return coupon_id


def _coupon_form(form: FormData) -> CouponFormData:
    values = {}
    for name in CouponFormData.model_fields:
        value = form.get(name)
        values[name] = value if isinstance(value, str) else ""
    return CouponFormData(**values)


def _redirect_to_list(flag: str, synced: bool) -> RedirectResponse:
    query = {flag: "1"}
    if not synced:
        query["syncFailed"] = "1"
    return RedirectResponse(url=f"{LIST_PATH}?{urlencode(query)}", status_code=303)


def _validation_error_response(exc: CouponValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"errors": exc.errors})


def _unknown_action_response() -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Unknown action"})


def _parse_bulk_ids(values: list) -> list[int]:
    """Keep the IDs that parse; anything else is dropped."""
    coupon_ids = []
    for raw_id in values:
        if isinstance(raw_id, str):
            coupon_id = _to_coupon_id(raw_id.strip())
            if coupon_id is not None:
                coupon_ids.append(coupon_id)
    return coupon_ids


def _run_coupons_action(form: FormData, service: CouponService, shop: str) -> Response:
    intent = form.get("_action")

    if intent == "create":
        try:
            mutation = service.create_coupon(_coupon_form(form), shop)
        except CouponValidationError as exc:
            return _validation_error_response(exc)
        return _redirect_to_list("created", mutation.synced)

    if intent == "bulkDelete":
        deleted = service.bulk_delete_coupons(_parse_bulk_ids(form.getlist("ids")), shop)
        return JSONResponse(content=BulkDeleteResponse(deleted=deleted).model_dump(by_alias=True))

    return _unknown_action_response()


def _run_coupon_action(
    coupon_id: int, form: FormData, service: CouponService, shop: str
) -> Response:
    intent = form.get("_action") or "update"

    try:
        service.get_coupon(coupon_id, shop)

        if intent == "delete":
            synced = service.delete_coupon(coupon_id, shop)
            return _redirect_to_list("deleted", synced)

        if intent == "toggle":
            mutation = service.toggle_coupon(coupon_id, shop)
            body = CouponToggleResponse(
                success=True,
                is_active=bool(mutation.coupon.is_active),
                synced=mutation.synced,
            )
            return JSONResponse(content=body.model_dump(by_alias=True))

        if intent == "update":
            try:
                mutation = service.update_coupon(coupon_id, _coupon_form(form), shop)
            except CouponValidationError as exc:
                return _validation_error_response(exc)
            return _redirect_to_list("updated", mutation.synced)
    except CouponNotFoundError:
        raise HTTPException(status_code=404, detail="Not found") from None

    return _unknown_action_response()


@router.get(
    "",
    response_model=CouponListResponse,
    summary="List coupons",
    responses={401: {"description": "Unauthorized"}},
)
async def list_coupons(
    request: Request,
    db: Session = Depends(get_db),
    shop: str = Depends(get_current_shop),
    gateway: ShopifyDiscountGateway = Depends(get_discount_gateway),
) -> CouponListResponse:
    """List coupons with search, status/type filters, sorting and pagination."""
    params = parse_coupon_list_params(request.query_params)
    now = utc_now()
    page = CouponService(db, gateway).list_coupons(shop, params, now)
    return CouponListResponse.from_page(page, now)


@router.post(
    "",
    response_model=None,
    summary="Create or bulk delete coupons",
    responses={
        303: {"description": "Coupon created"},
        400: {"description": "Unknown action"},
        401: {"description": "Unauthorized"},
        422: {"description": "Validation error"},
    },
)
async def coupons_action(
    request: Request,
    db: Session = Depends(get_db),
    shop: str = Depends(get_current_shop),
    gateway: ShopifyDiscountGateway = Depends(get_discount_gateway),
) -> Response:
    """Handle the ``create`` and ``bulkDelete`` intents.

    Writes call out to Shopify over a blocking client, so they run in the
    threadpool once the form has been read.
    """
    form = await request.form()
    service = CouponService(db, gateway)
    return await run_in_threadpool(_run_coupons_action, form, service, shop)


@router.get(
    "/{coupon_id}",
    response_model=CouponResponse,
    summary="Get coupon",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Coupon not found"},
    },
)
async def get_coupon(
    coupon_id: str,
    db: Session = Depends(get_db),
    shop: str = Depends(get_current_shop),
    gateway: ShopifyDiscountGateway = Depends(get_discount_gateway),
) -> CouponResponse:
    """Get a coupon by ID."""
    try:
        coupon = CouponService(db, gateway).get_coupon(_parse_coupon_id(coupon_id), shop)
    except CouponNotFoundError:
        raise HTTPException(status_code=404, detail="Not found") from None
    return CouponResponse.from_coupon(coupon, utc_now())


@router.post(
    "/{coupon_id}",
    response_model=None,
    summary="Update, toggle or delete a coupon",
    responses={
        303: {"description": "Coupon updated or deleted"},
        400: {"description": "Unknown action"},
        401: {"description": "Unauthorized"},
        404: {"description": "Coupon not found"},
        422: {"description": "Validation error"},
    },
)
async def coupon_action(
    coupon_id: str,
    request: Request,
    db: Session = Depends(get_db),
    shop: str = Depends(get_current_shop),
    gateway: ShopifyDiscountGateway = Depends(get_discount_gateway),
) -> Response:
    """Handle the ``update`` (default), ``toggle`` and ``delete`` intents.

    The coupon must exist in the shop before the intent is looked at, so an
    unknown intent on a missing coupon is a 404.
    """
    parsed_id = _parse_coupon_id(coupon_id)
    form = await request.form()
    service = CouponService(db, gateway)
    return await run_in_threadpool(_run_coupon_action, parsed_id, form, service, shop)
