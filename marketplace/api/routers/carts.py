#marketplace/api/routers/carts.py
from dataclasses import asdict

from fastapi import APIRouter, Depends, Query, Response

from marketplace.api.deps import get_cart_service
from marketplace.domain.schemas import (
    CartLineOut,
    CartOut,
    CartSummaryOut,
    CheckoutIn,
    ItemIn,
    ItemUpdateIn,
    OrderOut,
    ValidationReportOut,
)
from marketplace.domain.values import DeliveryInfo, ValidationReport
from marketplace.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def _report_out(report: ValidationReport) -> dict:
    return {
        "valid": report.valid,
        "line_issues": [i.to_dict() for i in report.line_issues],
        "error": report.error.value if report.error else None,
        "price_changed": report.price_changed,
    }


@router.get("/", response_model=CartOut)
def get_cart(user_id: int = Query(...), svc: CartService = Depends(get_cart_service)):
    return asdict(svc.get_cart(user_id))


@router.get("/summary", response_model=CartSummaryOut)
def get_cart_summary(user_id: int = Query(...), svc: CartService = Depends(get_cart_service)):
    summary = svc.get_cart_summary(user_id)
    data = asdict(summary)
    data["issues"] = [i.to_dict() for i in summary.issues]
    data["needs_attention"] = summary.needs_attention
    return data


@router.post("/items", response_model=CartLineOut, status_code=201)
def add_item(
    payload: ItemIn,
    user_id: int = Query(...),
    svc: CartService = Depends(get_cart_service),
):
    return asdict(svc.add_to_cart(user_id, payload.product_id, payload.quantity))


@router.patch("/items/{line_id}", response_model=CartLineOut)
def update_item(
    line_id: int,
    payload: ItemUpdateIn,
    user_id: int = Query(...),
    svc: CartService = Depends(get_cart_service),
):
    line = svc.update_cart_item(user_id, line_id, payload.quantity)
    if line is None:
        #quantity 0 - pozycja usunieta
        return Response(status_code=204)
    return asdict(line)


@router.delete("/items/{line_id}", status_code=204)
def remove_item(
    line_id: int,
    user_id: int = Query(...),
    svc: CartService = Depends(get_cart_service),
):
    svc.remove_from_cart(user_id, line_id)
    return Response(status_code=204)


@router.delete("/", response_model=CartOut)
def clear_cart(user_id: int = Query(...), svc: CartService = Depends(get_cart_service)):
    svc.clear_cart(user_id)
    return asdict(svc.get_cart(user_id))


@router.get("/validate", response_model=ValidationReportOut)
def validate_cart(user_id: int = Query(...), svc: CartService = Depends(get_cart_service)):
    return _report_out(svc.validate_cart_for_checkout(user_id))


@router.post("/confirm-prices", response_model=CartOut)
def confirm_prices(user_id: int = Query(...), svc: CartService = Depends(get_cart_service)):
    return asdict(svc.confirm_prices(user_id))


@router.post("/checkout", response_model=OrderOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    user_id: int = Query(...),
    svc: CartService = Depends(get_cart_service),
):
    """
    Tworzy zamowienie z koszyka i czysci koszyk.
    Przy bledzie koszyk zostaje bez zmian i mozna ponowic.
    """
    address = payload.delivery_address
    delivery_info = DeliveryInfo(
        latitude=address.latitude,
        longitude=address.longitude,
        address=address.address,
        city=address.city,
        state=address.state,
        instructions=address.instructions,
        payment_method_id=payload.payment_method_id,
        special_instructions=payload.special_instructions,
    )
    return svc.convert_cart_to_order(user_id, delivery_info)
