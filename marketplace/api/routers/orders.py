# marketplace/api/routers/orders.py
from fastapi import APIRouter, Depends, Query

from marketplace.api.deps import get_order_service
from marketplace.domain.schemas import OrderOut
from marketplace.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: int = Query(...),
    svc: OrderService = Depends(get_order_service),
):
    """
    Pobiera szczegoly zamowienia.
    """
    return svc.get_order(order_id, user_id)
