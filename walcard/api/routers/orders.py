# walcard/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from walcard.api.deps import get_context, require_session
from walcard.context import AppContext
from walcard.domain import messages
from walcard.domain.schemas import ActionResult, Order, OrderStatus

router = APIRouter(prefix="/orders", tags=["orders"], dependencies=[Depends(require_session)])


@router.get("/", response_model=List[Order])
def list_orders(status: OrderStatus | None = None, ctx: AppContext = Depends(get_context)):
    return ctx.order_service.list_orders(status)


@router.get("/{order_id}", response_model=Order)
def get_order(order_id: str, ctx: AppContext = Depends(get_context)):
    order = ctx.order_service.get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail=messages.ORDER_NOT_FOUND)
    return order


@router.post("/{order_id}/cancel", response_model=ActionResult)
def cancel_order(order_id: str, ctx: AppContext = Depends(get_context)):
    return ctx.order_service.cancel_order(order_id)
