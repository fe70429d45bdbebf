# walcard/api/routers/cart.py
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from walcard.api.deps import get_context
from walcard.context import AppContext
from walcard.domain.schemas import CartItemDetails, CartResult, OrderResult

router = APIRouter(prefix="/cart", tags=["cart"])


class ItemIn(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, gt=0, description="Ilosc produktu (musi byc > 0)")


class QuantityIn(BaseModel):
    # <= 0 usuwa pozycje
    quantity: int


class CheckoutIn(BaseModel):
    notes: str | None = None


class CartOut(BaseModel):
    items: List[CartItemDetails]
    count: int
    total: Decimal


@router.get("/", response_model=CartOut)
def get_cart(ctx: AppContext = Depends(get_context)):
    svc = ctx.cart_service
    items = svc.get_cart_with_details()
    return CartOut(
        items=items,
        count=svc.get_cart_count(),
        total=sum((i.line_total for i in items), Decimal("0")),
    )


@router.get("/count")
def get_count(ctx: AppContext = Depends(get_context)):
    return {"count": ctx.cart_service.get_cart_count()}


@router.get("/total")
def get_total(ctx: AppContext = Depends(get_context)):
    return {"total": ctx.cart_service.get_cart_total()}


@router.post("/items", response_model=CartResult)
def add_item(payload: ItemIn, ctx: AppContext = Depends(get_context)):
    return ctx.cart_service.add_to_cart(payload.product_id, payload.quantity)


@router.put("/items/{product_id}", response_model=CartResult)
def update_item(product_id: str, payload: QuantityIn, ctx: AppContext = Depends(get_context)):
    return ctx.cart_service.update_quantity(product_id, payload.quantity)


@router.delete("/items/{product_id}", response_model=CartResult)
def remove_item(product_id: str, ctx: AppContext = Depends(get_context)):
    return ctx.cart_service.remove_from_cart(product_id)


@router.delete("/", response_model=CartResult)
def clear_cart(ctx: AppContext = Depends(get_context)):
    return ctx.cart_service.clear_cart()


@router.post("/checkout", response_model=OrderResult)
def checkout(payload: CheckoutIn, ctx: AppContext = Depends(get_context)):
    return ctx.cart_service.create_order_from_cart(payload.notes)
