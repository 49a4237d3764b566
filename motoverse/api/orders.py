from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from motoverse.api.deps import gateway_failure, get_admin_session, get_cart, get_storefront
from motoverse.core.exceptions import CheckoutError, InvalidStatusTransition
from motoverse.models.schemas import CheckoutIn, CheckoutOut, Order, StatusUpdate
from motoverse.services.cart import Cart
from motoverse.services.orders_service import checkout as run_checkout
from motoverse.storefront import Storefront

router = APIRouter()


@router.post("/checkout", response_model=CheckoutOut)
def checkout(payload: CheckoutIn, cart: Cart = Depends(get_cart), store: Storefront = Depends(get_storefront)):
    try:
        return run_checkout(cart, payload, store.gateway, store.orders)
    except CheckoutError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)


@router.get("/all", response_model=List[Order])
def all_orders(admin=Depends(get_admin_session), store: Storefront = Depends(get_storefront)):
    return store.orders.orders or []


@router.patch("/{order_id}/status", response_model=Order)
def update_status(
    order_id: str,
    payload: StatusUpdate,
    admin=Depends(get_admin_session),
    store: Storefront = Depends(get_storefront),
):
    if store.orders.get(order_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    try:
        saved = store.orders.update_status(order_id, payload.status, store.gateway)
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    if saved is None:
        raise gateway_failure("update the order status")
    return saved


@router.delete("/{order_id}")
def delete_order(order_id: str, admin=Depends(get_admin_session), store: Storefront = Depends(get_storefront)):
    if not store.orders.delete(order_id, store.gateway):
        raise gateway_failure("delete the order")
    return {"deleted": True}
