from fastapi import APIRouter, Depends, HTTPException

from motoverse.api.deps import get_cart, get_storefront
from motoverse.models.schemas import CartItemIn, CartOut, QuantityUpdate
from motoverse.services.cart import Cart
from motoverse.storefront import Storefront

router = APIRouter()


def _cart_out(cart: Cart) -> CartOut:
    return CartOut(items=cart.items, total=cart.total(), count=cart.count())


@router.get("/", response_model=CartOut)
def get_cart_contents(cart: Cart = Depends(get_cart)):
    return _cart_out(cart)


@router.post("/items", response_model=CartOut)
def add_to_cart(item: CartItemIn, cart: Cart = Depends(get_cart), store: Storefront = Depends(get_storefront)):
    product = store.catalog.get(item.product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    cart.add(product)
    return _cart_out(cart)


@router.patch("/items/{product_id}", response_model=CartOut)
def update_quantity(product_id: str, payload: QuantityUpdate, cart: Cart = Depends(get_cart)):
    cart.update_quantity(product_id, payload.delta)
    return _cart_out(cart)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(product_id: str, cart: Cart = Depends(get_cart)):
    cart.remove(product_id)
    return _cart_out(cart)
