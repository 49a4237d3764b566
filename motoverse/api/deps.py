import re
import uuid

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordBearer

from motoverse.core.config import CART_COOKIE
from motoverse.core.exceptions import NotAuthenticated
from motoverse.models.schemas import Session
from motoverse.services.cart import Cart
from motoverse.storefront import Storefront

oauth2 = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)

CART_ID_PATTERN = re.compile(r"[A-Za-z0-9-]{8,64}")


def get_storefront(request: Request) -> Storefront:
    return request.app.state.storefront


def get_cart(request: Request, response: Response, store: Storefront = Depends(get_storefront)) -> Cart:
    """Each browser gets its own cart, keyed by a cookie issued on first visit."""
    cart_id = request.cookies.get(CART_COOKIE) or ""
    if not CART_ID_PATTERN.fullmatch(cart_id):
        cart_id = uuid.uuid4().hex
    response.set_cookie(CART_COOKIE, cart_id, httponly=True, samesite="lax")
    return store.cart(cart_id)


def get_admin_session(token: str = Depends(oauth2), store: Storefront = Depends(get_storefront)) -> Session:
    try:
        return store.session.verify(token)
    except NotAuthenticated as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )


def gateway_failure(action: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Could not {action}. Please try again.")
