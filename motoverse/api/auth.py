from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from motoverse.api.deps import get_admin_session, get_storefront
from motoverse.core.exceptions import AuthenticationFailed
from motoverse.models.schemas import Token
from motoverse.storefront import Storefront

router = APIRouter()


@router.post("/token", response_model=Token)
def token(form_data: OAuth2PasswordRequestForm = Depends(), store: Storefront = Depends(get_storefront)):
    try:
        session = store.session.sign_in(form_data.username, form_data.password)
    except AuthenticationFailed as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    return {"access_token": session.access_token, "token_type": "bearer"}


@router.post("/logout")
def logout(admin=Depends(get_admin_session), store: Storefront = Depends(get_storefront)):
    store.session.sign_out()
    return {"signed_out": True}


@router.get("/session")
def session(store: Storefront = Depends(get_storefront)):
    current = store.session.current
    return {"authenticated": current is not None, "email": current.email if current else None}
