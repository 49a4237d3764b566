from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from motoverse.api.deps import gateway_failure, get_admin_session, get_storefront
from motoverse.core.exceptions import UploadTooLarge
from motoverse.models.schemas import ALL, Product, ProductFilter, ProductIn, UploadResult
from motoverse.services import inventory
from motoverse.services.catalog import available_brands, price_bounds
from motoverse.storefront import Storefront

router = APIRouter()


def _loaded_products(store: Storefront):
    if not store.catalog.loaded:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Catalog is still loading")
    return store.catalog.products


@router.get("/", response_model=List[Product])
def list_products(
    category: str = ALL,
    brand: str = ALL,
    condition: str = ALL,
    fuel_type: str = ALL,
    q: str = "",
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    store: Storefront = Depends(get_storefront),
):
    _loaded_products(store)
    filters = ProductFilter(
        category=category,
        brand=brand,
        condition=condition,
        fuel_type=fuel_type,
        query=q,
        min_price=min_price,
        max_price=max_price,
    )
    return store.catalog.search(filters)


@router.get("/brands", response_model=List[str])
def list_brands(store: Storefront = Depends(get_storefront)):
    return [ALL] + available_brands(_loaded_products(store))


@router.get("/price-range")
def price_range(store: Storefront = Depends(get_storefront)):
    low, high = price_bounds(_loaded_products(store))
    return {"min": low, "max": high}


@router.get("/{product_id}", response_model=Product)
def get_product(product_id: str, store: Storefront = Depends(get_storefront)):
    _loaded_products(store)
    product = store.catalog.get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Not found")
    return product


@router.post("/", response_model=Product, status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductIn, admin=Depends(get_admin_session), store: Storefront = Depends(get_storefront)):
    saved = inventory.save_product(payload, store.gateway, store.catalog)
    if saved is None:
        raise gateway_failure("save the product")
    return saved


@router.put("/{product_id}", response_model=Product)
def update_product(
    product_id: str,
    payload: ProductIn,
    admin=Depends(get_admin_session),
    store: Storefront = Depends(get_storefront),
):
    saved = inventory.save_product(payload, store.gateway, store.catalog, product_id=product_id)
    if saved is None:
        raise gateway_failure("update the product")
    return saved


@router.delete("/{product_id}")
def delete_product(product_id: str, admin=Depends(get_admin_session), store: Storefront = Depends(get_storefront)):
    if not inventory.delete_product(product_id, store.gateway, store.catalog):
        raise gateway_failure("delete the product")
    return {"deleted": True}


@router.post("/images", response_model=UploadResult)
def upload_image(
    file: UploadFile = File(...),
    admin=Depends(get_admin_session),
    store: Storefront = Depends(get_storefront),
):
    content = file.file.read()
    try:
        result = inventory.upload_image(
            file.filename or "upload", content, file.content_type or "application/octet-stream", store.gateway
        )
    except UploadTooLarge as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=e.message)
    if result.url is None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Failed to upload image: {result.error}")
    return result
