from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from motoverse.api.deps import get_admin_session, get_storefront
from motoverse.core.config import LOW_STOCK_THRESHOLD, TREND_WINDOWS
from motoverse.models.schemas import CategorySales, DashboardMetrics, Growth, RevenuePoint, TopProduct
from motoverse.services import analytics
from motoverse.services.diagnostics import run_diagnostics
from motoverse.storefront import Storefront

router = APIRouter()


def _snapshot(store: Storefront):
    return store.orders.orders or [], store.catalog.products or ()


@router.get("/metrics", response_model=DashboardMetrics)
def metrics(admin=Depends(get_admin_session), store: Storefront = Depends(get_storefront)):
    orders, products = _snapshot(store)
    return analytics.dashboard_metrics(orders, products, low_stock_threshold=LOW_STOCK_THRESHOLD)


@router.get("/trend", response_model=List[RevenuePoint])
def trend(days: int = 30, admin=Depends(get_admin_session), store: Storefront = Depends(get_storefront)):
    if days not in TREND_WINDOWS:
        raise HTTPException(status_code=400, detail=f"days must be one of {', '.join(map(str, TREND_WINDOWS))}")
    orders, _ = _snapshot(store)
    return analytics.revenue_trend(orders, days)


@router.get("/categories", response_model=List[CategorySales])
def categories(admin=Depends(get_admin_session), store: Storefront = Depends(get_storefront)):
    orders, products = _snapshot(store)
    return analytics.sales_by_category(orders, products)


@router.get("/top-products", response_model=List[TopProduct])
def top_products(
    limit: int = Query(5, ge=1, le=50),
    admin=Depends(get_admin_session),
    store: Storefront = Depends(get_storefront),
):
    orders, _ = _snapshot(store)
    return analytics.top_products(orders, limit)


@router.get("/growth", response_model=Growth)
def growth(admin=Depends(get_admin_session), store: Storefront = Depends(get_storefront)):
    orders, _ = _snapshot(store)
    return analytics.growth(orders)


@router.get("/revenue-split")
def revenue_split(admin=Depends(get_admin_session), store: Storefront = Depends(get_storefront)):
    orders, _ = _snapshot(store)
    return analytics.revenue_split(orders)


@router.get("/diagnostics", response_class=PlainTextResponse)
def diagnostics(admin=Depends(get_admin_session), store: Storefront = Depends(get_storefront)):
    return run_diagnostics(store.gateway, store.session)
