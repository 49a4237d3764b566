from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from motoverse.api import admin, auth, cart, orders, products
from motoverse.core.config import APP_NAME, CORS_ORIGINS
from motoverse.core.logging import setup_logging
from motoverse.db.gateway import RemoteGateway
from motoverse.db.supabase import get_client
from motoverse.storefront import Storefront


@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.storefront is None:
        app.state.storefront = Storefront(RemoteGateway(get_client()))
    store = app.state.storefront
    await run_in_threadpool(store.start)
    yield
    await run_in_threadpool(store.stop)


def create_app(storefront: Optional[Storefront] = None) -> FastAPI:
    setup_logging()
    app = FastAPI(title=APP_NAME, lifespan=lifespan)
    app.state.storefront = storefront

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(products.router, prefix="/api/products", tags=["products"])
    app.include_router(cart.router, prefix="/api/cart", tags=["cart"])
    app.include_router(orders.router, prefix="/api/orders", tags=["orders"])
    app.include_router(admin.router, prefix="/api/admin", tags=["admin"])

    @app.get("/")
    def root():
        return {"status": "ok", "app": APP_NAME}

    return app


app = create_app()
