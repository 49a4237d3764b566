"""Wiring for one running storefront: caches, carts, session and the gateway.

Remote change notifications are treated as cache invalidation. The affected
table is refetched and replaces the local copy wholesale, so the most recent
completed fetch wins and concurrent admin edits follow last-write-wins.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict

from motoverse.core.config import CART_STORAGE_KEY, CART_STORAGE_PATH
from motoverse.db.gateway import RemoteGateway
from motoverse.services.cart import Cart, LocalStorage
from motoverse.services.catalog import CatalogStore
from motoverse.services.orders_service import OrderBook
from motoverse.services.session import SessionContext

logger = logging.getLogger(__name__)

WATCHED_TABLES = ("products", "orders")


class Storefront:
    def __init__(self, gateway: RemoteGateway, storage_path=CART_STORAGE_PATH):
        self.gateway = gateway
        self.storage = LocalStorage(storage_path)
        self.catalog = CatalogStore()
        self.orders = OrderBook()
        self.session = SessionContext(gateway, self.storage)
        self._carts: Dict[str, Cart] = {}
        self._carts_lock = threading.Lock()

    def cart(self, cart_id: str) -> Cart:
        """The cart of one shopper, restored from local storage on first use."""
        with self._carts_lock:
            cart = self._carts.get(cart_id)
            if cart is None:
                cart = self._carts[cart_id] = Cart(self.storage, key=f"{CART_STORAGE_KEY}:{cart_id}")
            return cart

    def refresh_products(self):
        self.catalog.replace(self.gateway.get_products())

    def refresh_orders(self):
        self.orders.replace(self.gateway.get_orders())

    def load(self):
        with ThreadPoolExecutor(max_workers=2) as pool:
            products = pool.submit(self.gateway.get_products)
            orders = pool.submit(self.gateway.get_orders)
            self.catalog.replace(products.result())
            self.orders.replace(orders.result())

    def handle_change(self, table: str):
        logger.info(f"Remote change on {table}, refreshing")
        if table == "products":
            self.refresh_products()
        elif table == "orders":
            self.refresh_orders()

    def start(self):
        self.session.init()
        self.load()
        self.gateway.subscribe_changes(WATCHED_TABLES, self.handle_change)

    def stop(self):
        self.gateway.unsubscribe()
        self.session.teardown()
