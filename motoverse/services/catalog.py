"""Catalog cache and the storefront's search/filter predicates."""

import logging
import threading
from typing import Iterable, List, Optional, Sequence, Tuple

from motoverse.models.schemas import ALL, Product, ProductFilter

logger = logging.getLogger(__name__)

BRANDS = (
    "Honda",
    "Yamaha",
    "KTM",
    "Ducati",
    "BMW",
    "Kawasaki",
    "Daytona",
    "Suzuki",
    "Triumph",
    "Aprilia",
    "Harley-Davidson",
    "MV Agusta",
    "Generic",
)


def _matches(selected: str, value) -> bool:
    if selected == ALL:
        return True
    return getattr(value, "value", value) == selected


def matches_filter(product: Product, filters: ProductFilter) -> bool:
    if not _matches(filters.category, product.category):
        return False
    if not _matches(filters.brand, product.brand):
        return False
    if not _matches(filters.condition, product.condition):
        return False
    if not _matches(filters.fuel_type, product.fuel_type):
        return False

    query = filters.query.strip().lower()
    if query and query not in product.name.lower() and query not in product.description.lower():
        return False

    if filters.min_price is not None and product.price < filters.min_price:
        return False
    if filters.max_price is not None and product.price > filters.max_price:
        return False
    return True


def filter_products(products: Iterable[Product], filters: ProductFilter) -> List[Product]:
    return [p for p in products if matches_filter(p, filters)]


def available_brands(products: Iterable[Product]) -> List[str]:
    return sorted(set(BRANDS) | {p.brand for p in products if p.brand})


def price_bounds(products: Sequence[Product]) -> Tuple[float, float]:
    if not products:
        return 0.0, 0.0
    prices = [p.price for p in products]
    return min(prices), max(prices)


class CatalogStore:
    """Read-only client-side copy of the products table.

    ``products`` stays ``None`` until the first load so that an empty catalog
    can be told apart from one that has not arrived yet.
    """

    def __init__(self):
        self._products: Optional[Tuple[Product, ...]] = None
        self._lock = threading.Lock()

    @property
    def products(self) -> Optional[Tuple[Product, ...]]:
        return self._products

    @property
    def loaded(self) -> bool:
        return self._products is not None

    def replace(self, products: Iterable[Product]):
        with self._lock:
            self._products = tuple(products)
        logger.info(f"Catalog replaced with {len(self._products)} products")

    def upsert(self, product: Product):
        with self._lock:
            current = list(self._products or ())
            for i, existing in enumerate(current):
                if existing.id == product.id:
                    current[i] = product
                    break
            else:
                current.append(product)
            self._products = tuple(current)

    def discard(self, product_id: str):
        with self._lock:
            self._products = tuple(p for p in self._products or () if p.id != product_id)

    def get(self, product_id: str) -> Optional[Product]:
        return next((p for p in self._products or () if p.id == product_id), None)

    def search(self, filters: ProductFilter) -> Optional[List[Product]]:
        if self._products is None:
            return None
        return filter_products(self._products, filters)
