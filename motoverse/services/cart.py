"""Cart engine with best-effort local persistence.

The cart is a list of (product, quantity) lines, at most one per product id,
with quantities clamped at 1. Every mutation writes the whole cart back to
local storage; a missing or unreadable slot simply means an empty cart.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Tuple

from pydantic import ValidationError

from motoverse.core.config import CART_STORAGE_KEY
from motoverse.models.schemas import CartItem, Product

logger = logging.getLogger(__name__)


class LocalStorage:
    """Key-value slots kept in a single JSON file, like a browser's localStorage."""

    def __init__(self, path):
        self.path = Path(path)
        # cart and session slots share one file
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, str]):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data), encoding="utf-8")
        except OSError as e:
            logger.debug(f"Local storage write to {self.path} failed: {e}")

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str):
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove_item(self, key: str):
        with self._lock:
            data = self._read()
            if data.pop(key, None) is not None:
                self._write(data)


class Cart:
    def __init__(self, storage: LocalStorage, key: str = CART_STORAGE_KEY):
        self.storage = storage
        self.key = key
        self._lock = threading.RLock()
        self._items: Tuple[CartItem, ...] = self._load()

    def _load(self) -> Tuple[CartItem, ...]:
        saved = self.storage.get_item(self.key)
        if not saved:
            return ()
        try:
            raw = json.loads(saved)
            items = tuple(CartItem.model_validate(entry) for entry in raw)
        except (ValueError, TypeError, ValidationError):
            logger.info("Stored cart is unreadable, starting with an empty cart")
            return ()
        # collapse duplicates left behind by older writers
        merged: Dict[str, CartItem] = {}
        for item in items:
            if item.id in merged:
                item = item.model_copy(update={"quantity": merged[item.id].quantity + item.quantity})
            merged[item.id] = item
        return tuple(merged.values())

    def _save(self):
        payload = json.dumps([item.model_dump(mode="json") for item in self._items])
        self.storage.set_item(self.key, payload)

    @property
    def items(self) -> Tuple[CartItem, ...]:
        return self._items

    @property
    def is_empty(self) -> bool:
        return not self._items

    def get(self, product_id: str) -> Optional[CartItem]:
        return next((i for i in self._items if i.id == product_id), None)

    def add(self, product: Product):
        """Add one unit of product, appending a new line if it is not in the cart yet."""
        with self._lock:
            if self.get(product.id) is not None:
                self._items = tuple(
                    item.model_copy(update={"quantity": item.quantity + 1}) if item.id == product.id else item
                    for item in self._items
                )
            else:
                self._items = self._items + (CartItem(product=product, quantity=1),)
            self._save()

    def update_quantity(self, product_id: str, delta: int):
        with self._lock:
            if self.get(product_id) is None:
                return
            self._items = tuple(
                item.model_copy(update={"quantity": max(1, item.quantity + delta)}) if item.id == product_id else item
                for item in self._items
            )
            self._save()

    def remove(self, product_id: str):
        with self._lock:
            if self.get(product_id) is None:
                return
            self._items = tuple(item for item in self._items if item.id != product_id)
            self._save()

    def clear(self):
        with self._lock:
            self._items = ()
            self._save()

    def total(self) -> float:
        return sum((item.line_total for item in self._items), 0.0)

    def count(self) -> int:
        return sum(item.quantity for item in self._items)
