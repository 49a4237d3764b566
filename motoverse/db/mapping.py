"""Row <-> model mapping at the Supabase boundary.

The hosted tables use camelCase columns (``fuelType``, ``customerName``,
``date`` as epoch milliseconds); the in-memory models are snake_case. All
conversions go through the two column maps below, in both directions, and
``row_to_product`` is the one place where absent optional fields on older
records are filled with their defaults.
"""

import json
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from motoverse.models.schemas import (
    DEFAULT_BRAND,
    DEFAULT_CATEGORY,
    CartItem,
    Category,
    Condition,
    FuelType,
    Order,
    OrderStatus,
    Product,
    ProductSpecs,
)

logger = logging.getLogger(__name__)

# model field -> table column
PRODUCT_COLUMNS = {
    "id": "id",
    "name": "name",
    "brand": "brand",
    "category": "category",
    "price": "price",
    "image": "image",
    "description": "description",
    "stock": "stock",
    "specs": "specs",
    "condition": "condition",
    "fuel_type": "fuelType",
}

ORDER_COLUMNS = {
    "id": "id",
    "customer_name": "customerName",
    "customer_phone": "customerPhone",
    "customer_address": "customerAddress",
    "items": "items",
    "total": "total",
    "created_at": "date",
    "status": "status",
}


def _pick(row: Dict[str, Any], field: str, columns: Dict[str, str]):
    # accept both the persisted column name and the snake_case field name
    column = columns[field]
    if column in row:
        return row[column]
    return row.get(field)


def _enum_or_default(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


def to_epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def from_epoch(value) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            return from_epoch(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            value = float(value)
    return datetime.fromtimestamp(float(value) / 1000, tz=timezone.utc)


def parse_specs(raw) -> Optional[ProductSpecs]:
    if raw is None or raw == "":
        return None
    if isinstance(raw, str):
        raw = json.loads(raw)
    return ProductSpecs(**{k: str(v) for k, v in raw.items() if k in ProductSpecs.model_fields})


def row_to_product(row: Dict[str, Any]) -> Product:
    """Normalize a products row into a fully populated Product."""
    get = lambda field: _pick(row, field, PRODUCT_COLUMNS)  # noqa: E731
    return Product(
        id=str(get("id")),
        name=get("name") or "",
        brand=get("brand") or DEFAULT_BRAND,
        category=_enum_or_default(Category, get("category"), DEFAULT_CATEGORY),
        price=float(get("price") or 0),
        image=get("image") or "",
        description=get("description") or "",
        stock=int(get("stock") or 0),
        specs=parse_specs(get("specs")),
        condition=_enum_or_default(Condition, get("condition"), Condition.NEW),
        fuel_type=_enum_or_default(FuelType, get("fuel_type"), FuelType.PETROL),
    )


def product_to_row(product: Product) -> Dict[str, Any]:
    data = product.model_dump(mode="json")
    return {PRODUCT_COLUMNS[field]: value for field, value in data.items()}


def _line_to_row(item: CartItem) -> Dict[str, Any]:
    # order lines are stored flat: the product snapshot plus its quantity
    row = product_to_row(item.product)
    row["quantity"] = item.quantity
    return row


def _row_to_line(row: Dict[str, Any]) -> CartItem:
    return CartItem(product=row_to_product(row), quantity=int(row.get("quantity") or 1))


def row_to_order(row: Dict[str, Any]) -> Order:
    get = lambda field: _pick(row, field, ORDER_COLUMNS)  # noqa: E731
    items = get("items") or []
    if isinstance(items, str):
        items = json.loads(items)
    order = Order(
        id=str(get("id")),
        customer_name=get("customer_name") or "",
        customer_phone=get("customer_phone") or "",
        customer_address=get("customer_address") or "",
        items=tuple(_row_to_line(line) for line in items),
        total=float(get("total") or 0),
        created_at=from_epoch(get("created_at")),
        status=_enum_or_default(OrderStatus, get("status"), OrderStatus.PENDING),
    )
    # the stored total is what the customer was quoted
    if not math.isclose(order.total, order.items_total, abs_tol=0.005):
        logger.warning(f"Order {order.id} total {order.total} differs from its lines ({order.items_total})")
    return order


def order_to_row(order: Order) -> Dict[str, Any]:
    return {
        ORDER_COLUMNS["id"]: order.id,
        ORDER_COLUMNS["customer_name"]: order.customer_name,
        ORDER_COLUMNS["customer_phone"]: order.customer_phone,
        ORDER_COLUMNS["customer_address"]: order.customer_address,
        ORDER_COLUMNS["items"]: [_line_to_row(item) for item in order.items],
        ORDER_COLUMNS["total"]: order.total,
        ORDER_COLUMNS["created_at"]: to_epoch_ms(order.created_at),
        ORDER_COLUMNS["status"]: order.status.value,
    }
