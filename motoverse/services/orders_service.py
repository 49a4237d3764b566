"""Checkout: turn the cart into an order, persist it, hand it off to WhatsApp.

Persistence is attempted first but is not allowed to block the customer. If
the insert fails the order still goes out through the WhatsApp handoff and
the user is told the database write failed. A double submit creates two
orders; every attempt gets a fresh id.
"""

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from urllib.parse import quote

from motoverse.core.config import CURRENCY, WHATSAPP_NUMBER
from motoverse.core.exceptions import CheckoutError, InvalidStatusTransition
from motoverse.db.gateway import RemoteGateway
from motoverse.models.schemas import CartItem, CheckoutIn, CheckoutOut, Order, OrderStatus
from motoverse.services.cart import Cart

logger = logging.getLogger(__name__)

PERSIST_FAILED_NOTICE = "Failed to save order to database. Proceeding to WhatsApp anyway."
ORDER_PLACED_NOTICE = "Order placed! Redirecting to WhatsApp..."

STATUS_FLOW = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}


def materialize_order(items: Iterable[CartItem], details: CheckoutIn, now: Optional[datetime] = None) -> Order:
    lines = tuple(item.model_copy(deep=True) for item in items)
    return Order(
        id=str(uuid.uuid4()),
        customer_name=details.customer_name,
        customer_phone=details.customer_phone,
        customer_address=details.customer_address,
        items=lines,
        total=sum((line.line_total for line in lines), 0.0),
        created_at=now or datetime.now(timezone.utc),
        status=OrderStatus.PENDING,
    )


def format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return f"{int(amount):,}"
    return f"{amount:,.2f}"


def compose_order_message(order: Order, currency: str = CURRENCY) -> str:
    lines = [
        "*New Order from MotoVerse!* \U0001F3CD\ufe0f",
        "",
        f"*Customer:* {order.customer_name}",
        f"*Phone:* {order.customer_phone}",
        f"*Address:* {order.customer_address}",
        "",
        "*Order Details:*",
    ]
    lines += [f"- {item.quantity}x {item.product.name}" for item in order.items]
    lines += ["", f"*Total:* {format_amount(order.total)} {currency}"]
    return "\n".join(lines)


def handoff_link(message: str, phone_number: str = WHATSAPP_NUMBER) -> str:
    digits = "".join(ch for ch in phone_number if ch.isdigit())
    return f"https://wa.me/{digits}?text={quote(message, safe='')}"


class OrderBook:
    """Client-side copy of the orders table, newest first."""

    def __init__(self):
        self._orders: Optional[List[Order]] = None
        self._lock = threading.Lock()

    @property
    def orders(self) -> Optional[List[Order]]:
        return None if self._orders is None else list(self._orders)

    @property
    def loaded(self) -> bool:
        return self._orders is not None

    def _sorted(self, orders):
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def replace(self, orders: Iterable[Order]):
        with self._lock:
            self._orders = self._sorted(orders)

    def prepend(self, order: Order):
        with self._lock:
            existing = [o for o in self._orders or [] if o.id != order.id]
            self._orders = self._sorted([order] + existing)

    def get(self, order_id: str) -> Optional[Order]:
        return next((o for o in self._orders or [] if o.id == order_id), None)

    def _swap(self, order: Order):
        with self._lock:
            self._orders = [order if o.id == order.id else o for o in self._orders or []]

    def update_status(self, order_id: str, status: OrderStatus, gateway: RemoteGateway) -> Optional[Order]:
        """Move an order along its status flow. Returns None when the gateway write fails."""
        order = self.get(order_id)
        if order is None:
            raise InvalidStatusTransition(f"Order {order_id} not found")
        if order.status == status:
            return order
        if status not in STATUS_FLOW[order.status]:
            raise InvalidStatusTransition(f"Cannot move order from {order.status.value} to {status.value}")

        saved = gateway.update_order_status(order_id, status)
        if saved is None:
            return None
        self._swap(saved)
        logger.info(f"Order {order_id} moved to {status.value}")
        return saved

    def delete(self, order_id: str, gateway: RemoteGateway) -> bool:
        if not gateway.delete_order(order_id):
            return False
        with self._lock:
            self._orders = [o for o in self._orders or [] if o.id != order_id]
        return True


def checkout(
    cart: Cart,
    details: CheckoutIn,
    gateway: RemoteGateway,
    order_book: OrderBook,
    phone_number: str = WHATSAPP_NUMBER,
    currency: str = CURRENCY,
    now: Optional[datetime] = None,
) -> CheckoutOut:
    if cart.is_empty:
        raise CheckoutError("Your cart is empty")

    order = materialize_order(cart.items, details, now=now)

    # 1. durable write, best effort
    saved = gateway.add_order(order)
    if saved is not None:
        order_book.prepend(saved)
        notice = ORDER_PLACED_NOTICE
    else:
        logger.warning(f"Order {order.id} was not persisted, continuing with WhatsApp handoff")
        notice = PERSIST_FAILED_NOTICE

    # 2. external handoff always happens
    url = handoff_link(compose_order_message(order, currency), phone_number)

    # 3. reset the storefront
    cart.clear()
    logger.info(f"Checkout complete for order {order.id} ({len(order.items)} lines, total {order.total})")
    return CheckoutOut(order=order, persisted=saved is not None, handoff_url=url, notice=notice)
