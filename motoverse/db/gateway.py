"""Remote Gateway: every call to the hosted Supabase backend goes through here.

Failures never escape this module as raw client errors. They are logged and
turned into the sentinel each method documents (``[]``, ``None``, ``False``
or an ``UploadResult`` carrying the error text). The single exception is
sign-in, which raises ``AuthenticationFailed`` so the credential message can
be shown on the login form.
"""

import logging
import uuid
from typing import Callable, Iterable, List, Optional

import httpx
from postgrest.exceptions import APIError
from storage3.utils import StorageException
from supabase import Client
from supabase_auth.errors import AuthError

from motoverse.core.config import IMAGE_BUCKET
from motoverse.core.exceptions import AuthenticationFailed
from motoverse.db.mapping import (
    order_to_row,
    product_to_row,
    row_to_order,
    row_to_product,
)
from motoverse.models.schemas import Order, OrderStatus, Product, Session, UploadResult

logger = logging.getLogger(__name__)

REMOTE_ERRORS = (APIError, StorageException, AuthError, httpx.HTTPError)
ROW_ERRORS = (ValueError, TypeError, KeyError)


def describe(exc: Exception) -> str:
    message = getattr(exc, "message", None)
    return str(message) if message else str(exc)


def _session_from(raw) -> Optional[Session]:
    if raw is None:
        return None
    user = getattr(raw, "user", None)
    return Session(
        access_token=raw.access_token,
        refresh_token=getattr(raw, "refresh_token", None),
        email=getattr(user, "email", None),
        expires_at=getattr(raw, "expires_at", None),
    )


class RemoteGateway:
    def __init__(self, client: Client, bucket: str = IMAGE_BUCKET):
        self.client = client
        self.bucket = bucket
        self._channel = None
        self._auth_subscription = None

    # --- Products ---

    def get_products(self) -> List[Product]:
        try:
            res = self.client.table("products").select("*").execute()
        except REMOTE_ERRORS as e:
            logger.error(f"Error fetching products: {describe(e)}")
            return []
        products = []
        for row in res.data or []:
            try:
                products.append(row_to_product(row))
            except ROW_ERRORS as e:
                logger.warning(f"Skipping malformed product row {row.get('id')}: {e}")
        return products

    def add_product(self, product: Product) -> Optional[Product]:
        try:
            res = self.client.table("products").insert(product_to_row(product)).execute()
        except REMOTE_ERRORS as e:
            logger.error(f"Error adding product: {describe(e)}")
            return None
        return row_to_product(res.data[0]) if res.data else product

    def update_product(self, product: Product) -> Optional[Product]:
        try:
            res = (
                self.client.table("products")
                .update(product_to_row(product))
                .eq("id", product.id)
                .execute()
            )
        except REMOTE_ERRORS as e:
            logger.error(f"Error updating product: {describe(e)}")
            return None
        if not res.data:
            logger.error(f"Error updating product: {product.id} not found")
            return None
        return row_to_product(res.data[0])

    def delete_product(self, product_id: str) -> bool:
        try:
            self.client.table("products").delete().eq("id", product_id).execute()
        except REMOTE_ERRORS as e:
            logger.error(f"Error deleting product: {describe(e)}")
            return False
        return True

    def count_products(self) -> Optional[str]:
        """Cheap read probe. Returns None on success or the error text."""
        try:
            self.client.table("products").select("id", count="exact", head=True).execute()
        except REMOTE_ERRORS as e:
            return describe(e)
        return None

    def probe_write(self) -> Optional[str]:
        """Insert a throwaway product and delete it again. Returns None on success or the error text."""
        probe_id = str(uuid.uuid4())
        try:
            self.client.table("products").insert({
                "id": probe_id,
                "name": "Diag Test",
                "price": 0,
                "image": "test",
                "description": "test",
            }).execute()
        except REMOTE_ERRORS as e:
            return describe(e)
        self.delete_product(probe_id)
        return None

    # --- Orders ---

    def get_orders(self) -> List[Order]:
        try:
            res = self.client.table("orders").select("*").order("date", desc=True).execute()
        except REMOTE_ERRORS as e:
            logger.error(f"Error fetching orders: {describe(e)}")
            return []
        orders = []
        for row in res.data or []:
            try:
                orders.append(row_to_order(row))
            except ROW_ERRORS as e:
                logger.warning(f"Skipping malformed order row {row.get('id')}: {e}")
        return orders

    def add_order(self, order: Order) -> Optional[Order]:
        try:
            res = self.client.table("orders").insert(order_to_row(order)).execute()
        except REMOTE_ERRORS as e:
            logger.error(f"Error adding order: {describe(e)}")
            return None
        return row_to_order(res.data[0]) if res.data else order

    def update_order_status(self, order_id: str, status: OrderStatus) -> Optional[Order]:
        try:
            res = (
                self.client.table("orders")
                .update({"status": status.value})
                .eq("id", order_id)
                .execute()
            )
        except REMOTE_ERRORS as e:
            logger.error(f"Error updating order {order_id}: {describe(e)}")
            return None
        if not res.data:
            logger.error(f"Error updating order: {order_id} not found")
            return None
        return row_to_order(res.data[0])

    def delete_order(self, order_id: str) -> bool:
        try:
            self.client.table("orders").delete().eq("id", order_id).execute()
        except REMOTE_ERRORS as e:
            logger.error(f"Error deleting order {order_id}: {describe(e)}")
            return False
        return True

    # --- Storage ---

    def upload_image(self, filename: str, content: bytes, content_type: str = "application/octet-stream") -> UploadResult:
        ext = filename.rsplit(".", 1)[-1] if "." in filename else "bin"
        path = f"{uuid.uuid4().hex}.{ext}"
        bucket = self.client.storage.from_(self.bucket)
        try:
            bucket.upload(path, content, {"content-type": content_type})
        except REMOTE_ERRORS as e:
            logger.error(f"Error uploading image: {describe(e)}")
            return UploadResult(error=describe(e))
        return UploadResult(url=bucket.get_public_url(path))

    def list_buckets(self) -> Optional[str]:
        """Storage probe. Returns None on success or the error text."""
        try:
            buckets = self.client.storage.list_buckets()
        except REMOTE_ERRORS as e:
            logger.error(f"Storage connection test failed: {describe(e)}")
            return describe(e)
        logger.debug(f"Storage buckets: {[getattr(b, 'name', b) for b in buckets]}")
        return None

    # --- Auth ---

    def sign_in(self, email: str, password: str) -> Session:
        try:
            res = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except REMOTE_ERRORS as e:
            raise AuthenticationFailed(describe(e)) from e
        session = _session_from(res.session)
        if session is None:
            raise AuthenticationFailed("Invalid login credentials")
        return session

    def sign_out(self) -> bool:
        try:
            self.client.auth.sign_out()
        except REMOTE_ERRORS as e:
            logger.error(f"Error signing out: {describe(e)}")
            return False
        return True

    def get_session(self) -> Optional[Session]:
        try:
            return _session_from(self.client.auth.get_session())
        except REMOTE_ERRORS as e:
            logger.error(f"Error reading session: {describe(e)}")
            return None

    def restore_session(self, access_token: str, refresh_token: str) -> Optional[Session]:
        try:
            res = self.client.auth.set_session(access_token, refresh_token)
        except REMOTE_ERRORS as e:
            logger.warning(f"Could not restore session: {describe(e)}")
            return None
        return _session_from(res.session)

    def on_auth_change(self, callback: Callable[[str, Optional[Session]], None]):
        def relay(event, raw_session):
            callback(str(event), _session_from(raw_session))

        self._auth_subscription = self.client.auth.on_auth_state_change(relay)
        return self._auth_subscription

    # --- Change feed ---

    def subscribe_changes(self, tables: Iterable[str], callback: Callable[[str], None]) -> bool:
        """Listen for remote mutations; callback receives the table name."""
        try:
            channel = self.client.channel("motoverse-changes")
            for table in tables:
                channel = channel.on_postgres_changes(
                    "*",
                    schema="public",
                    table=table,
                    callback=lambda payload, table=table: callback(table),
                )
            self._channel = channel.subscribe()
        except NotImplementedError:
            logger.warning("Realtime is not available on this client; caches refresh on demand only")
            return False
        except REMOTE_ERRORS as e:
            logger.warning(f"Could not subscribe to change feed: {describe(e)}")
            return False
        return True

    def unsubscribe(self):
        if self._channel is not None:
            try:
                self.client.remove_channel(self._channel)
            except (NotImplementedError, *REMOTE_ERRORS) as e:
                logger.warning(f"Could not close change feed: {describe(e)}")
            self._channel = None
        if self._auth_subscription is not None:
            self._auth_subscription.unsubscribe()
            self._auth_subscription = None
