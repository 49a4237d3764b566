"""Tests for the Supabase gateway and its row mapping."""

import json
from datetime import datetime, timezone

import pytest
from helpers import ADMIN_EMAIL, ADMIN_PASSWORD, make_order, make_product

from motoverse.core.exceptions import AuthenticationFailed
from motoverse.db.mapping import order_to_row, product_to_row, row_to_order, row_to_product
from motoverse.models.schemas import Category, Condition, FuelType, OrderStatus, ProductSpecs


class TestMapping:
    def test_legacy_row_is_normalized(self):
        product = row_to_product({"id": 7, "name": "CB500", "price": "55000", "brand": "Honda"})
        assert product.id == "7"
        assert product.price == 55000
        assert product.condition == Condition.NEW
        assert product.fuel_type == FuelType.PETROL
        assert product.stock == 0
        assert product.category == Category.ACCESSORIES
        assert product.description == ""
        assert product.specs is None

    def test_specs_stored_as_json_string(self):
        row = {"id": "x", "name": "MT-09", "price": 1, "specs": json.dumps({"engine": "890cc", "power": "119hp"})}
        assert row_to_product(row).specs == ProductSpecs(engine="890cc", power="119hp", weight="N/A")

    def test_product_columns_are_camel_case(self):
        row = product_to_row(make_product(fuel_type=FuelType.ELECTRIC))
        assert row["fuelType"] == "Electric"
        assert "fuel_type" not in row
        assert row_to_product(row).fuel_type == FuelType.ELECTRIC

    def test_snake_case_rows_are_accepted(self):
        assert row_to_product({"id": "a", "name": "x", "price": 1, "fuel_type": "Electric"}).fuel_type == FuelType.ELECTRIC

    def test_order_row_round_trip(self):
        created = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        order = make_order("o-9", [(make_product("a", price=100), 3)], created_at=created)
        row = order_to_row(order)
        assert row["customerName"] == order.customer_name
        assert row["date"] == int(created.timestamp() * 1000)
        assert row["items"][0]["quantity"] == 3
        back = row_to_order(row)
        assert back.created_at == created
        assert back.total == 300
        assert back.items[0].product.id == "a"

    def test_unknown_status_defaults_to_pending(self):
        row = order_to_row(make_order("o", [(make_product(), 1)]))
        row["status"] = "lost"
        assert row_to_order(row).status == OrderStatus.PENDING


class TestProducts:
    def test_crud(self, gateway):
        product = make_product("p1", "Tenere 700", 120000)
        assert gateway.add_product(product) == product
        updated = product.model_copy(update={"price": 110000})
        assert gateway.update_product(updated).price == 110000
        assert [p.price for p in gateway.get_products()] == [110000]
        assert gateway.delete_product("p1")
        assert gateway.get_products() == []

    def test_failures_become_sentinels(self, gateway, fake_client):
        fake_client.fail("products")
        product = make_product()
        assert gateway.get_products() == []
        assert gateway.add_product(product) is None
        assert gateway.update_product(product) is None
        assert gateway.delete_product(product.id) is False

    def test_update_of_missing_product(self, gateway):
        assert gateway.update_product(make_product("ghost")) is None

    def test_malformed_rows_are_skipped(self, gateway, fake_client):
        fake_client.tables["products"] = [{"id": "bad", "name": "x", "price": -5}, product_to_row(make_product("ok"))]
        assert [p.id for p in gateway.get_products()] == ["ok"]


class TestOrders:
    def test_orders_come_back_newest_first(self, gateway):
        older = make_order("old", [(make_product(), 1)], created_at=datetime(2026, 1, 1, tzinfo=timezone.utc))
        newer = make_order("new", [(make_product(), 1)], created_at=datetime(2026, 2, 1, tzinfo=timezone.utc))
        gateway.add_order(older)
        gateway.add_order(newer)
        assert [o.id for o in gateway.get_orders()] == ["new", "old"]

    def test_status_update(self, gateway):
        gateway.add_order(make_order("o", [(make_product(), 1)]))
        assert gateway.update_order_status("o", OrderStatus.SHIPPED).status == OrderStatus.SHIPPED

    def test_drifted_total_is_kept(self, gateway, fake_client, caplog):
        row = order_to_row(make_order("o1", [(make_product(price=1000), 1)]))
        row["total"] = 1000.5
        fake_client.tables["orders"] = [row]
        orders = gateway.get_orders()
        assert [o.total for o in orders] == [1000.5]
        assert "differs from its lines" in caplog.text

    def test_failures_become_sentinels(self, gateway, fake_client):
        fake_client.fail("orders")
        assert gateway.get_orders() == []
        assert gateway.add_order(make_order("o", [(make_product(), 1)])) is None
        assert gateway.update_order_status("o", OrderStatus.SHIPPED) is None
        assert gateway.delete_order("o") is False


class TestStorage:
    def test_upload_returns_public_url(self, gateway, fake_client):
        result = gateway.upload_image("bike.png", b"\x89PNG", "image/png")
        assert result.error is None
        assert result.url.startswith("https://cdn.test/images/")
        assert result.url.endswith(".png")
        assert len(fake_client.storage.files) == 1

    def test_upload_failure_carries_message(self, gateway, fake_client):
        fake_client.storage.broken = True
        result = gateway.upload_image("bike.png", b"x")
        assert result.url is None
        assert "Bucket not found" in result.error

    def test_list_buckets(self, gateway, fake_client):
        assert gateway.list_buckets() is None
        fake_client.storage.broken = True
        assert "storage offline" in gateway.list_buckets()


class TestAuth:
    def test_sign_in(self, gateway):
        session = gateway.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
        assert session.email == ADMIN_EMAIL
        assert gateway.get_session().access_token == session.access_token

    def test_bad_credentials(self, gateway):
        with pytest.raises(AuthenticationFailed) as exc:
            gateway.sign_in(ADMIN_EMAIL, "wrong")
        assert exc.value.message == "Invalid login credentials"

    def test_restore_with_bad_token(self, gateway):
        assert gateway.restore_session("a", "garbage") is None


class TestChangeFeed:
    def test_callback_receives_table(self, gateway, fake_client):
        seen = []
        assert gateway.subscribe_changes(["products", "orders"], seen.append)
        fake_client.emit_change("orders")
        fake_client.emit_change("products")
        assert seen == ["orders", "products"]

    def test_unavailable_realtime_is_not_fatal(self, gateway, fake_client):
        fake_client.realtime_supported = False
        assert gateway.subscribe_changes(["products"], lambda table: None) is False

    def test_unsubscribe(self, gateway, fake_client):
        gateway.subscribe_changes(["products"], lambda table: None)
        gateway.unsubscribe()
        assert fake_client.channels == []


def test_client_needs_credentials(monkeypatch):
    from motoverse.db import supabase as supabase_db

    monkeypatch.setattr(supabase_db, "_client", None)
    monkeypatch.setattr(supabase_db, "SUPABASE_URL", None)
    with pytest.raises(RuntimeError):
        supabase_db.get_client()
