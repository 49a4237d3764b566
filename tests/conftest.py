"""In-memory stand-in for the supabase-py client plus shared fixtures."""

import copy
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError
from storage3.utils import StorageException
from supabase_auth.errors import AuthError

from motoverse.db.gateway import RemoteGateway
from motoverse.main import create_app
from motoverse.services.cart import LocalStorage
from motoverse.storefront import Storefront

from helpers import ADMIN_EMAIL, ADMIN_PASSWORD


class FakeAuthError(AuthError):
    def __init__(self, message):
        Exception.__init__(self, message)
        self.message = message


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.count = None
        self.head = False

    def select(self, *columns, count=None, head=None):
        self.count = count
        self.head = bool(head)
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.op = "update"
        self.payload = payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self):
        self.db.calls.append((self.table, self.op))
        if (self.table, self.op) in self.db.failures or (self.table, None) in self.db.failures:
            raise APIError({"message": f"{self.table} {self.op} rejected", "code": "42501"})

        rows = self.db.tables.setdefault(self.table, [])
        if self.op == "insert":
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            rows.extend(copy.deepcopy(new_rows))
            return SimpleNamespace(data=copy.deepcopy(new_rows), count=None)
        if self.op == "update":
            touched = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    touched.append(copy.deepcopy(row))
            return SimpleNamespace(data=touched, count=None)
        if self.op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=removed, count=None)

        selected = [copy.deepcopy(r) for r in rows if self._matches(r)]
        if self.order_by:
            column, desc = self.order_by
            selected.sort(key=lambda r: r.get(column) or 0, reverse=desc)
        return SimpleNamespace(data=[] if self.head else selected, count=len(selected))


class FakeBucket:
    def __init__(self, storage, name):
        self.storage = storage
        self.name = name

    def upload(self, path, content, options=None):
        if self.storage.broken:
            raise StorageException({"message": "Bucket not found"})
        self.storage.files[(self.name, path)] = content
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"https://cdn.test/{self.name}/{path}"


class FakeStorage:
    def __init__(self):
        self.files = {}
        self.broken = False

    def from_(self, name):
        return FakeBucket(self, name)

    def list_buckets(self):
        if self.broken:
            raise StorageException({"message": "storage offline"})
        return [SimpleNamespace(name="images")]


class FakeAuth:
    def __init__(self):
        self.session = None
        self.listeners = []
        self.issued = 0

    def _new_session(self, email):
        self.issued += 1
        user = SimpleNamespace(email=email)
        return SimpleNamespace(
            access_token=f"access-{self.issued}",
            refresh_token=f"refresh-{self.issued}",
            expires_at=1_900_000_000,
            user=user,
        )

    def _emit(self, event):
        for listener in list(self.listeners):
            listener(event, self.session)

    def sign_in_with_password(self, credentials):
        if credentials["email"] != ADMIN_EMAIL or credentials["password"] != ADMIN_PASSWORD:
            raise FakeAuthError("Invalid login credentials")
        self.session = self._new_session(credentials["email"])
        self._emit("SIGNED_IN")
        return SimpleNamespace(session=self.session, user=self.session.user)

    def get_session(self):
        return self.session

    def set_session(self, access_token, refresh_token):
        if not refresh_token.startswith("refresh-"):
            raise FakeAuthError("Invalid Refresh Token")
        self.session = self._new_session(ADMIN_EMAIL)
        return SimpleNamespace(session=self.session, user=self.session.user)

    def sign_out(self):
        self.session = None
        self._emit("SIGNED_OUT")

    def on_auth_state_change(self, callback):
        self.listeners.append(callback)
        return SimpleNamespace(unsubscribe=lambda: self.listeners.remove(callback))


class FakeChannel:
    def __init__(self, name):
        self.name = name
        self.handlers = {}
        self.subscribed = False

    def on_postgres_changes(self, event, schema="public", table="*", callback=None, **kwargs):
        self.handlers[table] = callback
        return self

    def subscribe(self):
        self.subscribed = True
        return self


class FakeSupabase:
    def __init__(self):
        self.tables = {"products": [], "orders": []}
        self.failures = set()
        self.calls = []
        self.storage = FakeStorage()
        self.auth = FakeAuth()
        self.channels = []
        self.realtime_supported = True

    def table(self, name):
        return FakeQuery(self, name)

    def fail(self, table, op=None):
        self.failures.add((table, op))

    def channel(self, name):
        if not self.realtime_supported:
            raise NotImplementedError("realtime needs the async client")
        channel = FakeChannel(name)
        self.channels.append(channel)
        return channel

    def remove_channel(self, channel):
        self.channels.remove(channel)

    def emit_change(self, table):
        for channel in self.channels:
            handler = channel.handlers.get(table)
            if handler:
                handler({"table": table, "eventType": "UPDATE"})


@pytest.fixture
def fake_client():
    return FakeSupabase()


@pytest.fixture
def gateway(fake_client):
    return RemoteGateway(fake_client)


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "storage.json")


@pytest.fixture
def storefront(gateway, tmp_path):
    return Storefront(gateway, storage_path=tmp_path / "storage.json")


@pytest.fixture
def client(storefront):
    with TestClient(create_app(storefront)) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client):
    res = client.post("/api/auth/token", data={"username": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert res.status_code == 200
    return {"Authorization": f"Bearer {res.json()['access_token']}"}
