"""Admin session lifecycle.

One ``SessionContext`` exists per running storefront and is handed to the
pieces that need to know who is signed in. ``init`` restores a session saved
by an earlier run and starts listening to auth-state changes from the
backend; ``teardown`` stops listening. The refresh token is kept in local
storage so a restart does not force a new login.
"""

import json
import logging
import secrets
import threading
from typing import Optional

from motoverse.core.config import SESSION_STORAGE_KEY
from motoverse.core.exceptions import NotAuthenticated
from motoverse.db.gateway import RemoteGateway
from motoverse.models.schemas import Session
from motoverse.services.cart import LocalStorage

logger = logging.getLogger(__name__)


class SessionContext:
    def __init__(self, gateway: RemoteGateway, storage: LocalStorage, key: str = SESSION_STORAGE_KEY):
        self.gateway = gateway
        self.storage = storage
        self.key = key
        self._session: Optional[Session] = None
        self._lock = threading.Lock()
        self._listening = False

    @property
    def current(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def _set(self, session: Optional[Session]):
        with self._lock:
            self._session = session
        if session is None:
            self.storage.remove_item(self.key)
        else:
            self.storage.set_item(self.key, session.model_dump_json())

    def _on_change(self, event: str, session: Optional[Session]):
        logger.info(f"Auth state changed: {event}")
        if event == "SIGNED_OUT":
            self._set(None)
        elif session is not None:
            self._set(session)

    def init(self) -> Optional[Session]:
        saved = self.storage.get_item(self.key)
        session = None
        if saved:
            try:
                stored = Session.model_validate(json.loads(saved))
            except ValueError:
                stored = None
            if stored is not None and stored.refresh_token:
                session = self.gateway.restore_session(stored.access_token, stored.refresh_token)
        if session is None:
            session = self.gateway.get_session()
        self._set(session)

        if not self._listening:
            self.gateway.on_auth_change(self._on_change)
            self._listening = True
        if session:
            logger.info(f"Restored admin session for {session.email}")
        return session

    def sign_in(self, email: str, password: str) -> Session:
        session = self.gateway.sign_in(email, password)
        self._set(session)
        logger.info(f"Admin signed in: {session.email}")
        return session

    def sign_out(self):
        self.gateway.sign_out()
        self._set(None)

    def verify(self, token: Optional[str]) -> Session:
        session = self._session
        if session is None or not token or not secrets.compare_digest(token, session.access_token):
            raise NotAuthenticated("Admin session required")
        return session

    def teardown(self):
        self._listening = False
        with self._lock:
            self._session = None
