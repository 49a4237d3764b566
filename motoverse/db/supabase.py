import logging
from typing import Optional

from supabase import Client, ClientOptions, create_client

from motoverse.core.config import SUPABASE_ANON_KEY, SUPABASE_URL

logger = logging.getLogger(__name__)

_client: Optional[Client] = None


def get_client() -> Client:
    """Shared supabase-py client, created on first use."""
    global _client
    if _client is None:
        if not SUPABASE_URL or not SUPABASE_ANON_KEY:
            raise RuntimeError("SUPABASE_URL and SUPABASE_ANON_KEY must be set (see .env)")
        # the admin session is saved by SessionContext, not by the client
        options = ClientOptions(persist_session=False, auto_refresh_token=True)
        _client = create_client(SUPABASE_URL, SUPABASE_ANON_KEY, options=options)
        logger.info(f"Supabase client ready for {SUPABASE_URL}")
    return _client
