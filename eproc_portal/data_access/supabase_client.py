# Supabase client factories
# eproc_portal/data_access/supabase_client.py

"""
Two kinds of Supabase clients are used:

- a cached service client (service-role key when configured) for table and
  storage access; authorization is enforced by this application, not by RLS;
- a fresh per-request client for auth flows that store session state on the
  client object (sign-in, sign-up, refresh), so sessions never leak between
  requests.
"""

import logging
from typing import Optional

from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from eproc_portal.core.config import settings

logger = logging.getLogger(__name__)

_service_client: Optional[Client] = None


def _client_options() -> ClientOptions:
    return ClientOptions(auto_refresh_token=False, persist_session=False)


def get_service_client() -> Client:
    """
    Initializes (once) and returns the shared Supabase client.

    Raises:
        Exception: Propagates client construction errors (bad URL or key).
    """
    global _service_client
    if _service_client is not None:
        return _service_client

    key = settings.SUPABASE_SERVICE_ROLE_KEY or settings.SUPABASE_ANON_KEY
    if settings.SUPABASE_SERVICE_ROLE_KEY is None:
        logger.warning("SUPABASE_SERVICE_ROLE_KEY not set; falling back to the anon key for table access.")

    logger.info("Initializing Supabase service client...")
    _service_client = create_client(str(settings.SUPABASE_URL).rstrip("/"), key.get_secret_value(), options=_client_options())
    logger.info("Supabase service client initialized.")
    return _service_client


def create_request_client() -> Client:
    """Returns a new anon-key client for a single auth flow."""
    return create_client(
        str(settings.SUPABASE_URL).rstrip("/"),
        settings.SUPABASE_ANON_KEY.get_secret_value(),
        options=_client_options(),
    )


def reset_service_client() -> None:
    """Drops the cached client (used by tests)."""
    global _service_client
    _service_client = None
