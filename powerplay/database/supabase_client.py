import logging
from supabase import create_client, Client
from powerplay.config import settings

logger = logging.getLogger(__name__)


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None
    _fallback_warned = False

    @classmethod
    def get_client(cls) -> Client:
        """Anon key client; row level security applies"""
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """
        service_role client for cross-user writes: balances, settlements,
        notification logs, club reviews. Falls back to the anon client when
        SUPABASE_SERVICE_ROLE_KEY is not set.
        """
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        if cls._service_client is None and not cls._fallback_warned:
            logger.warning("SUPABASE_SERVICE_ROLE_KEY not set - cross-user writes will be subject to RLS")
            cls._fallback_warned = True
        return cls._service_client or cls.get_client()


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_service_supabase() -> Client:
    return SupabaseClient.get_service_client()
