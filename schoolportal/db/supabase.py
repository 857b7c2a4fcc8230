import logging
from functools import lru_cache
from supabase import create_client, Client
from schoolportal.core.config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def create_supabase_client() -> Client:
    """
    Create the Supabase client used for every Entity Store, Object Store
    and Auth call.

    Returns:
        Client: Configured Supabase client

    Raises:
        RuntimeError: If the project URL or service key is not configured
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_KEY environment variables are required")

    # Service role key: the API enforces roles itself, row level security is bypassed
    supabase: Client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
    logger.info("Supabase client created for %s", settings.SUPABASE_URL)
    return supabase


def get_supabase() -> Client:
    """FastAPI dependency returning the shared Supabase client."""
    return create_supabase_client()
