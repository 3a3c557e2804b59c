from typing import Optional

from supabase import create_client, Client
from app.config import settings


class SupabaseAuthClient:
    """Supabase is used for identity only: sign-up, sign-in and JWT validation.

    Project data is stored through SQLAlchemy (see app.database.session) so the
    authorization checks and the writes they guard share one transaction.
    """
    _client: Optional[Client] = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client


def get_supabase() -> Client:
    return SupabaseAuthClient.get_client()
