import hashlib
import time
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy.orm import Session
from supabase import Client

from app.core.errors import AppError, AuthProviderError, Conflict, Unauthorized
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from app.modules.profiles.service import ProfileService

logger = logging.getLogger(__name__)


class TokenCache:
    """Short-lived map of token digest to resolved user, so bursts of requests
    carrying the same bearer token hit Supabase once."""

    def __init__(self, ttl_seconds: float = 60, max_size: int = 500):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._entries: Dict[str, Tuple[Dict[str, Any], float]] = {}

    @staticmethod
    def _key(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        key = self._key(token)
        entry = self._entries.get(key)
        if entry is None:
            return None
        user_data, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return user_data

    def put(self, token: str, user_data: Dict[str, Any]) -> None:
        now = time.monotonic()
        if len(self._entries) >= self.max_size:
            self._entries = {k: v for k, v in self._entries.items() if v[1] > now}
        if len(self._entries) >= self.max_size:
            return
        self._entries[self._key(token)] = (user_data, now + self.ttl_seconds)

    def discard(self, token: str) -> None:
        self._entries.pop(self._key(token), None)


_token_cache = TokenCache()


def _mentions(error: Exception, *needles: str) -> bool:
    text = str(error).lower()
    return any(needle in text for needle in needles)


def _call_provider(action: str, call: Callable[[], Any], translate: Callable[[Exception], Optional[AppError]]):
    """Run a Supabase auth call, mapping provider failures onto the domain errors."""
    try:
        return call()
    except AppError:
        raise
    except Exception as e:
        mapped = translate(e)
        if mapped is not None:
            raise mapped from e
        logger.error(f"Supabase {action} failed: {e}")
        raise AuthProviderError(f"{action} failed") from e


class AuthService:
    def __init__(self, supabase: Client, db: Optional[Session] = None, cache: Optional[TokenCache] = None):
        self.supabase = supabase
        self.db = db
        self.cache = cache if cache is not None else _token_cache

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Sign the user up with Supabase and provision their profile and settings."""
        metadata = {"full_name": register_data.full_name} if register_data.full_name else {}
        response = _call_provider(
            "registration",
            lambda: self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {"data": metadata},
            }),
            lambda e: Conflict("User already exists") if _mentions(e, "already registered", "already exists") else None,
        )
        if not response.user:
            raise AuthProviderError("registration returned no user")

        email = response.user.email or register_data.email
        if self.db is not None:
            ProfileService(self.db).ensure_profile({
                "id": str(response.user.id),
                "email": email,
                "user_metadata": metadata,
            })
        logger.info(f"Registered user {response.user.id}")
        return RegisterResponse(user_id=str(response.user.id), email=email, message="User registered successfully")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        response = _call_provider(
            "login",
            lambda: self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password,
            }),
            lambda e: Unauthorized("Invalid email or password") if _mentions(e, "invalid", "credentials") else None,
        )
        if not response.user or not response.session:
            raise Unauthorized("Invalid email or password")
        return TokenResponse(
            access_token=response.session.access_token,
            user_id=str(response.user.id),
            email=response.user.email or login_data.email,
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve a bearer token to ``{"id", "email", "user_metadata"}``."""
        cached = self.cache.get(token)
        if cached is not None:
            return cached

        # any provider failure here means the caller is not authenticated
        response = _call_provider(
            "token check",
            lambda: self.supabase.auth.get_user(jwt=token),
            lambda e: Unauthorized("Invalid or expired token"),
        )
        if not response.user:
            raise Unauthorized("Invalid or expired token")
        user_data = {
            "id": str(response.user.id),
            "email": response.user.email,
            "user_metadata": response.user.user_metadata or {},
        }
        self.cache.put(token, user_data)
        return user_data

    def logout(self, token: str) -> bool:
        self.cache.discard(token)
        try:
            self.supabase.auth.sign_out()
        except Exception as e:
            # tokens are stateless JWTs and lapse on their own
            logger.warning(f"Logout failed: {e}")
            return False
        return True
