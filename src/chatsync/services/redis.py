import logging

from redis import Redis
from redis.exceptions import RedisError

from ..models import Session
from ..settings import Settings, get_settings
from .credentials import TOKEN_KEY, USERNAME_KEY, CredentialStore, session_from_record

logger = logging.getLogger(__name__)


class RedisCredentialStore(CredentialStore):
    """Credential store backed by two string keys in Redis.

    Any ``RedisError`` (unreachable, read-only replica, bad response) is logged
    and treated as nothing persisted.
    """

    def __init__(self, url: str, key_prefix: str = "chatsync:") -> None:
        """Create a Redis client for the given URL (e.g. redis://localhost:6379/0)."""
        self._url = url
        self._prefix = key_prefix
        self._client: Redis | None = None

    def connect(self) -> None:
        """Establish connection to Redis. Idempotent."""
        if self._client is not None:
            return
        self._client = Redis.from_url(self._url, decode_responses=True)
        logger.info("Redis credential store at %s", self._url.split("@")[-1])

    def _key(self, name: str) -> str:
        return f"{self._prefix}{name}"

    def load(self) -> Session:
        """Return the stored session, or an absent session if missing or on error."""
        self.connect()
        try:
            token, username = self._client.mget(self._key(TOKEN_KEY), self._key(USERNAME_KEY))
        except RedisError as e:
            logger.warning("Redis credential load failed: %s", e)
            return Session.absent()
        return session_from_record({TOKEN_KEY: token, USERNAME_KEY: username})

    def save(self, session: Session) -> None:
        if not session.is_present:
            self.clear()
            return
        self.connect()
        try:
            self._client.mset(
                {
                    self._key(TOKEN_KEY): session.token,
                    self._key(USERNAME_KEY): session.display_name,
                }
            )
        except RedisError as e:
            logger.warning("Redis credential save failed: %s", e)

    def clear(self) -> None:
        self.connect()
        try:
            self._client.delete(self._key(TOKEN_KEY), self._key(USERNAME_KEY))
        except RedisError as e:
            logger.warning("Redis credential clear failed: %s", e)


def get_redis_credential_store(settings: Settings | None = None) -> RedisCredentialStore | None:
    """Return a Redis credential store if redis_url is configured, else None."""
    settings = settings or get_settings()
    if not settings.redis_url or not settings.redis_url.strip():
        return None
    return RedisCredentialStore(settings.redis_url.strip(), settings.credential_key_prefix)
