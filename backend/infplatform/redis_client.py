# backend/infplatform/redis_client.py

from redis import Redis

from .config import settings

# None = Redis not configured, domain events are only logged
redis_client: Redis | None = (
    Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=settings.db_timeout_seconds,
    )
    if settings.redis_url
    else None
)
