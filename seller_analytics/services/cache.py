"""
Redis Result Cache

Dashboard results are cheap to rebuild but expensive to fetch, so they are
kept for a short TTL under ``<namespace>:<scope>:<stores>:<from>:<to>`` keys.
One shared client per process; values are stored as JSON.
"""

import json
from typing import Any, Awaitable, Callable, Optional

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from seller_analytics.config import get_settings

logger = structlog.get_logger(__name__)

_client: Optional[Redis] = None


async def init_redis(url: Optional[str] = None) -> Redis:
    """Connect the shared cache client; later calls return the same client"""
    global _client

    if _client is not None:
        return _client

    redis_settings = get_settings().redis
    client = Redis.from_url(
        url or redis_settings.get_url(),
        max_connections=redis_settings.max_connections,
        socket_timeout=redis_settings.socket_timeout,
        decode_responses=True,
    )
    try:
        await client.ping()
    except RedisError as e:
        await client.aclose()
        logger.error("Result cache unreachable", host=redis_settings.host, error=str(e))
        raise

    _client = client
    logger.info("Result cache connected", namespace=redis_settings.namespace)
    return _client


async def close_redis() -> None:
    """Close the shared cache client and its connection pool"""
    global _client

    if _client is None:
        return
    await _client.aclose()
    _client = None
    logger.info("Result cache closed")


def get_redis() -> Redis:
    if _client is None:
        raise RuntimeError("Result cache is not connected; await init_redis() first")
    return _client


class CacheManager:
    """
    JSON values under one key namespace with a default TTL.

    Example:
        cache = CacheManager()
        service = DashboardService(client, cache=cache)
    """

    def __init__(
        self,
        namespace: Optional[str] = None,
        default_ttl: Optional[int] = None,
        client: Optional[Redis] = None,
    ):
        settings = get_settings()
        self.namespace = namespace or settings.redis.namespace
        self.default_ttl = default_ttl or settings.aggregation.cache_ttl_seconds
        self._client = client

    @property
    def client(self) -> Redis:
        return self._client or get_redis()

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        """Decoded value, or ``None`` when missing or not valid JSON"""
        raw = await self.client.get(self._key(key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Dropping undecodable cache entry", key=key)
            await self.client.delete(self._key(key))
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store ``value`` for ``ttl`` seconds; False when it is not JSON serializable"""
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.warning("Value not cacheable", key=key, error=str(e))
            return False

        await self.client.set(self._key(key), payload, ex=ttl or self.default_ttl)
        return True

    async def delete(self, key: str) -> bool:
        return await self.client.delete(self._key(key)) > 0

    async def invalidate_all(self) -> int:
        """Delete every key of the namespace, e.g. after a data upload"""
        keys = [key async for key in self.client.scan_iter(match=f"{self.namespace}:*")]
        if not keys:
            return 0
        deleted = await self.client.delete(*keys)
        logger.info("Result cache invalidated", namespace=self.namespace, keys=deleted)
        return deleted

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None,
    ) -> Any:
        """Cached value of ``key``, computing and storing it with ``factory`` on a miss"""
        cached = await self.get(key)
        if cached is not None:
            return cached

        value = await factory()
        await self.set(key, value, ttl)
        return value
