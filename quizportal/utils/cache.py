"""
Redis cache utility for shared quiz payloads and the leaderboard
"""
import redis
import json
import logging
from typing import Optional, Any
from quizportal.config import settings

logger = logging.getLogger(__name__)

LEADERBOARD_KEY = "leaderboard:top"


class CacheService:
    """Redis-based read-through cache; every operation degrades to a miss when Redis is down"""

    def __init__(self, url: Optional[str] = None):
        url = settings.REDIS_URL if url is None else url
        self.redis_client = None

        if not url:
            logger.info("REDIS_URL not set. Caching disabled.")
            return

        try:
            self.redis_client = redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=5
            )
            # Test connection
            self.redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed: {str(e)}. Caching disabled.")
            self.redis_client = None

    @staticmethod
    def shared_quiz_key(share_token: str) -> str:
        return f"shared_quiz:{share_token}"

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        if not self.redis_client:
            return None

        try:
            value = self.redis_client.get(key)
            if value:
                logger.info(f"Cache hit: {key}")
                return json.loads(value)
            logger.info(f"Cache miss: {key}")
            return None
        except Exception as e:
            logger.error(f"Cache get error: {str(e)}")
            return None

    def set(self, key: str, value: Any, ttl: int) -> bool:
        """
        Set value in cache

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable)
            ttl: Time to live in seconds

        Returns:
            Success status
        """
        if not self.redis_client:
            return False

        try:
            serialized = json.dumps(value)
            self.redis_client.setex(key, ttl, serialized)
            logger.info(f"Cache set: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"Cache set error: {str(e)}")
            return False

    def delete(self, *keys: str) -> bool:
        """Delete keys from cache"""
        if not self.redis_client or not keys:
            return False

        try:
            self.redis_client.delete(*keys)
            logger.info(f"Cache delete: {', '.join(keys)}")
            return True
        except Exception as e:
            logger.error(f"Cache delete error: {str(e)}")
            return False


# Global instance
cache_service = CacheService()
