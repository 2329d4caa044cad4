import logging

from blade_api.common.redis_service import RedisService, get_redis_service
from blade_api.modules.auth.dtos.auth import UserResponse
from blade_api.modules.auth.entities import UserEntity

logger = logging.getLogger(__name__)


def user_cache_key(user_id: int) -> str:
    return f"user:{user_id}"


class UserCache:
    """Caches the authenticated user's summary so the guard can skip the database."""

    def __init__(self, redis_service: RedisService | None = None):
        self.redis = redis_service or get_redis_service()

    def get(self, user_id: int) -> UserResponse | None:
        data = self.redis.get(user_cache_key(user_id))
        if data is None:
            return None
        logger.debug(f"User cache hit for ID {user_id}")
        return UserResponse.model_validate(data)

    def set(self, user: UserEntity | UserResponse) -> None:
        summary = UserResponse.model_validate(user)
        if self.redis.set(user_cache_key(summary.id), summary.model_dump()):
            logger.debug(f"Cached user ID {summary.id}")

    def invalidate(self, user_id: int) -> None:
        if self.redis.delete(user_cache_key(user_id)):
            logger.info(f"Invalidated user cache for ID {user_id}")
