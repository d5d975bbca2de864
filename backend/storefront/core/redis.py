import redis.asyncio as aioredis
from storefront.core.config import settings

# 非同期Redis (FastAPI用)
redis_pool = aioredis.ConnectionPool.from_url(
    settings.REDIS_URL,
    max_connections=20,
    decode_responses=True,
)


async def get_redis() -> aioredis.Redis:
    """FastAPI依存関数: 非同期Redisクライアント取得"""
    return aioredis.Redis(connection_pool=redis_pool)


async def check_redis_connection() -> bool:
    """Redis接続チェック"""
    try:
        r = await get_redis()
        await r.ping()
        return True
    except Exception:
        return False
