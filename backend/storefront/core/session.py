"""管理画面セッション (Redisハッシュ)

セッションの発行・破棄はログインを担当する別サービスが行い、
ここでは発行済みセッションの参照のみを扱う。
"""
import time
from typing import Optional
import redis.asyncio as aioredis
from storefront.core.config import settings

SESSION_PREFIX = "session:"
SESSION_TTL = settings.SESSION_TIMEOUT_MINUTES * 60  # 秒


async def get_session(r: aioredis.Redis, session_id: str) -> Optional[dict]:
    """セッション情報を取得。アクセスごとにTTL更新"""
    if not session_id:
        return None
    key = f"{SESSION_PREFIX}{session_id}"
    data = await r.hgetall(key)
    if not data:
        return None
    # TTL更新 (アイドルタイムアウトリセット)
    await r.expire(key, SESSION_TTL)
    await r.hset(key, "last_accessed", str(int(time.time())))
    return data
