"""レート制限設定（slowapi使用）"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
from starlette.responses import JSONResponse

from storefront.core.config import settings


def get_client_ip(request: Request) -> str:
    """
    クライアントIPアドレスを取得
    プロキシ経由の場合はX-Forwarded-For / X-Real-IPヘッダーを参照
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # カンマ区切りの最初のIPを取得
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return get_remote_address(request)


# Limiterインスタンス（アプリケーション全体で共有）
limiter = Limiter(
    key_func=get_client_ip,
    default_limits=["100/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    レート制限超過時のカスタムエラーハンドラ
    """
    return JSONResponse(
        status_code=429,
        content={
            "detail": "リクエスト回数が上限を超えました。しばらく待ってから再度お試しください。",
            "retry_after": exc.detail,
        },
    )


# エンドポイント別のレート制限定義
PROMOTION_VALIDATE_RATE_LIMIT = settings.PROMOTION_VALIDATE_RATE_LIMIT  # コード検証
ADMIN_WRITE_RATE_LIMIT = settings.ADMIN_WRITE_RATE_LIMIT  # 管理画面の作成・更新・削除
