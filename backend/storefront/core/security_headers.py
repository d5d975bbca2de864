"""セキュリティヘッダーミドルウェア"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    APIレスポンスにセキュリティ関連のHTTPヘッダーを付与するミドルウェア
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # 割引計算結果や管理データをキャッシュさせない
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store"

        return response
