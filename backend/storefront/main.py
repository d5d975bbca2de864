from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from storefront.core.config import settings
from storefront.core.logging import setup_logging, get_logger
from storefront.core.security_headers import SecurityHeadersMiddleware
from storefront.core.rate_limit import limiter, rate_limit_exceeded_handler
from storefront.routers import health, promotions, admin_promotions

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """アプリケーションライフサイクル管理"""
    setup_logging(debug=settings.DEBUG)
    logger.info("アプリケーション起動")
    yield
    logger.info("アプリケーション終了")


app = FastAPI(
    title=settings.SITE_NAME,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
)

# レート制限設定
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# --- バリデーションエラー日本語化 ---
_FIELD_JA = {
    "code": "プロモーションコード",
    "orderAmount": "注文金額",
    "discountPercent": "割引率",
    "minOrder": "最低注文金額",
    "isActive": "有効フラグ",
    "validFrom": "適用開始日時",
    "validUntil": "適用終了日時",
    "usageLimit": "最大使用回数",
    "page": "ページ",
    "limit": "件数",
}


def _translate_error(err: dict) -> str:
    t = err.get("type", "")
    ctx = err.get("ctx", {})
    loc = err.get("loc", [])
    field = str(loc[-1]) if loc else ""
    fj = _FIELD_JA.get(field, field)

    if t == "string_too_short":
        return f"{fj}は{ctx.get('min_length', '')}文字以上で入力してください"
    if t == "string_too_long":
        return f"{fj}は{ctx.get('max_length', '')}文字以下で入力してください"
    if t == "missing":
        return f"{fj}は必須です"
    if t in ("int_parsing", "int_type", "int_from_float", "float_parsing", "float_type"):
        return f"{fj}は数値で入力してください"
    if t == "finite_number":
        return f"{fj}は有限の数値で入力してください"
    if t in ("greater_than_equal", "greater_than"):
        bound = ctx.get("ge", ctx.get("gt", ""))
        op = "以上" if t == "greater_than_equal" else "より大きい"
        return f"{fj}は{bound}{op}値を入力してください"
    if t == "less_than_equal":
        return f"{fj}は{ctx.get('le', '')}以下の値を入力してください"
    if t == "string_type":
        return f"{fj}は文字列で入力してください"
    if t == "bool_parsing":
        return f"{fj}は真偽値で入力してください"
    if t.startswith("datetime"):
        return f"{fj}は日時形式 (ISO 8601) で入力してください"
    if t == "value_error":
        return str(ctx.get("error", err.get("msg", "")))
    return f"{fj}: 入力値が不正です"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = [_translate_error(e) for e in exc.errors()]
    return JSONResponse(status_code=422, content={"detail": "、".join(messages)})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"DBエラー: path={request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "サーバー内部でエラーが発生しました"})


# ミドルウェア (登録順序: 後に登録したものが先に実行される)
app.add_middleware(SecurityHeadersMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ルーター登録
app.include_router(health.router)
app.include_router(promotions.router)
app.include_router(admin_promotions.router)
