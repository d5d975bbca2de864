from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from storefront.core.database import get_db
from storefront.core.logging import get_logger
from storefront.core.redis import check_redis_connection
from storefront.models.promotion import Promotion

router = APIRouter()
logger = get_logger(__name__)


def count_active_promotions(db: Session) -> Optional[int]:
    """promotionsテーブルを読めるか確認し、有効なコード数を返す (読めなければNone)"""
    try:
        return db.scalar(select(func.count(Promotion.id)).where(Promotion.is_active.is_(True)))
    except SQLAlchemyError:
        logger.warning("promotionsテーブルの読み取りに失敗しました", exc_info=True)
        return None


@router.get("/health")
@router.get("/api/health")
async def health_check(db: Session = Depends(get_db)):
    """ヘルスチェックエンドポイント

    DBは接続確認ではなく、検証で実際に使うpromotionsテーブルを読む
    """
    active_promotions = count_active_promotions(db)
    db_ok = active_promotions is not None
    redis_ok = await check_redis_connection()

    status = "ok" if (db_ok and redis_ok) else "degraded"

    return {
        "status": status,
        "db": "connected" if db_ok else "disconnected",
        "redis": "connected" if redis_ok else "disconnected",
        "activePromotions": active_promotions,
    }
