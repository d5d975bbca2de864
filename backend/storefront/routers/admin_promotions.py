"""管理画面: プロモーションコード管理"""
import math
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.core.logging import get_logger
from storefront.core.rate_limit import limiter, ADMIN_WRITE_RATE_LIMIT
from storefront.models.promotion import Promotion
from storefront.schemas.promotion import PromotionCreate, PromotionInfo, PromotionUpdate
from storefront.services.promotion_validator import to_naive_utc, utcnow
from storefront.routers.deps import require_admin

router = APIRouter(prefix="/api/admin/promotions", tags=["admin-promotions"])
logger = get_logger(__name__)

MAX_PAGE_SIZE = 100

# nullを受け取っても更新しない (NOT NULL列)
NON_NULLABLE_FIELDS = {"code", "discount_percent", "min_order", "is_active"}
DATETIME_FIELDS = {"valid_from", "valid_until"}


def serialize_promotion(promo: Promotion) -> dict:
    return PromotionInfo.model_validate(promo).model_dump(mode="json", by_alias=True)


def _get_or_404(db: Session, promo_id: int) -> Promotion:
    promo = db.query(Promotion).filter(Promotion.id == promo_id).first()
    if not promo:
        raise HTTPException(status_code=404, detail="プロモーションコードが見つかりません")
    return promo


def _code_exists(db: Session, code: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Promotion).filter(Promotion.code == code)
    if exclude_id is not None:
        query = query.filter(Promotion.id != exclude_id)
    return query.first() is not None


def _commit(db: Session):
    """ユニーク制約違反 (同時作成) を400に変換してコミット"""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="このコードは既に存在します")


@router.get("")
async def list_promotions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    expired: bool = False,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """プロモーションコード一覧 (新しい順、ページング)"""
    limit = min(limit, MAX_PAGE_SIZE)

    query = db.query(Promotion)
    if is_active is not None:
        query = query.filter(Promotion.is_active == is_active)
    if expired:
        query = query.filter(Promotion.valid_until < utcnow())

    total = query.count()
    promos = (
        query.order_by(Promotion.created_at.desc(), Promotion.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "data": [serialize_promotion(p) for p in promos],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit),
        },
    }


@router.get("/{promo_id}")
async def get_promotion(
    promo_id: int,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """プロモーションコード詳細"""
    return serialize_promotion(_get_or_404(db, promo_id))


@router.post("", status_code=201)
@limiter.limit(ADMIN_WRITE_RATE_LIMIT)
async def create_promotion(
    request: Request,
    data: PromotionCreate,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """プロモーションコード作成"""
    if _code_exists(db, data.code):
        raise HTTPException(status_code=400, detail="このコードは既に存在します")

    promo = Promotion(
        code=data.code,
        discount_percent=data.discount_percent,
        min_order=data.min_order,
        is_active=data.is_active if data.is_active is not None else True,
        valid_from=to_naive_utc(data.valid_from),
        valid_until=to_naive_utc(data.valid_until),
        usage_limit=data.usage_limit,
        used_count=0,
    )
    db.add(promo)
    _commit(db)
    db.refresh(promo)
    logger.info(f"プロモーションコード作成: id={promo.id}, code={promo.code}")
    return serialize_promotion(promo)


@router.put("/{promo_id}")
@limiter.limit(ADMIN_WRITE_RATE_LIMIT)
async def update_promotion(
    request: Request,
    promo_id: int,
    data: PromotionUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """プロモーションコード編集 (指定されたフィールドのみ更新)"""
    promo = _get_or_404(db, promo_id)

    changes = data.model_dump(exclude_unset=True)
    if changes.get("code") and _code_exists(db, changes["code"], exclude_id=promo_id):
        raise HTTPException(status_code=400, detail="このコードは既に存在します")

    for field, value in changes.items():
        if value is None and field in NON_NULLABLE_FIELDS:
            continue
        if field in DATETIME_FIELDS:
            value = to_naive_utc(value)
        setattr(promo, field, value)

    valid_from = to_naive_utc(promo.valid_from)
    valid_until = to_naive_utc(promo.valid_until)
    if valid_from and valid_until and valid_from > valid_until:
        db.rollback()
        raise HTTPException(status_code=400, detail="validFromはvalidUntil以前の日時を指定してください")

    _commit(db)
    db.refresh(promo)
    logger.info(f"プロモーションコード更新: id={promo.id}, fields={sorted(changes)}")
    return serialize_promotion(promo)


@router.delete("/{promo_id}")
@limiter.limit(ADMIN_WRITE_RATE_LIMIT)
async def delete_promotion(
    request: Request,
    promo_id: int,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """プロモーションコード削除"""
    promo = _get_or_404(db, promo_id)
    db.delete(promo)
    db.commit()
    logger.info(f"プロモーションコード削除: id={promo_id}")
    return {"message": "プロモーションコードを削除しました"}
